# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
import logging
import os
import shlex
import subprocess

from package_build_service.builder.base import GenericBuilder
from package_build_service.common.errors import BuilderError

log = logging.getLogger(__name__)


class CommandBuilder(GenericBuilder):
    """
    Runs the command configured in conf.build_command for every job.

    The template is split into arguments first and every argument is then
    formatted with these fields: package, directory, recipe, build_type,
    root, resultdir, arch and deps (space separated binary names). The same
    values are exported as PBS_* environment variables.
    """

    backend = "command"

    def __init__(self, config):
        self.config = config

    def _fields(self, job):
        package = job.package
        return {
            "package": package.name,
            "directory": package.directory,
            "recipe": os.path.join(package.directory, self.config.recipe_filename),
            "build_type": package.recipe.build_type if package.recipe else "",
            "root": job.builder.root,
            "resultdir": job.resultdir,
            "arch": job.arch,
            "deps": " ".join(job.dependencies),
        }

    def command(self, job):
        fields = self._fields(job)
        try:
            cmd = [arg.format(**fields) for arg in shlex.split(self.config.build_command)]
        except (KeyError, ValueError, IndexError) as e:
            raise BuilderError("Invalid build_command %r: %s" % (self.config.build_command, e))
        if not cmd:
            raise BuilderError("No build_command configured")
        return cmd

    def start(self, job):
        cmd = self.command(job)
        env = dict(os.environ)
        for key, value in self._fields(job).items():
            env["PBS_%s" % key.upper()] = value

        log_path = os.path.join(job.resultdir, self.config.build_log_name)
        log.debug("Executing command: %s", cmd)
        try:
            os.makedirs(job.builder.root, exist_ok=True)
            with open(log_path, "w") as build_log:
                return subprocess.Popen(
                    cmd, cwd=job.package.directory, env=env,
                    stdout=build_log, stderr=subprocess.STDOUT)
        except OSError as e:
            raise BuilderError("Failed to execute %s: %s" % (cmd[0], e.strerror or e))
