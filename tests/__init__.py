# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
import os

import yaml

from package_build_service.builder.base import GenericBuilder
from package_build_service.common.config import Config
from package_build_service.common.errors import BuilderError
from package_build_service.common.models import Builder, Job, Package, PackageStatus, Recipe
from package_build_service.repos import LocalRepository


def make_config(basedir, **items):
    """ Config with every path below `basedir`, for one test. """
    config = Config()
    values = {
        "recipes_dir": os.path.join(basedir, "recipes"),
        "state_dir": os.path.join(basedir, "state"),
        "local_repo": os.path.join(basedir, "repo"),
        "build_root": os.path.join(basedir, "roots", "{index}"),
        "build_command": "true",
        "num_builders": 1,
        "arch": "x86_64",
        "net_timeout": 0,
        "net_retry_interval": 0,
        "log_level": "debug",
    }
    values.update(items)
    for key, value in values.items():
        config.set_item(key, value)
    os.makedirs(config.recipes_dir, exist_ok=True)
    return config


def write_recipe(config, name, source=None, **recipe):
    """ Create the package directory `name` with a recipe and one source file.

    Keyword arguments are written to the recipe as they are, e.g.
    buildrequires=["b"] or directive="locked".
    """
    directory = os.path.join(config.recipes_dir, name)
    os.makedirs(directory, exist_ok=True)
    with open(os.path.join(directory, config.recipe_filename), "w") as f:
        yaml.safe_dump(recipe, f, default_flow_style=False)
    with open(os.path.join(directory, "%s.src" % name), "w") as f:
        f.write(source if source is not None else "source of %s\n" % name)
    return directory


def write_raw_recipe(config, name, content):
    directory = os.path.join(config.recipes_dir, name)
    os.makedirs(directory, exist_ok=True)
    with open(os.path.join(directory, config.recipe_filename), "w") as f:
        f.write(content)
    return directory


def publish_binaries(config, package_name, names):
    """ Make `names` available in the local repository as built by `package_name`. """
    repo = LocalRepository(config.local_repo)
    repo.load()
    repo.update_package(package_name, dict((name, "%s-1.0.tar" % name) for name in names))


def make_package(directory, name="foo", provides=None, fingerprint="f" * 64, **kwargs):
    return Package(name, directory, Recipe(provides=provides or [name], **kwargs), fingerprint)


def make_job(package, resultdir, status=PackageStatus.succeeded, builder=None):
    builder = builder or Builder("builder0", 0, "/var/tmp/build-root")
    job = Job(package, builder, "x86_64", "new build", resultdir)
    job.start_time = 1500000000.0
    job.end_time = 1500000060.0
    job.status = status
    return job


class FakeHandle(object):
    """ A build process which terminated already. """

    def __init__(self, returncode=0):
        self.returncode = returncode
        self.terminated = False

    def wait(self, timeout=None):
        return self.returncode

    def poll(self):
        return self.returncode

    def terminate(self):
        self.terminated = True

    def kill(self):
        pass


class FakeBuilder(GenericBuilder):
    """
    Build executor finishing every job right away.

    The outcome per package is taken from `outcomes`: "ok" (the default)
    writes one artifact per declared output, "fail" exits with 1, "marker"
    writes the artifacts but also the failure marker and "error" refuses to
    start.
    """

    backend = "fake"

    def __init__(self, config, outcomes=None):
        self.config = config
        self.outcomes = outcomes or {}
        self.started = []
        self.reasons = {}

    def start(self, job):
        name = job.package.name
        outcome = self.outcomes.get(name, "ok")
        if outcome == "error":
            raise BuilderError("no build root for %s" % name)
        self.started.append(name)
        self.reasons[name] = job.reason
        if outcome in ("ok", "marker"):
            for output in job.package.provides:
                with open(os.path.join(job.resultdir, "%s-1.0.tar" % output), "w") as f:
                    f.write("binary %s\n" % output)
        if outcome == "marker":
            with open(os.path.join(job.resultdir, self.config.failure_marker), "w") as f:
                f.write("tests failed\n")
        return FakeHandle(1 if outcome == "fail" else 0)
