# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Configuration handler functions."""

import importlib.util
import os
import platform
import sys

from package_build_service.common import logger
from package_build_service.common.errors import ValidationError

# Hard ceiling on the size of the builder pool
MAX_BUILDERS = 32

SUPPORTED_REPO_KINDS = ("remote-repo", "remote-registry")


def _running_tests():
    return any("py.test" in arg or "pytest" in arg for arg in sys.argv) \
        or "PBS_TESTING" in os.environ


def _load_config_module(config_file):
    spec = importlib.util.spec_from_file_location("pbs_runtime_config", config_file)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def init_config():
    """ Configure the package build service and return the Config object
    together with the chosen configuration section.

    The configuration file is looked up in this order: the PBS_CONFIG_FILE
    environment variable, /etc/package-build-service/config.py and finally
    conf/config.py of a git checkout. Without any file the built-in defaults
    are used.
    """
    here = os.path.dirname(os.path.abspath(__file__))
    checkout_config = os.path.normpath(os.path.join(here, "..", "..", "conf", "config.py"))
    candidates = [
        os.environ.get("PBS_CONFIG_FILE"),
        "/etc/package-build-service/config.py",
        checkout_config,
    ]

    config_section = os.environ.get("PBS_CONFIG_SECTION", "DevConfiguration")
    if _running_tests():
        config_section = "TestConfiguration"

    config_module = None
    for config_file in candidates:
        if config_file and os.path.exists(config_file):
            config_module = _load_config_module(config_file)
            break

    section_obj = None
    if config_module is not None:
        section_obj = getattr(config_module, config_section, None)
        if section_obj is None:
            raise ValidationError(
                "Configuration section %s not found in %s" % (config_section, config_module.__file__))

    return Config(section_obj), section_obj


class Config(object):
    """Class representing the orchestrator configuration."""

    _defaults = {
        "debug": {
            "type": bool,
            "default": False,
            "desc": "Debug mode"},
        "system": {
            "type": str,
            "default": "command",
            "desc": "The build executor backend to use."},
        "resolver": {
            "type": str,
            "default": "simple",
            "desc": "The dependency resolver backend to use."},
        "recipes_dir": {
            "type": str,
            "default": "recipes",
            "desc": "Directory containing one sub-directory per package."},
        "recipe_filename": {
            "type": str,
            "default": "recipe.yaml",
            "desc": "Name of the recipe file inside a package directory."},
        "state_dir": {
            "type": str,
            "default": "state",
            "desc": "Directory for results, lastcheck cache and build history."},
        "local_repo": {
            "type": str,
            "default": "repo",
            "desc": "Directory of the local repository receiving built artifacts."},
        "remote_repos": {
            "type": list,
            "default": [],
            "desc": "Remote repositories and registries, "
                    "list of {'name': ..., 'url': ..., 'kind': ...} dicts."},
        "num_builders": {
            "type": int,
            "default": 1,
            "desc": "Number of concurrent build slots."},
        "build_root": {
            "type": str,
            "default": "/var/tmp/build-root",
            "desc": "Build root template; {index} is replaced by the slot index."},
        "build_command": {
            "type": str,
            "default": "build --root {root} --arch {arch} --resultdir {resultdir} {recipe}",
            "desc": "Command line template used by the command executor."},
        "arch": {
            "type": str,
            "default": platform.machine() or "x86_64",
            "desc": "Host architecture builds are done for."},
        "failure_marker": {
            "type": str,
            "default": "_failed",
            "desc": "Name of the file marking a failed build in the result directory."},
        "build_log_name": {
            "type": str,
            "default": "_log",
            "desc": "Name of the build log file in the result directory."},
        "cycle_max_passes": {
            "type": int,
            "default": 5,
            "desc": "Maximum number of evaluation passes over one dependency cycle."},
        "lastcheck_min_length": {
            "type": int,
            "default": 32,
            "desc": "Cached fingerprints not longer than this are discarded as corrupt."},
        "net_timeout": {
            "type": int,
            "default": 120,
            "desc": "Global network timeout for read/write operations, in seconds."},
        "net_retry_interval": {
            "type": int,
            "default": 30,
            "desc": "Global network retry interval for read/write operations, in seconds."},
        "host": {
            "type": str,
            "default": "127.0.0.1",
            "desc": "Address the reporting web views listen on."},
        "port": {
            "type": int,
            "default": 5000,
            "desc": "Port the reporting web views listen on."},
        "log_backend": {
            "type": str,
            "default": None,
            "desc": "Log backend"},
        "log_file": {
            "type": str,
            "default": "",
            "desc": "Path to log file"},
        "log_level": {
            "type": str,
            "default": "info",
            "desc": "Log level"},
    }

    def __init__(self, conf_section_obj=None):
        """Initialize the Config object with defaults and then override them
        with runtime values."""

        for name, values in self._defaults.items():
            self.set_item(name, values["default"])

        if conf_section_obj is None:
            return

        for key in dir(conf_section_obj):
            if key.startswith("_"):
                continue
            self.set_item(key.lower(), getattr(conf_section_obj, key))

    def set_item(self, key, value):
        if key == "set_item" or key.startswith("_"):
            raise ValidationError("Configuration item's name is not allowed: %s" % key)

        # customized check & set if there's a corresponding handler
        setifok_func = "_setifok_{}".format(key)
        if hasattr(self, setifok_func):
            getattr(self, setifok_func)(value)
            return

        # passthrough for unmanaged configuration items
        if key not in self._defaults:
            setattr(self, key, value)
            return

        # type conversion for configuration item
        convert = self._defaults[key]["type"]
        if value is None or convert is None:
            setattr(self, key, value)
        elif convert in [bool, int, list, str]:
            try:
                setattr(self, key, convert(value))
            except (TypeError, ValueError):
                raise ValidationError(
                    "Configuration value conversion failed for name: %s" % key)
        else:
            raise ValidationError(
                "Unsupported type %s for configuration item name: %s" % (convert, key))

    def _setifok_system(self, s):
        s = str(s)
        if s not in ("command",):
            raise ValidationError("Unsupported build executor: %s." % s)
        self.system = s

    def _setifok_resolver(self, s):
        s = str(s)
        if s not in ("simple",):
            raise ValidationError("Unsupported resolver backend: %s." % s)
        self.resolver = s

    def _setifok_num_builders(self, i):
        if not isinstance(i, int):
            raise ValidationError("num_builders needs to be an int")
        if i < 1 or i > MAX_BUILDERS:
            raise ValidationError("num_builders must be between 1 and %d" % MAX_BUILDERS)
        self.num_builders = i

    def _setifok_cycle_max_passes(self, i):
        if not isinstance(i, int):
            raise ValidationError("cycle_max_passes needs to be an int")
        if i < 1:
            raise ValidationError("cycle_max_passes must be >= 1")
        self.cycle_max_passes = i

    def _setifok_remote_repos(self, repos):
        if not isinstance(repos, (list, tuple)):
            raise ValidationError("remote_repos needs to be a list.")
        checked = []
        for repo in repos:
            if not isinstance(repo, dict) or not repo.get("name") or not repo.get("url"):
                raise ValidationError("Remote repository needs a name and an url: %r" % (repo,))
            kind = repo.get("kind", "remote-repo")
            if kind not in SUPPORTED_REPO_KINDS:
                raise ValidationError("Unsupported remote repository kind: %s" % kind)
            checked.append({"name": str(repo["name"]), "url": str(repo["url"]), "kind": kind})
        self.remote_repos = checked

    def _setifok_log_backend(self, s):
        if s is None:
            s = "console"
        elif s not in logger.supported_log_backends():
            raise ValidationError("Unsupported log backend")
        self.log_backend = str(s)

    def _setifok_log_file(self, s):
        if s is None:
            self.log_file = ""
        else:
            self.log_file = str(s)

    def _setifok_log_level(self, s):
        if not isinstance(s, int):
            s = str(s).lower()
        self.log_level = logger.str_to_log_level(s)
