# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""The package build orchestrator.

The orchestrator coordinates builds of a tree of package recipes and is
responsible for a number of tasks:

- Discovering the packages and their recipes, and noticing when the
  sources change.
- Expanding the build dependencies of every package against the local
  repository and the configured remote repositories and registries.
- Ordering the packages, including mutually dependent ones, and deciding
  for every package whether it can be built right now.
- Running the builds on a bounded pool of isolated build roots and
  integrating the produced binaries into the local repository.
- Persisting the status of every package so that reporting tools can read
  it at any time and so that a restarted run skips finished work.
"""

from importlib.metadata import version as _dist_version, PackageNotFoundError
from logging import getLogger

from package_build_service.common.config import init_config
from package_build_service.common.logger import init_logging, level_flags

try:
    version = _dist_version("package-build-service")
except PackageNotFoundError:
    version = "unknown"
api_version = 1

conf, config_section = init_config()

init_logging(conf)
log = getLogger(__name__)


def set_verbosity(debug=False, verbose=False, quiet=False):
    if debug:
        log.setLevel(level_flags["debug"])
    elif verbose:
        log.setLevel(level_flags["verbose"])
    elif quiet:
        log.setLevel(level_flags["quiet"])
