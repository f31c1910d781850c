# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
from os import environ, path

# FIXME: workaround for this moment till confdir, statedir (installdir etc.) are
# declared properly somewhere/somehow
confdir = path.abspath(path.dirname(__file__))
# use parent dir as the working dir else fallback to current dir
workdir = path.abspath(path.join(confdir, "..")) if confdir.endswith("conf") else confdir


class BaseConfiguration(object):
    DEBUG = False
    SYSTEM = "command"
    RESOLVER = "simple"

    RECIPES_DIR = path.join(workdir, "recipes")
    STATE_DIR = path.join(workdir, "state")
    LOCAL_REPO = path.join(workdir, "repo")
    REMOTE_REPOS = []

    NUM_BUILDERS = 1
    BUILD_ROOT = "/var/tmp/build-root.{index}"
    BUILD_COMMAND = "build --root {root} --arch {arch} --resultdir {resultdir} {recipe}"

    CYCLE_MAX_PASSES = 5

    # Where we should run when running "manage.py run" directly.
    HOST = "0.0.0.0"
    PORT = 5000


class TestConfiguration(BaseConfiguration):
    LOG_LEVEL = "debug"
    DEBUG = True

    STATE_DIR = environ.get("PBS_TEST_STATE_DIR", path.join(workdir, "test-state"))
    BUILD_ROOT = path.join(STATE_DIR, "roots", "{index}")
    BUILD_COMMAND = "true"

    # Global network-related values, in seconds
    NET_TIMEOUT = 3
    NET_RETRY_INTERVAL = 1


class ProdConfiguration(BaseConfiguration):
    RECIPES_DIR = "/var/lib/package-build-service/recipes"
    STATE_DIR = "/var/lib/package-build-service/state"
    LOCAL_REPO = "/var/lib/package-build-service/repo"
    NUM_BUILDERS = 4
    LOG_BACKEND = "file"
    LOG_FILE = "/var/log/package-build-service/pbs.log"


class LocalBuildConfiguration(BaseConfiguration):
    LOG_LEVEL = "debug"
    NUM_BUILDERS = 2
    BUILD_ROOT = path.expanduser("~/packagebuild/roots/{index}")


class DevConfiguration(LocalBuildConfiguration):
    DEBUG = True
