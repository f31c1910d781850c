# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""
Logging functions.

At the beginning of the package build service code, the init_logging(conf)
function must be called, so the logging backend configured in the conf
object is used.

Every other module gets its own logger the usual way:

    import logging
    log = logging.getLogger(__name__)

or simply uses the package logger:

    from package_build_service import log
    log.info("Starting a build of %s", name)
"""

import logging

levels = {
    "debug": logging.DEBUG,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
}

level_flags = {
    "debug": levels["debug"],
    "verbose": levels["info"],
    "quiet": levels["error"],
}

log_format = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"


def str_to_log_level(level):
    """
    Returns internal representation of logging level defined
    by the string `level`.

    Available levels are: debug, info, warning, error
    """
    if isinstance(level, int):
        return level
    if level not in levels:
        return logging.NOTSET

    return levels[level]


def supported_log_backends():
    return ("console", "file")


def init_logging(conf):
    """
    Initializes logging according to configuration file.
    """
    log_backend = conf.log_backend

    root = logging.getLogger()
    # init_logging may be called more than once, e.g. by the CLI after the
    # package import already configured the defaults.
    for handler in list(root.handlers):
        if getattr(handler, "_pbs_handler", False):
            root.removeHandler(handler)

    if not log_backend or log_backend == "console":
        handler = logging.StreamHandler()
    else:
        handler = logging.FileHandler(conf.log_file)
    handler.setFormatter(logging.Formatter(log_format))
    handler._pbs_handler = True
    root.addHandler(handler)
    root.setLevel(conf.log_level)

    # requests/urllib3 are very chatty on debug
    logging.getLogger("urllib3").setLevel(max(conf.log_level, logging.INFO))
