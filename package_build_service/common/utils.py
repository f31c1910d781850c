# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" Utility functions for package_build_service. """

import functools
import hashlib
import json
import logging
import os
import tempfile
import time

import yaml

log = logging.getLogger(__name__)


def retry(timeout=120, interval=30, wait_on=Exception):
    """ A decorator that allows to retry a section of code...
    ...until success or timeout.
    """

    def wrapper(function):
        @functools.wraps(function)
        def inner(*args, **kwargs):
            start = time.time()
            while True:
                try:
                    return function(*args, **kwargs)
                except wait_on as e:
                    if (time.time() - start) >= timeout:
                        raise
                    log.warning(
                        "Exception %r raised from %r.  Retry in %rs", e, function, interval)
                    time.sleep(interval)

        return inner

    return wrapper


def write_atomically(path, content):
    """ Replace the file at `path` with `content` in one step.

    The data is written to a temporary file in the same directory, flushed
    to disk and renamed over `path`. Readers see either the old or the new
    file, never a partial one.

    :param str path: destination file
    :param content: str or bytes to store
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    mode = "wb" if isinstance(content, bytes) else "w"
    tmp = tempfile.NamedTemporaryFile(
        mode, dir=directory, prefix=".%s." % os.path.basename(path), delete=False)
    try:
        with tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        os.unlink(tmp.name)
        raise


def write_json_atomically(path, data):
    write_atomically(path, json.dumps(data, indent=2, sort_keys=True) + "\n")


def write_yaml_atomically(path, data):
    write_atomically(path, yaml.safe_dump(data, default_flow_style=False))


def fingerprint_directory(directory):
    """ Compute the content fingerprint of a package source directory.

    Every regular file below `directory` takes part except hidden files and
    directories (version control metadata).

    :return: sha256 hex digest
    """
    digest = hashlib.sha256()
    for root, dirs, files in os.walk(directory):
        dirs[:] = sorted(d for d in dirs if not d.startswith("."))
        for filename in sorted(files):
            if filename.startswith("."):
                continue
            path = os.path.join(root, filename)
            if not os.path.isfile(path):
                continue
            file_digest = hashlib.sha256()
            with open(path, "rb") as f:
                for chunk in iter(functools.partial(f.read, 65536), b""):
                    file_digest.update(chunk)
            relpath = os.path.relpath(path, directory)
            digest.update(("%s %s\n" % (relpath, file_digest.hexdigest())).encode("utf-8"))
    return digest.hexdigest()
