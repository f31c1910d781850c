# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" Durable state of the engine below conf.state_dir.

- results.json: package -> {"status": ..., "detail": ...}, rewritten in
  full after every pass
- lastcheck.json: package -> source fingerprint at the last pass
- history/<package>.jsonl: one JSON record per finished build

results.json and lastcheck.json are read by reporting tools while the
engine runs, so they are only ever replaced atomically.
"""

import json
import logging
import os

from package_build_service.common.errors import PersistenceError
from package_build_service.common.models import ResultEntry
from package_build_service.common.utils import write_json_atomically

log = logging.getLogger(__name__)

RESULTS_FILE = "results.json"
LASTCHECK_FILE = "lastcheck.json"
HISTORY_DIR = "history"


def _read_json(path, what):
    try:
        with open(path) as f:
            data = json.load(f)
    except IOError:
        return {}
    except ValueError as e:
        log.warning("Ignoring unreadable %s %s: %s", what, path, e)
        return {}
    if not isinstance(data, dict):
        log.warning("Ignoring %s %s, it is not a mapping", what, path)
        return {}
    return data


def _save(path, data):
    try:
        write_json_atomically(path, data)
    except OSError as e:
        raise PersistenceError("Can't write %s: %s" % (path, e))


class ResultStore(object):
    def __init__(self, state_dir):
        self.path = os.path.join(state_dir, RESULTS_FILE)

    def load(self):
        """ Return the stored results as a dict of name -> ResultEntry. """
        results = {}
        for name, data in _read_json(self.path, "result store").items():
            try:
                results[name] = ResultEntry.from_json(data)
            except (KeyError, TypeError, ValueError):
                log.warning("Ignoring invalid result of %s: %r", name, data)
        return results

    def save(self, results):
        """
        :param dict results: name -> ResultEntry
        :raises PersistenceError: if the file can't be written
        """
        _save(self.path, dict((name, entry.json()) for name, entry in results.items()))


class LastcheckCache(object):
    """ Fingerprints of the package sources seen by the last pass. """

    def __init__(self, state_dir, min_length=32):
        self.path = os.path.join(state_dir, LASTCHECK_FILE)
        self.min_length = min_length

    def load(self):
        cache = {}
        for name, fingerprint in _read_json(self.path, "lastcheck cache").items():
            if not isinstance(fingerprint, str) or len(fingerprint) <= self.min_length:
                log.debug("Discarding corrupt lastcheck entry of %s", name)
                continue
            cache[name] = fingerprint
        return cache

    def save(self, cache):
        _save(self.path, cache)


class BuildHistory(object):
    """ Append-only per-package log of finished builds. """

    def __init__(self, state_dir):
        self.directory = os.path.join(state_dir, HISTORY_DIR)

    def path(self, package_name):
        return os.path.join(self.directory, "%s.jsonl" % package_name)

    def append(self, job):
        record = {
            "package": job.package.name,
            "status": job.status.value,
            "reason": job.reason,
            "state_reason": job.state_reason,
            "start": job.start_time,
            "end": job.end_time,
            "duration": job.duration,
            "arch": job.arch,
            "builder": job.builder.name,
            "fingerprint": job.fingerprint,
            "artifacts": job.artifacts,
        }
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(self.path(job.package.name), "a") as f:
                f.write(json.dumps(record, sort_keys=True) + "\n")
        except OSError as e:
            raise PersistenceError("Can't append to the history of %s: %s" % (
                job.package.name, e))
        return record

    def read(self, package_name):
        records = []
        try:
            with open(self.path(package_name)) as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        records.append(json.loads(line))
                    except ValueError:
                        # A record cut short by an interrupted engine
                        log.warning("Skipping a truncated history record of %s", package_name)
        except IOError:
            return []
        return records

    def packages(self):
        try:
            entries = os.listdir(self.directory)
        except OSError:
            return []
        return sorted(e[:-len(".jsonl")] for e in entries if e.endswith(".jsonl"))
