# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" Binary sources the dependencies of the packages are expanded against. """

import logging
import os

import munch
import requests
import yaml

from package_build_service.common.errors import RepositoryError
from package_build_service.common.models import RepositoryKind
from package_build_service.common.request_utils import requests_session
from package_build_service.common.utils import retry, write_yaml_atomically

log = logging.getLogger(__name__)

LOCAL_INDEX = "index.yaml"


def _to_binaries(data, defaults=None):
    """ Normalize a snapshot into a dict of name -> Munch metadata.

    A snapshot is either a list of names or a mapping of names to metadata
    mappings (or None).

    :raises RepositoryError: if the snapshot has any other shape
    """
    if data is None:
        return {}
    if isinstance(data, list):
        if not all(isinstance(name, (str, int, float)) for name in data):
            raise RepositoryError("Repository snapshot lists something else than names")
        data = dict((name, None) for name in data)
    if not isinstance(data, dict):
        raise RepositoryError("Unexpected repository snapshot of type %s" % type(data).__name__)

    binaries = {}
    for name, metadata in data.items():
        if metadata is not None and not isinstance(metadata, dict):
            raise RepositoryError("Metadata of %s is not a mapping" % name)
        entry = munch.Munch(defaults or {})
        entry.update(metadata or {})
        binaries[str(name)] = entry
    return binaries


class Repository(object):
    """
    A source of available binaries or containers.

    Subclasses implement fetch(), which returns the current snapshot as a
    dict of binary name -> metadata.
    """

    kind = None

    def __init__(self, name, location, url=None):
        self.name = name
        self.location = location
        self.url = url
        self.binaries = {}

    def fetch(self):
        raise NotImplementedError()

    def load(self):
        self.binaries = self.fetch()
        log.debug("%r provides %d binaries", self, len(self.binaries))
        return self.binaries

    def provides(self, name):
        return name in self.binaries

    def names(self):
        return set(self.binaries)

    def __repr__(self):
        return "<%s %s>" % (self.__class__.__name__, self.name)


class LocalRepository(Repository):
    """
    The repository receiving the artifacts built by this engine. It is the
    only repository ever written to, see package_build_service.integrator.

    Layout: one directory per package holding its artifacts, and an
    aggregated index.yaml mapping binary names to their package and file.
    """

    kind = RepositoryKind.local

    def __init__(self, location):
        super(LocalRepository, self).__init__("local", location)

    @property
    def index_path(self):
        return os.path.join(self.location, LOCAL_INDEX)

    def fetch(self):
        try:
            with open(self.index_path) as f:
                return _to_binaries(yaml.safe_load(f))
        except IOError:
            # Nothing was built yet
            return {}
        except (yaml.YAMLError, RepositoryError) as e:
            log.error("Ignoring the corrupt local repository index %s: %s", self.index_path, e)
            return {}

    def package_dir(self, package_name):
        return os.path.join(self.location, package_name)

    def binaries_of(self, package_name):
        return sorted(
            name for name, entry in self.binaries.items() if entry.get("package") == package_name)

    def update_package(self, package_name, binaries):
        """ Replace the index entries of one package and write the index.

        :param str package_name: the package the binaries were built from
        :param dict binaries: binary name -> artifact file name
        """
        index = dict(
            (name, dict(entry)) for name, entry in self.binaries.items()
            if entry.get("package") != package_name)
        for name, filename in binaries.items():
            index[name] = {"package": package_name, "filename": filename}
        write_yaml_atomically(self.index_path, index)
        self.binaries = _to_binaries(index)


class RemoteRepository(Repository):
    """
    A remote binary repository publishing an index.yaml in the same format
    as the local repository.

    Snapshots are fetched once per run. The last good snapshot is kept in
    ``location`` and used when the remote side is unavailable.
    """

    kind = RepositoryKind.remote_repo

    def __init__(self, name, location, url, config):
        super(RemoteRepository, self).__init__(name, location, url)
        self.config = config

    def _request(self):
        return "%s/%s" % (self.url.rstrip("/"), LOCAL_INDEX)

    def _parse(self, response):
        return yaml.safe_load(response.text)

    def _download(self):
        url = self._request()

        @retry(timeout=self.config.net_timeout, interval=self.config.net_retry_interval,
               wait_on=(requests.ConnectionError, requests.Timeout))
        def get():
            return requests_session.get(url, timeout=self.config.net_timeout)

        try:
            rv = get()
        except requests.RequestException as e:
            raise RepositoryError("Failed to fetch %s: %s" % (url, e))
        if not rv.ok:
            raise RepositoryError(
                "Failed to fetch %s: status code %d" % (url, rv.status_code))
        try:
            return self._parse(rv)
        except (ValueError, yaml.YAMLError) as e:
            raise RepositoryError("Invalid data from %s: %s" % (url, e))

    def fetch(self):
        try:
            binaries = _to_binaries(self._download(), {"repository": self.name})
        except RepositoryError as e:
            log.warning("Repository %s is unavailable: %s", self.name, e)
            return self._cached_snapshot()

        write_yaml_atomically(self.location, dict(
            (name, dict(entry)) for name, entry in binaries.items()))
        return binaries

    def _cached_snapshot(self):
        try:
            with open(self.location) as f:
                data = yaml.safe_load(f)
            binaries = _to_binaries(data)
        except (IOError, yaml.YAMLError, RepositoryError):
            log.warning("No usable snapshot of %s, it provides nothing in this run", self.name)
            return {}
        log.info("Using the last snapshot of %s with %d binaries", self.name, len(binaries))
        return binaries


class RegistryRepository(RemoteRepository):
    """ A container registry speaking the registry HTTP API v2. """

    kind = RepositoryKind.remote_registry

    def _request(self):
        return "%s/v2/_catalog" % self.url.rstrip("/")

    def _parse(self, response):
        data = response.json()
        if not isinstance(data, dict):
            raise RepositoryError("Unexpected catalog of type %s" % type(data).__name__)
        repositories = data.get("repositories") or []
        if not isinstance(repositories, list) \
                or not all(isinstance(name, str) for name in repositories):
            raise RepositoryError("The catalog does not list repository names")
        return dict((name, {"type": "container"}) for name in repositories)


class RepositoryPool(object):
    """ Ordered list of repositories, the local one first. """

    def __init__(self, repositories):
        self.repositories = list(repositories)

    @property
    def local(self):
        for repo in self.repositories:
            if repo.kind == RepositoryKind.local:
                return repo
        return None

    def provider_of(self, name):
        """ Return the first repository providing `name`, or None. """
        for repo in self.repositories:
            if repo.provides(name):
                return repo
        return None

    def provides(self, name):
        return self.provider_of(name) is not None

    def names(self):
        rv = set()
        for repo in self.repositories:
            rv |= repo.names()
        return rv

    def load(self):
        for repo in self.repositories:
            repo.load()


def create_pool(config):
    """ Create and load the repository pool described by the configuration. """
    repositories = [LocalRepository(config.local_repo)]
    snapshots_dir = os.path.join(config.state_dir, "remote")
    for remote in config.remote_repos:
        location = os.path.join(snapshots_dir, "%s.yaml" % remote["name"])
        if remote["kind"] == RepositoryKind.remote_registry.value:
            repo = RegistryRepository(remote["name"], location, remote["url"], config)
        else:
            repo = RemoteRepository(remote["name"], location, remote["url"], config)
        repositories.append(repo)

    pool = RepositoryPool(repositories)
    pool.load()
    return pool
