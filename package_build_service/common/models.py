# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" In-memory data model of one engine run. """

import enum

from package_build_service.common.errors import ProgrammingError


class PackageStatus(enum.Enum):
    # Buildable, waiting for dispatch
    scheduled = "scheduled"
    # A job for the package is running on a builder
    building = "building"
    # Dependencies are not ready yet, or no builder is free
    blocked = "blocked"
    succeeded = "succeeded"
    failed = "failed"
    # The recipe can't be used
    broken = "broken"
    excluded = "excluded"
    disabled = "disabled"
    locked = "locked"
    # Dependencies can't be expanded against the repository pool
    unresolvable = "unresolvable"


class ErrorKind(enum.Enum):
    broken = "broken"
    excluded = "excluded"
    disabled = "disabled"
    locked = "locked"


# Recipe directives which are policy decisions rather than defects
POLICY_ERROR_KINDS = (ErrorKind.excluded, ErrorKind.disabled, ErrorKind.locked)

# Statuses which put a use-for-build package into the notready set
NOTREADY_STATES = (PackageStatus.scheduled, PackageStatus.building, PackageStatus.blocked)


class RepositoryKind(enum.Enum):
    local = "local"
    remote_repo = "remote-repo"
    remote_registry = "remote-registry"


class PackageError(object):
    def __init__(self, kind, message):
        self.kind = kind
        self.message = message

    def __eq__(self, other):
        return isinstance(other, PackageError) \
            and (self.kind, self.message) == (other.kind, other.message)

    def __repr__(self):
        return "<PackageError %s: %r>" % (self.kind.value, self.message)


class Recipe(object):
    """ Build metadata of a package as returned by a recipe parser. """

    def __init__(self, build_type="generic", buildrequires=None, provides=None,
                 use_for_build=True, exclusive_arches=None, directive=None):
        self.build_type = build_type
        self.buildrequires = list(buildrequires or [])
        self.provides = list(provides or [])
        self.use_for_build = use_for_build
        self.exclusive_arches = list(exclusive_arches or [])
        # PackageError for an excluded/disabled/locked directive, or None
        self.directive = directive

    def __repr__(self):
        return "<Recipe %s, buildrequires=%r, provides=%r>" % (
            self.build_type, self.buildrequires, self.provides)


class Package(object):
    """ One buildable unit found by the package registry.

    Only recipe, fingerprint and error are refreshed between passes.
    """

    def __init__(self, name, directory, recipe=None, fingerprint=None, error=None):
        self.name = name
        self.directory = directory
        self.recipe = recipe
        self.fingerprint = fingerprint
        self.error = error

    @property
    def provides(self):
        if self.recipe is None:
            return []
        return self.recipe.provides

    @property
    def use_for_build(self):
        return self.recipe is not None and self.recipe.use_for_build

    def __repr__(self):
        return "<Package %s, fingerprint=%s, error=%r>" % (
            self.name, (self.fingerprint or "")[:12], self.error)


class ResultEntry(object):
    def __init__(self, status, detail=None):
        self.status = status
        self.detail = detail

    def json(self):
        rv = {"status": self.status.value}
        if self.detail:
            rv["detail"] = self.detail
        return rv

    @classmethod
    def from_json(cls, data):
        return cls(PackageStatus(data["status"]), data.get("detail"))

    def __eq__(self, other):
        return isinstance(other, ResultEntry) \
            and (self.status, self.detail) == (other.status, other.detail)

    def __repr__(self):
        return "<ResultEntry %s %r>" % (self.status.value, self.detail)


class Builder(object):
    """ A build slot: an isolated build root running at most one job. """

    def __init__(self, name, index, root):
        self.name = name
        self.index = index
        self.root = root
        self.job = None

    @property
    def idle(self):
        return self.job is None

    def __repr__(self):
        return "<Builder %s, root=%s, job=%r>" % (self.name, self.root, self.job)


class Job(object):
    """ One build attempt of a package on a builder. """

    def __init__(self, package, builder, arch, reason, resultdir, dependencies=None):
        self.package = package
        self.builder = builder
        self.arch = arch
        self.reason = reason
        self.resultdir = resultdir
        self.dependencies = list(dependencies or [])
        # Source state the job builds, the package may change meanwhile
        self.fingerprint = package.fingerprint
        self.start_time = None
        self.end_time = None
        self.handle = None
        self.returncode = None
        self.artifacts = []
        self.status = None
        self.state_reason = None

    @property
    def duration(self):
        if self.start_time is None or self.end_time is None:
            return None
        return int(self.end_time - self.start_time)

    def __repr__(self):
        return "<Job %s on %s, reason=%r>" % (self.package.name, self.builder.name, self.reason)


class Cycle(object):
    """ A set of mutually dependent packages handled as one unit.

    The passes counter is bounded by max_passes; advance() refuses to go past
    it so a cycle which can't make progress is given up on.
    """

    def __init__(self, members, max_passes):
        self.members = tuple(sorted(members))
        self.cycle_id = "+".join(self.members)
        self.max_passes = max_passes
        self.passes = 0

    @property
    def exhausted(self):
        return self.passes >= self.max_passes

    def advance(self):
        if self.exhausted:
            raise ProgrammingError(
                "Cycle %s already evaluated %d times" % (self.cycle_id, self.passes))
        self.passes += 1
        return self.passes

    def __contains__(self, name):
        return name in self.members

    def __repr__(self):
        return "<Cycle %s, passes=%d/%d>" % (self.cycle_id, self.passes, self.max_passes)
