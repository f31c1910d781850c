# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" Status evaluation of the packages, one pass at a time. """

import collections
import logging

from package_build_service.common.errors import BuilderError
from package_build_service.common.models import (
    NOTREADY_STATES, POLICY_ERROR_KINDS, PackageStatus, ResultEntry)

log = logging.getLogger(__name__)

WAITING_FOR_BUILDER = "waiting for free builder"

# Outcome of a job finished in this run, for the source state it built
FinishedBuild = collections.namedtuple("FinishedBuild", ["fingerprint", "result"])


class EngineContext(object):
    """
    Everything one engine instance evaluates packages against.

    previous and lastcheck are the results and fingerprints as they were
    stored when the run started; finished collects the outcome of the jobs
    of this run. Without a job manager nothing is dispatched and buildable
    packages stay scheduled.
    """

    def __init__(self, config, registry, pool, resolver, jobs=None):
        self.config = config
        self.registry = registry
        self.pool = pool
        self.resolver = resolver
        self.jobs = jobs
        self.graph = None
        self.order = []
        self.previous = {}
        self.lastcheck = {}
        self.finished = {}
        self.results = {}
        self.notready = set()

    @property
    def dispatch(self):
        return self.jobs is not None


def check_package(ctx, package, tolerated=()):
    """ Decide the status of one package without starting anything.

    :param EngineContext ctx: the engine context
    :param Package package: the package to check
    :param tolerated: providers which may be in notready as long as their
        binaries are available, used for the members of a cycle
    :return: ResultEntry
    """
    name = package.name
    if package.error is not None:
        if package.error.kind in POLICY_ERROR_KINDS:
            return ResultEntry(PackageStatus(package.error.kind.value), package.error.message)
        return ResultEntry(PackageStatus.broken, package.error.message)

    if name in ctx.graph.errors:
        return ResultEntry(PackageStatus.unresolvable, ctx.graph.errors[name])

    if ctx.jobs is not None:
        job = ctx.jobs.job_for(name)
        if job is not None:
            return ResultEntry(PackageStatus.building, _builder_detail(ctx, job.builder))

    finished = ctx.finished.get(name)
    if finished is not None and finished.fingerprint == package.fingerprint:
        return finished.result

    previous = ctx.previous.get(name)
    if previous is not None and previous.status == PackageStatus.succeeded \
            and ctx.lastcheck.get(name) == package.fingerprint:
        missing = [b for b in package.provides if not ctx.pool.provides(b)]
        if not missing:
            return ResultEntry(PackageStatus.succeeded)
        log.info("%s is unchanged but %s is missing from the repositories",
                 name, ", ".join(missing))

    waiting = []
    for binary, provider in ctx.graph.requires.get(name, []):
        if provider is None or provider in waiting:
            continue
        if not ctx.pool.provides(binary):
            waiting.append(provider)
        elif provider in ctx.notready and provider not in tolerated:
            waiting.append(provider)
    if waiting:
        return ResultEntry(PackageStatus.blocked, "waiting for %s" % ", ".join(sorted(waiting)))

    return ResultEntry(PackageStatus.scheduled)


def _builder_detail(ctx, builder):
    if len(ctx.jobs.builders) > 1:
        return builder.name
    return None


def build_reason(ctx, package):
    previous = ctx.previous.get(package.name)
    if previous is None:
        return "new build"
    if ctx.lastcheck.get(package.name) != package.fingerprint:
        return "source change"
    if previous.status == PackageStatus.failed:
        return "retrying failed build"
    return "rebuild"


def dispatch(ctx, package):
    """ Start a job for a scheduled package if a builder is free. """
    builder = ctx.jobs.idle_builder()
    if builder is None:
        return ResultEntry(PackageStatus.blocked, WAITING_FOR_BUILDER)

    dependencies = [binary for binary, _ in ctx.graph.requires.get(package.name, [])]
    try:
        job = ctx.jobs.assign(package, builder, dependencies, build_reason(ctx, package))
    except BuilderError as e:
        log.error("Can't start the build of %s: %s", package.name, e)
        result = ResultEntry(PackageStatus.failed, str(e))
        ctx.finished[package.name] = FinishedBuild(package.fingerprint, result)
        return result
    return ResultEntry(PackageStatus.building, _builder_detail(ctx, job.builder))


def evaluate(ctx, package, tolerated=()):
    """ Check one package, dispatch it if possible and record the result. """
    result = check_package(ctx, package, tolerated)
    if result.status == PackageStatus.scheduled and ctx.dispatch:
        result = dispatch(ctx, package)
    settle(ctx, package, result)
    return result


def settle(ctx, package, result):
    ctx.results[package.name] = result
    if result.status in NOTREADY_STATES and package.use_for_build:
        ctx.notready.add(package.name)
    else:
        ctx.notready.discard(package.name)


class CycleHandler(object):
    """
    Evaluates the members of one dependency cycle together.

    The first pass applies the normal rules. Following passes re-check the
    members which are still blocked and accept providers from the same cycle
    which aren't ready, provided their binaries exist in the pool. The cycle
    is given up on when a pass decides nothing new or when it ran out of
    passes; the remaining members stay blocked.
    """

    def __init__(self, ctx, cycle):
        self.ctx = ctx
        self.cycle = cycle

    def run(self):
        ctx = self.ctx
        pending = list(self.cycle.members)
        tolerated = ()
        while pending and not self.cycle.exhausted:
            passes = self.cycle.advance()
            still_blocked = []
            for name in pending:
                result = evaluate(ctx, ctx.registry.get(name), tolerated)
                if result.status == PackageStatus.blocked:
                    still_blocked.append(name)
            progress = len(still_blocked) < len(pending)
            pending = still_blocked
            if passes > 1 and not progress:
                break
            tolerated = frozenset(self.cycle.members)

        for name in pending:
            result = ctx.results[name]
            if result.detail != WAITING_FOR_BUILDER:
                result.detail = "%s (cycle %s)" % (result.detail, self.cycle.cycle_id)
        if pending:
            log.info("Giving up on %s after %d passes, still blocked: %s",
                     self.cycle.cycle_id, self.cycle.passes, ", ".join(pending))
        return pending


def run_pass(ctx):
    """ Evaluate every package once, in build order.

    :return: dict of package name -> ResultEntry
    """
    ctx.results = {}
    ctx.notready = set()
    handled = set()
    for name in ctx.order:
        if name in handled:
            continue
        members = ctx.graph.cycle_of(name)
        if members is not None:
            CycleHandler(ctx, ctx.graph.new_cycle(members)).run()
            handled.update(members)
        else:
            evaluate(ctx, ctx.registry.get(name))
            handled.add(name)

    counts = collections.Counter(r.status.value for r in ctx.results.values())
    log.info("Pass finished: %s", ", ".join(
        "%d %s" % (counts[s], s) for s in sorted(counts)))
    return ctx.results
