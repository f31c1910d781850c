# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" The control loop of the engine. """

import logging

from package_build_service.builder import JobManager
from package_build_service.common.errors import PersistenceError
from package_build_service.common.models import ResultEntry
from package_build_service.integrator import ArtifactIntegrator
from package_build_service.registry import PackageRegistry
from package_build_service.repos import create_pool
from package_build_service.resolver import GenericResolver
from package_build_service.scheduler.check import EngineContext, FinishedBuild, run_pass
from package_build_service.scheduler.graph import DependencyGraph
from package_build_service.scheduler.pkgsort import pkgsort
from package_build_service.store import BuildHistory, LastcheckCache, ResultStore

log = logging.getLogger(__name__)

__all__ = ["Engine", "main"]


class Engine(object):
    """
    Runs passes over all packages until nothing is building any more.

    Between two passes the loop waits for one job to finish and integrates
    its artifacts. The dependency graph and the build order are recomputed
    whenever the local repository or a package changed.
    """

    def __init__(self, config, ctx):
        self.config = config
        self.ctx = ctx
        self.store = ResultStore(config.state_dir)
        self.lastcheck = LastcheckCache(config.state_dir, config.lastcheck_min_length)
        self.history = BuildHistory(config.state_dir)
        self.integrator = ArtifactIntegrator(ctx.pool.local, self.history)
        self.stale = True

        ctx.previous = self.store.load()
        ctx.lastcheck = self.lastcheck.load()

    @classmethod
    def create(cls, config, dispatch=True, builder=None):
        """ Set up an engine from the configuration.

        :param bool dispatch: start builds, or only evaluate the packages
        :param GenericBuilder builder: build executor to use instead of the
            configured one
        :raises RegistryError: if the recipes directory can't be read
        """
        registry = PackageRegistry(config)
        registry.scan()
        pool = create_pool(config)
        resolver = GenericResolver.create(config)
        jobs = JobManager(config, backend=builder) if dispatch else None
        return cls(config, EngineContext(config, registry, pool, resolver, jobs))

    def update_graph(self):
        ctx = self.ctx
        changed = ctx.registry.refresh()
        if not (changed or self.stale or ctx.graph is None):
            return
        ctx.graph = DependencyGraph(
            ctx.registry, ctx.pool, ctx.resolver, self.config.cycle_max_passes).build()
        ctx.order = pkgsort(ctx.graph)
        self.stale = False
        log.debug("Build order: %s", ", ".join(ctx.order))

    def single_pass(self):
        """ Evaluate all packages once and persist the results.

        :raises PersistenceError: if the state can't be written
        """
        self.update_graph()
        results = run_pass(self.ctx)
        self.store.save(results)
        self.lastcheck.save(dict(
            (p.name, p.fingerprint) for p in self.ctx.registry if p.fingerprint))
        return results

    def handle_finished(self, job):
        """ Collect a terminated job, integrate it and free its builder. """
        jobs = self.ctx.jobs
        try:
            jobs.finish(job)
            self.integrator.integrate(job)
        finally:
            jobs.release(job)
        self.ctx.finished[job.package.name] = FinishedBuild(
            job.fingerprint, ResultEntry(job.status, job.state_reason))
        self.stale = True

    def run(self):
        """ Run passes until no job is active.

        When the run is interrupted the running jobs are terminated and the
        packages are evaluated once more without them, so the stored results
        don't report builds which no longer exist.

        :return: the results of the last pass
        """
        jobs = self.ctx.jobs
        try:
            while True:
                results = self.single_pass()
                if jobs is None or not jobs.active:
                    return results
                self.handle_finished(jobs.wait_for_any())
        finally:
            if jobs is not None:
                interrupted = bool(jobs.active)
                jobs.shutdown()
                if interrupted:
                    self.save_interrupted()

    def save_interrupted(self):
        ctx = self.ctx
        if ctx.graph is None:
            return
        jobs, ctx.jobs = ctx.jobs, None
        try:
            self.store.save(run_pass(ctx))
        except PersistenceError as e:
            log.error("Can't store the results of the interrupted run: %s", e)
        finally:
            ctx.jobs = jobs


def main(config, dispatch=True, builder=None):
    """ Build everything that can be built and return the final results. """
    engine = Engine.create(config, dispatch=dispatch, builder=builder)
    return engine.run()
