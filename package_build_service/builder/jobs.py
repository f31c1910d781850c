# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" The pool of build slots and the life cycle of build jobs. """

import logging
import os
import queue
import shutil
import subprocess
import threading
import time

from package_build_service.builder.base import GenericBuilder
from package_build_service.common.errors import ProgrammingError
from package_build_service.common.models import Builder, Job, PackageStatus

log = logging.getLogger(__name__)

# Seconds a terminated job gets to exit before it is killed
TERMINATE_GRACE = 10


def builder_roots(template, count):
    """
    Build root paths for `count` slots. The slot index replaces {index} in
    the template; without the placeholder a pool of several slots appends
    ".<index>" to keep the roots distinct.
    """
    if "{index}" in template:
        return [template.replace("{index}", str(i)) for i in range(count)]
    if count == 1:
        return [template]
    return ["%s.%d" % (template, i) for i in range(count)]


def create_builders(config):
    roots = builder_roots(config.build_root, config.num_builders)
    return [Builder("builder%d" % i, i, root) for i, root in enumerate(roots)]


class JobWatcher(threading.Thread):
    """ Waits for the process of one job and reports it as done. """

    def __init__(self, job, done_queue):
        super(JobWatcher, self).__init__(name="watch-%s" % job.builder.name, daemon=True)
        self.job = job
        self.done_queue = done_queue

    def run(self):
        try:
            self.job.handle.wait()
        finally:
            self.done_queue.put(self.job)


class JobManager(object):
    """
    Owns the builders and the jobs running on them.

    Only the thread driving the engine calls into the manager; the watcher
    threads only post finished jobs to the completion queue.
    """

    def __init__(self, config, backend=None, builders=None):
        self.config = config
        self.backend = backend or GenericBuilder.create(config)
        self.builders = builders if builders is not None else create_builders(config)
        self.jobs_dir = os.path.join(config.state_dir, "jobs")
        self._done = queue.Queue()

    @property
    def active(self):
        return [b.job for b in self.builders if b.job is not None]

    def idle_builder(self):
        for builder in self.builders:
            if builder.idle:
                return builder
        return None

    def job_for(self, package_name):
        for job in self.active:
            if job.package.name == package_name:
                return job
        return None

    def assign(self, package, builder, dependencies=None, reason="new build"):
        """ Start a build of `package` on the idle `builder`.

        :return: the started Job
        :raises BuilderError: if the backend can't start the build
        """
        if not builder.idle:
            raise ProgrammingError("%r is busy" % builder)
        if self.job_for(package.name) is not None:
            raise ProgrammingError("%s is already building" % package.name)

        resultdir = os.path.join(self.jobs_dir, builder.name)
        shutil.rmtree(resultdir, ignore_errors=True)
        os.makedirs(resultdir)

        job = Job(package, builder, self.config.arch, reason, resultdir, dependencies)
        job.start_time = time.time()
        job.handle = self.backend.start(job)
        builder.job = job
        JobWatcher(job, self._done).start()
        log.info("Started build of %s on %s (%s)", package.name, builder.name, reason)
        return job

    def wait_for_any(self):
        """ Block until one of the active jobs terminated and return it. """
        if not self.active:
            raise ProgrammingError("There is no job to wait for")
        return self._done.get()

    def finish(self, job):
        """ Collect exit status and artifacts of a terminated job. """
        job.returncode = job.handle.wait()
        job.end_time = time.time()

        try:
            marker_text = self._read_marker(job)
            job.artifacts = self._list_artifacts(job)
        except OSError as e:
            log.error("Can't read the results of %s in %s: %s",
                      job.package.name, job.resultdir, e)
            job.artifacts = []
            job.status = PackageStatus.failed
            job.state_reason = "can't read the build results: %s" % (e.strerror or e)
            return job

        if job.returncode != 0:
            job.status = PackageStatus.failed
            job.state_reason = marker_text or "exit status %d" % job.returncode
        elif marker_text is not None:
            job.status = PackageStatus.failed
            job.state_reason = marker_text
        else:
            job.status = PackageStatus.succeeded
            job.state_reason = None

        log.info("Build of %s on %s finished: %s%s", job.package.name, job.builder.name,
                 job.status.value, " (%s)" % job.state_reason if job.state_reason else "")
        return job

    def _read_marker(self, job):
        marker = os.path.join(job.resultdir, self.config.failure_marker)
        if not os.path.exists(marker):
            return None
        with open(marker) as f:
            return f.read().strip() or "build left a failure marker"

    def _list_artifacts(self, job):
        ignored = (self.config.failure_marker, self.config.build_log_name)
        return sorted(
            f for f in os.listdir(job.resultdir)
            if f not in ignored and not f.startswith(".")
            and os.path.isfile(os.path.join(job.resultdir, f)))

    def release(self, job):
        if job.builder.job is job:
            job.builder.job = None

    def shutdown(self):
        """ Terminate all running jobs, then wait for them to exit. """
        jobs = self.active
        for job in jobs:
            if job.handle.poll() is None:
                log.warning("Terminating build of %s on %s", job.package.name, job.builder.name)
                job.handle.terminate()
        for job in jobs:
            try:
                job.handle.wait(timeout=TERMINATE_GRACE)
            except subprocess.TimeoutExpired:
                log.warning("Killing build of %s on %s", job.package.name, job.builder.name)
                job.handle.kill()
                job.handle.wait()
            self.release(job)
