# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Generic build executor functions."""

from abc import ABCMeta, abstractmethod

from package_build_service.common.errors import ValidationError


class GenericBuilder(metaclass=ABCMeta):
    """
    External Api for build executors

    An executor knows how to run the build of one package in an isolated
    build root. The engine only starts jobs and waits for them; everything
    happening inside the build root is up to the executor.

    Example usage:
        backend = GenericBuilder.create(conf)
        job.handle = backend.start(job)
        ...
        job.handle.wait()

    The result directory of the job (job.resultdir) receives the produced
    artifacts, the build log and, if the build failed even though the
    process exited with 0, a failure marker file (conf.failure_marker).
    """

    _builder_classes = {}

    # Backend name. Each subclass of GenericBuilder must set its own name.
    backend = "generic"

    @classmethod
    def register_backend_class(cls, backend_class):
        GenericBuilder._builder_classes[backend_class.backend] = backend_class

    @classmethod
    def create(cls, config, backend=None, **extra):
        """
        :param config: the Config instance
        :param backend: a string representing the executor e.g. 'command';
            defaults to config.system
        """
        if backend is None:
            backend = config.system

        if backend in GenericBuilder._builder_classes:
            return GenericBuilder._builder_classes[backend](config, **extra)
        raise ValidationError("Builder backend %r is not recognized" % backend)

    @abstractmethod
    def start(self, job):
        """
        Start the build of job.package in job.builder.root.

        :param Job job: the job to start; job.dependencies lists the binary
            names the build needs, job.arch the target architecture
        :return: a handle to the running build with the subprocess.Popen
            interface (wait, poll, terminate, kill, returncode)
        :raises BuilderError: if the build can't be started
        """
        raise NotImplementedError()
