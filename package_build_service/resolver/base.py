# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Generic dependency resolver functions."""

from abc import ABCMeta, abstractmethod

from package_build_service.common.errors import ValidationError


class GenericResolver(metaclass=ABCMeta):
    """
    External Api for resolvers
    """

    _resolvers = {}

    # Resolver name. Each subclass of GenericResolver must set its own name.
    backend = "generic"

    @classmethod
    def register_backend_class(cls, backend_class):
        GenericResolver._resolvers[backend_class.backend] = backend_class

    @classmethod
    def create(cls, config, backend=None):
        """
        :param config: the Config instance
        :param backend: a string representing resolver e.g. 'simple'

        Example:
            GenericResolver.create(conf, backend="simple")
        """
        if backend is None:
            backend = config.resolver

        if backend in GenericResolver._resolvers:
            return GenericResolver._resolvers[backend](config)
        raise ValidationError("Resolver %r is not recognized" % backend)

    @abstractmethod
    def expand(self, package, pool, providers):
        """
        Expand the declared build requirements of a package.

        :param Package package: the package to expand
        :param RepositoryPool pool: binaries available right now
        :param dict providers: binary name -> sorted list of names of the
            packages under build which declare it as an output
        :return: list of (binary name, providing package name or None) tuples
            in declaration order; None means the binary comes from a
            repository of the pool
        :raises DependencyError: if a requirement can't be satisfied
        """
        raise NotImplementedError()
