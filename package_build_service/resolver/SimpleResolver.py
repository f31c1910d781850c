# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT

from package_build_service.common.errors import DependencyError
from package_build_service.resolver.base import GenericResolver


class SimpleResolver(GenericResolver):
    """
    Resolver matching requirement names against binary names.

    A package under build declaring the name wins over the repositories,
    so that ordering follows the build tree. Among repositories the pool
    order decides.
    """

    backend = "simple"

    def __init__(self, config):
        self.config = config

    def expand(self, package, pool, providers):
        resolved = []
        missing = []
        for name in package.recipe.buildrequires:
            candidates = [p for p in providers.get(name, []) if p != package.name]
            if len(candidates) > 1:
                raise DependencyError("have choice for %s: %s" % (name, ", ".join(candidates)))
            if candidates:
                resolved.append((name, candidates[0]))
            elif pool.provides(name):
                resolved.append((name, None))
            else:
                missing.append(name)

        if missing:
            raise DependencyError("nothing provides %s" % ", ".join(missing))
        return resolved
