# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" Dependency graph of the packages under build and its cycles. """

import logging

from package_build_service.common.errors import DependencyError
from package_build_service.common.models import Cycle

log = logging.getLogger(__name__)


def strongly_connected_components(nodes, edges):
    """
    Tarjan's algorithm, iterative so deep dependency chains don't hit the
    recursion limit.

    :param list nodes: all node names; the visiting order follows this list
    :param dict edges: node -> list of nodes it points to
    :return: list of components, each a sorted tuple of node names
    """
    index = {}
    lowlink = {}
    stack = []
    on_stack = set()
    components = []
    counter = 0

    for root in nodes:
        if root in index:
            continue
        index[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        work = [(root, iter(edges.get(root, ())))]

        while work:
            node, children = work[-1]
            for child in children:
                if child not in index:
                    index[child] = lowlink[child] = counter
                    counter += 1
                    stack.append(child)
                    on_stack.add(child)
                    work.append((child, iter(edges.get(child, ()))))
                    break
                elif child in on_stack:
                    lowlink[node] = min(lowlink[node], index[child])
            else:
                work.pop()
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[node])
                if lowlink[node] == index[node]:
                    component = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(member)
                        if member == node:
                            break
                    components.append(tuple(sorted(component)))

    return components


class DependencyGraph(object):
    """
    Expanded build dependencies of all packages of a registry against a
    repository pool.

    Attributes filled by build():

    - requires: package -> list of (binary name, provider package or None)
    - errors: package -> expansion error message
    - edges: package -> providing packages, in declaration order
    - components: strongly connected components covering every package
    - cycles: the components with more than one member
    """

    def __init__(self, registry, pool, resolver, cycle_max_passes=5):
        self.registry = registry
        self.pool = pool
        self.resolver = resolver
        self.cycle_max_passes = cycle_max_passes
        self.requires = {}
        self.errors = {}
        self.edges = {}
        self.components = []
        self.cycles = []
        self._cycle_of = {}

    def build(self):
        candidates = [p for p in self.registry if p.error is None]

        providers = {}
        for package in candidates:
            for name in package.provides:
                providers.setdefault(name, []).append(package.name)

        self.requires = {}
        self.errors = {}
        self.edges = {}
        for package in candidates:
            try:
                resolved = self.resolver.expand(package, self.pool, providers)
            except DependencyError as e:
                log.debug("%s is unresolvable: %s", package.name, e)
                self.errors[package.name] = str(e)
                continue
            self.requires[package.name] = resolved
            edges = []
            for _, provider in resolved:
                if provider is not None and provider not in edges:
                    edges.append(provider)
            self.edges[package.name] = edges

        self.components = strongly_connected_components(self.registry.names(), self.edges)
        self.cycles = [c for c in self.components if len(c) > 1]
        self._cycle_of = {}
        for members in self.cycles:
            log.info("Dependency cycle: %s", ", ".join(members))
            for name in members:
                self._cycle_of[name] = members
        return self

    def cycle_of(self, name):
        """ Return the sorted members of the cycle containing `name`, or None. """
        return self._cycle_of.get(name)

    def new_cycle(self, members):
        """ Fresh bounded pass counter for one evaluation of a cycle. """
        return Cycle(members, self.cycle_max_passes)
