# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" Build order of the packages. """

import heapq


def pkgsort(graph):
    """
    Order all packages of a built DependencyGraph.

    Providers come before their consumers, members of a cycle are kept
    together and anything else is ordered by package name. A cycle is
    ranked by its smallest member.

    :param DependencyGraph graph: the graph, after build()
    :return: list of package names
    """
    component_of = {}
    for component in graph.components:
        for name in component:
            component_of[name] = component

    pending = dict((component, set()) for component in graph.components)
    consumers = dict((component, set()) for component in graph.components)
    for consumer, providers in graph.edges.items():
        consumer_component = component_of[consumer]
        for provider in providers:
            provider_component = component_of[provider]
            if provider_component == consumer_component:
                continue
            pending[consumer_component].add(provider_component)
            consumers[provider_component].add(consumer_component)

    ready = [(c[0], c) for c in graph.components if not pending[c]]
    heapq.heapify(ready)

    order = []
    while ready:
        _, component = heapq.heappop(ready)
        order.extend(component)
        for consumer in consumers[component]:
            pending[consumer].discard(component)
            if not pending[consumer]:
                heapq.heappush(ready, (consumer[0], consumer))

    return order
