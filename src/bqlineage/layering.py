"""
Layer assignment and within-layer ordering for lineage graphs.

Layers:
    Longest-path labeling restricted to CTE-to-CTE edges. A CTE with no CTE
    dependencies is layer 1; otherwise max(dependency layers) + 1. CTEs left
    unresolved after the fixed point (only possible under a true cycle) are
    forced to layer 1 so that every CTE gets a layer and the loop terminates.

Ordering:
    One-sided barycenter heuristic for layered graph drawing. Each layer is
    sorted by the mean position of its predecessors in the previous layer.
    This reduces edge crossings but is not optimal; optimal crossing
    minimization is NP-hard.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from .models import CteDefinition, GraphEdge, GraphNode, LineageGraph
from .names import name_key

logger = logging.getLogger(__name__)

CYCLE_FALLBACK_LAYER = 1


# ============================================================================
# Layer Assignment
# ============================================================================


def resolve_layers(ctes: Sequence[CteDefinition]) -> Tuple[Dict[str, int], List[str]]:
    """
    Compute CTE layers and report which CTEs had to be forced.

    Returns:
        (layers keyed by lower-cased CTE name, names forced to layer 1)

    A direct self-reference (recursive CTE) is not a dependency for layering.
    """
    cte_keys = {name_key(cte.name) for cte in ctes}
    dependencies: Dict[str, List[str]] = {}
    for cte in ctes:
        key = name_key(cte.name)
        dependencies[key] = [
            ref_key
            for ref_key in (name_key(ref) for ref in cte.referenced_ctes)
            if ref_key in cte_keys and ref_key != key
        ]

    layers: Dict[str, int] = {}
    max_rounds = len(ctes) + 1
    for round_number in range(1, max_rounds + 1):
        changed = False
        for cte in ctes:
            key = name_key(cte.name)
            if key in layers:
                continue
            deps = dependencies[key]
            if all(dep in layers for dep in deps):
                layers[key] = max((layers[dep] for dep in deps), default=0) + 1
                changed = True
        if not changed:
            logger.debug("CTE layers settled after %d round(s)", round_number)
            break

    forced = []
    for cte in ctes:
        key = name_key(cte.name)
        if key not in layers:
            layers[key] = CYCLE_FALLBACK_LAYER
            forced.append(cte.name)
    if forced:
        logger.warning("Cyclic CTE references, forced to layer 1: %s", ", ".join(forced))

    return layers, forced


def assign_layers(ctes: Sequence[CteDefinition]) -> Dict[str, int]:
    """
    Assign a layer to every CTE.

    Example:
        WITH c1 AS (... FROM t1), c2 AS (... FROM c1)  ->  {"c1": 1, "c2": 2}
    """
    layers, _ = resolve_layers(ctes)
    return layers


# ============================================================================
# Crossing Minimization
# ============================================================================


def _alphabetical_key(node: GraphNode):
    return (node.display_name.lower(), node.display_name, node.id)


def order_layer(
    layer_nodes: Sequence[GraphNode],
    previous_layer_order: Optional[Sequence[GraphNode]],
    edges: Sequence[GraphEdge],
) -> List[GraphNode]:
    """
    Order the nodes of one layer.

    Args:
        layer_nodes: Nodes of the layer being ordered
        previous_layer_order: Already-ordered nodes of the previous layer, or
            None for the first layer (sorted alphabetically by display name)
        edges: All edges of the graph

    Every other layer is sorted by ascending barycenter: the mean position in
    ``previous_layer_order`` of the node's predecessors there. Nodes without
    such a predecessor get an infinite barycenter and go last. Ties are broken
    alphabetically by display name.
    """
    if previous_layer_order is None:
        return sorted(layer_nodes, key=_alphabetical_key)

    positions = {node.id: i for i, node in enumerate(previous_layer_order)}
    barycenters: Dict[str, float] = {}
    for node in layer_nodes:
        predecessor_positions = [
            positions[edge.source_node_id]
            for edge in edges
            if edge.target_node_id == node.id and edge.source_node_id in positions
        ]
        if predecessor_positions:
            barycenters[node.id] = sum(predecessor_positions) / len(predecessor_positions)
        else:
            barycenters[node.id] = math.inf

    return sorted(layer_nodes, key=lambda n: (barycenters[n.id],) + _alphabetical_key(n))


def order_graph(graph: LineageGraph) -> LineageGraph:
    """
    Order every layer of the graph, top-down from the lowest layer.

    Sets ``GraphNode.order`` and re-sorts ``graph.nodes`` by (layer, order).
    Returns the same graph.
    """
    ordered: List[GraphNode] = []
    previous: Optional[List[GraphNode]] = None
    for layer_nodes in graph.get_layers().values():
        current = order_layer(layer_nodes, previous, graph.edges)
        for position, node in enumerate(current):
            node.order = position
        ordered.extend(current)
        previous = current

    graph.nodes = {node.id: node for node in ordered}
    return graph


__all__ = [
    "CYCLE_FALLBACK_LAYER",
    "resolve_layers",
    "assign_layers",
    "order_layer",
    "order_graph",
]
