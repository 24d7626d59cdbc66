"""
Geometry for layered lineage graphs.

Turns layers and within-layer order into x/y coordinates: each layer is a
column, nodes are stacked in order and centred vertically. The graph builder
never calls this; renderers that need pixel positions do.
"""

from dataclasses import dataclass, replace
from typing import List

from .models import GraphNode, LineageGraph

MIN_CANVAS_HEIGHT = 200


@dataclass(frozen=True)
class LayoutConfig:
    """Layout dimensions, in pixels"""

    node_width: float = 160
    node_height: float = 50
    layer_spacing: float = 220  # Horizontal distance between layer columns
    node_spacing: float = 70  # Vertical distance between nodes of one layer
    padding_x: float = 40
    padding_y: float = 40
    min_height: float = MIN_CANVAS_HEIGHT


DEFAULT_LAYOUT_CONFIG = LayoutConfig()


def get_layout_config(**overrides) -> LayoutConfig:
    """
    Default layout configuration with some values replaced.

    Example:
        config = get_layout_config(node_width=200, padding_x=10)
    """
    return replace(DEFAULT_LAYOUT_CONFIG, **overrides)


@dataclass
class LayoutResult:
    graph: LineageGraph
    width: float
    height: float


def calculate_layout(
    graph: LineageGraph, config: LayoutConfig = DEFAULT_LAYOUT_CONFIG
) -> LayoutResult:
    """
    Assign ``x``/``y`` to every node of an ordered graph.

    Layer ``n`` is placed at ``x = padding_x + n * layer_spacing``; nodes keep
    their ``order`` from top to bottom. The canvas is sized for the highest layer
    and the tallest layer, never shorter than ``min_height``.

    Args:
        graph: Graph returned by the builder (layers and order already set)
        config: Layout dimensions

    Returns:
        LayoutResult holding the same graph, mutated in place, and the canvas size
    """
    layers = graph.get_layers()
    if not layers:
        return LayoutResult(graph=graph, width=config.padding_x * 2, height=config.padding_y * 2)

    tallest = max(len(nodes) for nodes in layers.values())
    width = config.padding_x * 2 + max(layers) * config.layer_spacing + config.node_width
    height = config.padding_y * 2 + (tallest - 1) * config.node_spacing + config.node_height

    for layer, layer_nodes in layers.items():
        x = config.padding_x + layer * config.layer_spacing
        column_height = (len(layer_nodes) - 1) * config.node_spacing + config.node_height
        start_y = config.padding_y + (height - config.padding_y * 2 - column_height) / 2

        ordered: List[GraphNode] = sorted(layer_nodes, key=lambda n: n.order)
        for i, node in enumerate(ordered):
            node.x = x
            node.y = start_y + i * config.node_spacing

    return LayoutResult(graph=graph, width=width, height=max(height, config.min_height))


__all__ = [
    "MIN_CANVAS_HEIGHT",
    "LayoutConfig",
    "DEFAULT_LAYOUT_CONFIG",
    "get_layout_config",
    "LayoutResult",
    "calculate_layout",
]
