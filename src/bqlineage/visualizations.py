"""
Pure visualization functions for table lineage graphs.

These functions translate a LineageGraph into Graphviz DOT format.
No business logic - just presentation layer.
"""

import graphviz

from .models import GraphNode, LineageGraph, NodeKind

# Node fill colors per kind
NODE_COLORS = {
    NodeKind.SOURCE: "#3794ff",  # Blue
    NodeKind.CTE: "#9b59b6",  # Purple
    NodeKind.TARGET: "#89d185",  # Green
}

NODE_SHAPES = {
    NodeKind.SOURCE: "cylinder",
    NodeKind.CTE: "box",
    NodeKind.TARGET: "box",
}


def _sanitize_graphviz_id(node_id: str) -> str:
    """
    Sanitize a node ID for use in Graphviz.

    Graphviz interprets colons as node:port syntax, so we need to replace
    them with safe characters.

    Args:
        node_id: The original node ID (e.g., "source_proj.ds.orders")

    Returns:
        Sanitized ID safe for Graphviz (e.g., "source_proj_ds_orders")
    """
    return node_id.replace(":", "__").replace(".", "_")


def _node_label(node: GraphNode) -> str:
    if node.kind == NodeKind.TARGET and node.statement_type is not None:
        return f"{node.display_name}\\n({node.statement_type.value})"
    if node.kind == NodeKind.CTE:
        return f"{node.display_name}\\n(CTE)"
    return node.display_name


def visualize_lineage_graph(graph: LineageGraph) -> graphviz.Digraph:
    """
    Create Graphviz visualization of a table lineage graph.

    Pure function: Takes LineageGraph, returns Graphviz Digraph.
    Layers become left-to-right ranks; nodes of one rank keep their
    within-layer order.

    Args:
        graph: Graph returned by build_lineage_graph

    Returns:
        graphviz.Digraph object ready to render
    """
    dot = graphviz.Digraph(comment="Table Lineage")
    dot.attr(rankdir="LR", ordering="out")
    dot.attr("node", style="rounded,filled", fontname="Arial", fontsize="12", fontcolor="white")
    dot.attr("edge", color="#555555")

    for layer, layer_nodes in graph.get_layers().items():
        with dot.subgraph(name=f"layer_{layer}") as s:
            s.attr(rank="same")
            for node in sorted(layer_nodes, key=lambda n: n.order):
                s.node(
                    _sanitize_graphviz_id(node.id),
                    label=_node_label(node),
                    shape=NODE_SHAPES[node.kind],
                    fillcolor=NODE_COLORS[node.kind],
                    tooltip=f"{node.kind.value}: {node.full_name}",
                )

    for edge in graph.edges:
        dot.edge(
            _sanitize_graphviz_id(edge.source_node_id),
            _sanitize_graphviz_id(edge.target_node_id),
            id=edge.id,
        )

    return dot


__all__ = [
    "NODE_COLORS",
    "visualize_lineage_graph",
]
