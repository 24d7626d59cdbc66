"""
Export functionality for table lineage graphs.

JSON is the machine-readable format handed to renderers and used for
snapshot comparisons of two builds.
"""

import json
from pathlib import Path
from typing import Any, Dict

from .models import GraphEdge, GraphNode, LineageGraph


class JSONExporter:
    """
    Export a LineageGraph to a JSON-serializable dictionary.

    Node and edge ids are derived only from names, so exporting two builds of
    the same SQL yields equal dictionaries.
    """

    @staticmethod
    def export(graph: LineageGraph, include_layout: bool = True) -> Dict[str, Any]:
        """
        Export lineage graph to JSON-serializable dictionary.

        Args:
            graph: The lineage graph to export
            include_layout: Whether to include x/y coordinates (None until
                layout.calculate_layout has run)

        Returns:
            Dictionary with nodes, edges, query_preview and warnings

        Example:
            data = JSONExporter.export(build_lineage_graph(sql))
            [n["id"] for n in data["nodes"]]  # ordered by (layer, order)
        """
        return {
            "nodes": [JSONExporter._node_dict(n, include_layout) for n in graph.nodes.values()],
            "edges": [JSONExporter._edge_dict(e) for e in graph.edges],
            "query_preview": graph.query_preview,
            "warnings": list(graph.warnings),
        }

    @staticmethod
    def _node_dict(node: GraphNode, include_layout: bool) -> Dict[str, Any]:
        node_dict = {
            "id": node.id,
            "display_name": node.display_name,
            "full_name": node.full_name,
            "kind": node.kind.value,
            "statement_type": node.statement_type.value if node.statement_type else None,
            "layer": node.layer,
            "order": node.order,
        }
        if include_layout:
            node_dict["x"] = node.x
            node_dict["y"] = node.y
        return node_dict

    @staticmethod
    def _edge_dict(edge: GraphEdge) -> Dict[str, Any]:
        return {
            "id": edge.id,
            "source": edge.source_node_id,
            "target": edge.target_node_id,
        }

    @staticmethod
    def export_to_file(
        graph: LineageGraph,
        file_path: str,
        include_layout: bool = True,
        indent: int = 2,
    ):
        """
        Export lineage graph to JSON file.

        Args:
            graph: The lineage graph to export
            file_path: Path to output JSON file
            include_layout: Whether to include x/y coordinates
            indent: JSON indentation (default: 2)
        """
        data = JSONExporter.export(graph, include_layout=include_layout)

        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(data, f, indent=indent)


__all__ = ["JSONExporter"]
