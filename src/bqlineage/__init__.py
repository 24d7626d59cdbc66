"""
BigQuery Lineage - Table-level lineage graphs for BigQuery SQL

Traces which physical tables feed which CTEs and which tables a statement
writes, as a layered graph ready for drawing.
"""

from importlib.metadata import version

__version__ = version("bqlineage")

# Extractors
from .cte_resolver import extract_cte_columns, extract_ctes, get_cte_names

# Import export functionality
from .export import JSONExporter

# Layers and ordering
from .layering import assign_layers, order_graph, order_layer
from .layout import LayoutConfig, LayoutResult, calculate_layout, get_layout_config

# Main entry point
from .lineage_graph import LineageGraphBuilder, build_lineage_graph
from .models import (
    CteColumn,
    CteDefinition,
    GraphEdge,
    GraphNode,
    LineageGraph,
    LineageTarget,
    NodeKind,
    StatementType,
    TableName,
)
from .names import normalize_name, parse_table_name
from .sql_parser import DEFAULT_DIALECT, ParseUnavailableError, SqlglotParser, SqlParser
from .table_extractor import extract_table_references
from .target_detector import extract_targets

# Import visualization functions
from .visualizations import visualize_lineage_graph

__all__ = [
    # Version
    "__version__",
    # Main entry points
    "build_lineage_graph",
    "LineageGraphBuilder",
    # Extractors
    "extract_table_references",
    "extract_ctes",
    "extract_targets",
    "get_cte_names",
    "extract_cte_columns",
    "parse_table_name",
    "normalize_name",
    # Graph types
    "LineageGraph",
    "GraphNode",
    "GraphEdge",
    "NodeKind",
    "StatementType",
    "CteDefinition",
    "CteColumn",
    "LineageTarget",
    "TableName",
    # Layers and layout
    "assign_layers",
    "order_layer",
    "order_graph",
    "LayoutConfig",
    "LayoutResult",
    "calculate_layout",
    "get_layout_config",
    # Parser collaborator
    "DEFAULT_DIALECT",
    "SqlParser",
    "SqlglotParser",
    "ParseUnavailableError",
    # Export and visualization
    "JSONExporter",
    "visualize_lineage_graph",
]
