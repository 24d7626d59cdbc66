"""
Core data models for SQL table lineage.

Contains all dataclass definitions for:
- Statement structure models (CTE definitions, write targets)
- Lineage graph models (nodes, edges, graph)
- Hover/inspection models (CTE columns, qualified name parts)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

# ============================================================================
# Statement Structure Models
# ============================================================================


class StatementType(Enum):
    """
    Kind of write operation that produces a lineage target.

    DDL (Data Definition Language): CREATE TABLE, CREATE VIEW
    DML (Data Manipulation Language): INSERT, MERGE, UPDATE, DELETE, TRUNCATE
    """

    INSERT = "INSERT"
    CREATE_TABLE = "CREATE TABLE"
    CREATE_VIEW = "CREATE VIEW"
    MERGE = "MERGE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    TRUNCATE = "TRUNCATE"


@dataclass(frozen=True)
class CteDefinition:
    """
    A CTE and what its body reads.

    ``source_tables`` and ``referenced_ctes`` are disjoint: a name read by the
    body goes to ``referenced_ctes`` iff it matches (case-insensitively) a CTE
    defined anywhere in the statement. A direct self-reference is kept.
    """

    name: str
    source_tables: Tuple[str, ...] = ()
    referenced_ctes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LineageTarget:
    """A table or view written by the statement"""

    name: str
    statement_type: StatementType


@dataclass(frozen=True)
class StatementAnalysis:
    """
    What one SQL text reads, as seen by a single analyzer.

    ``table_references`` holds every from-position name (CTE bodies included,
    CTE names not yet filtered out); ``main_body_references`` holds only those
    outside CTE definitions.
    """

    ctes: Tuple[CteDefinition, ...] = ()
    table_references: Tuple[str, ...] = ()
    main_body_references: Tuple[str, ...] = ()
    from_syntax_tree: bool = True  # False when produced by the pattern scanner


@dataclass(frozen=True)
class CteColumn:
    """Output column name of a CTE (``*`` and ``t.*`` included as-is)"""

    name: str


@dataclass(frozen=True)
class TableName:
    """Qualified name split into its BigQuery parts"""

    full_name: str
    table: str
    dataset: Optional[str] = None
    project: Optional[str] = None


# ============================================================================
# Lineage Graph Models
# ============================================================================


class NodeKind(Enum):
    """Role of a node in the lineage graph"""

    SOURCE = "SOURCE"  # Physical table read by the statement
    CTE = "CTE"  # Common table expression
    TARGET = "TARGET"  # Table or view written by the statement

    @property
    def id_prefix(self) -> str:
        return self.value.lower()


@dataclass
class GraphNode:
    """
    Node in the lineage graph.

    ``id`` is derived from ``kind`` and ``full_name`` only (see ``make_id``),
    so there is at most one node per (kind, name) pair.
    """

    id: str
    display_name: str  # Last part of the qualified name
    full_name: str  # "project.dataset.table", "dataset.table", "table" or CTE name
    kind: NodeKind
    layer: int = 0  # 0 = sources, CTEs from 1, targets after the deepest CTE
    statement_type: Optional[StatementType] = None  # TARGET nodes only

    # ─── Layout ───
    order: int = 0  # Position within the layer after crossing minimization
    x: Optional[float] = None  # Assigned by layout.calculate_layout
    y: Optional[float] = None

    @staticmethod
    def make_id(kind: NodeKind, full_name: str) -> str:
        """Deterministic node id, e.g. ``source_proj.ds.orders``"""
        return f"{kind.id_prefix}_{full_name.lower()}"

    def __hash__(self):
        return hash(self.id)

    def __eq__(self, other):
        if not isinstance(other, GraphNode):
            return False
        return self.id == other.id


@dataclass
class GraphEdge:
    """Directed "feeds into" edge between two nodes"""

    id: str
    source_node_id: str
    target_node_id: str

    @staticmethod
    def make_id(source_node_id: str, target_node_id: str) -> str:
        return f"edge_{source_node_id}_{target_node_id}"

    def __hash__(self):
        return hash((self.source_node_id, self.target_node_id))

    def __eq__(self, other):
        if not isinstance(other, GraphEdge):
            return False
        return (
            self.source_node_id == other.source_node_id
            and self.target_node_id == other.target_node_id
        )


@dataclass
class LineageGraph:
    """
    Table-level lineage graph for one SQL text.

    Node insertion order is a stable default; once layered and ordered, nodes
    are kept sorted by (layer, order).
    """

    nodes: Dict[str, GraphNode] = field(default_factory=dict)  # id -> GraphNode
    edges: List[GraphEdge] = field(default_factory=list)
    query_preview: str = ""
    warnings: List[str] = field(default_factory=list)  # Diagnostics (e.g. CTE cycles)

    def add_node(self, node: GraphNode) -> GraphNode:
        """Add a node; an existing node with the same id wins"""
        existing = self.nodes.get(node.id)
        if existing is not None:
            return existing
        self.nodes[node.id] = node
        return node

    def add_edge(self, source_node_id: str, target_node_id: str) -> Optional[GraphEdge]:
        """
        Add an edge between two existing nodes.

        Self-loops, duplicates and edges to unknown nodes are ignored.
        """
        if source_node_id == target_node_id:
            return None
        if source_node_id not in self.nodes or target_node_id not in self.nodes:
            return None

        edge = GraphEdge(
            id=GraphEdge.make_id(source_node_id, target_node_id),
            source_node_id=source_node_id,
            target_node_id=target_node_id,
        )
        if edge in self.edges:
            return None
        self.edges.append(edge)
        return edge

    def add_warning(self, warning: str):
        """Add a diagnostic message"""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return self.nodes.get(node_id)

    def get_nodes(self, kind: NodeKind) -> List[GraphNode]:
        """Get all nodes of one kind, in graph order"""
        return [n for n in self.nodes.values() if n.kind == kind]

    def get_layers(self) -> Dict[int, List[GraphNode]]:
        """Group nodes by layer, layers ascending, nodes in graph order"""
        layers: Dict[int, List[GraphNode]] = {}
        for layer in sorted({n.layer for n in self.nodes.values()}):
            layers[layer] = [n for n in self.nodes.values() if n.layer == layer]
        return layers

    def is_empty(self) -> bool:
        return not self.nodes


__all__ = [
    # Statement structure
    "StatementType",
    "CteDefinition",
    "LineageTarget",
    "StatementAnalysis",
    "CteColumn",
    "TableName",
    # Lineage graph
    "NodeKind",
    "GraphNode",
    "GraphEdge",
    "LineageGraph",
]
