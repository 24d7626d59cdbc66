"""
Graph Builder.

Composes the CTE Resolver, Identifier Extractor and Target Detector into one
layered, ordered table-level LineageGraph.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Set

from .analysis import analyze_statement
from .layering import order_graph, resolve_layers
from .models import (
    GraphNode,
    LineageGraph,
    LineageTarget,
    NodeKind,
    StatementAnalysis,
    StatementType,
)
from .names import display_name, name_key, unique_names
from .sql_parser import DEFAULT_DIALECT, SqlParser
from .target_detector import extract_targets
from .text_scan import collapse_whitespace

logger = logging.getLogger(__name__)

QUERY_PREVIEW_LENGTH = 100


def make_query_preview(sql: str, preview_length: int = QUERY_PREVIEW_LENGTH) -> str:
    """Whitespace-collapsed SQL, truncated with "..." past ``preview_length``"""
    collapsed = collapse_whitespace(sql)
    if len(collapsed) <= preview_length:
        return collapsed
    return collapsed[:preview_length] + "..."


class LineageGraphBuilder:
    """
    Build the table-level lineage graph of one SQL text.

    Example:
        builder = LineageGraphBuilder(
            "INSERT INTO a.b.c SELECT * FROM x JOIN y ON x.id = y.id"
        )
        graph = builder.build()
        # sources x, y (layer 0) -> target a.b.c (layer 1)
    """

    def __init__(
        self,
        sql: str,
        dialect: str = DEFAULT_DIALECT,
        parser: Optional[SqlParser] = None,
        preview_length: int = QUERY_PREVIEW_LENGTH,
    ):
        if not isinstance(sql, str):
            raise TypeError(f"sql must be a str, got {type(sql).__name__}")
        self.sql = sql
        self.dialect = dialect
        self.parser = parser
        self.preview_length = preview_length

        self.graph = LineageGraph()
        # Lower-cased name -> node id, across all node kinds
        self._node_ids: Dict[str, str] = {}

    def build(self) -> LineageGraph:
        """
        Build the graph.

        Steps:
        1. Analyze the statement (syntax tree, pattern scanner on parse failure)
        2. Detect write targets from the text
        3. Create SOURCE, CTE and TARGET nodes
        4. Create edges (CTE inputs, then target inputs)
        5. Order each layer to reduce crossings
        """
        self.graph = LineageGraph(query_preview=make_query_preview(self.sql, self.preview_length))
        self._node_ids = {}
        if not self.sql.strip():
            return self.graph

        analysis = analyze_statement(self.sql, dialect=self.dialect, parser=self.parser)
        if not analysis.from_syntax_tree:
            # Only scanned CTE definitions survive a parse failure
            analysis = replace(analysis, table_references=(), main_body_references=())
            self.graph.add_warning(
                "SQL could not be parsed; lineage was extracted from CTE definitions"
                " only and may be incomplete"
            )
        targets = extract_targets(self.sql)

        cte_keys = {name_key(cte.name) for cte in analysis.ctes}
        target_keys = {name_key(t.name) for t in targets if name_key(t.name) not in cte_keys}

        self._add_source_nodes(analysis, cte_keys | target_keys)
        max_cte_layer = self._add_cte_nodes(analysis)
        self._add_target_nodes(targets, cte_keys, max_cte_layer + 1 if analysis.ctes else 1)

        self._add_cte_edges(analysis)
        self._add_target_edges(analysis, targets, cte_keys)

        logger.debug(
            "Built lineage graph: %d node(s), %d edge(s)",
            len(self.graph.nodes),
            len(self.graph.edges),
        )
        return order_graph(self.graph)

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def _add_node(
        self,
        name: str,
        kind: NodeKind,
        layer: int,
        statement_type: Optional[StatementType] = None,
    ) -> GraphNode:
        node = self.graph.add_node(
            GraphNode(
                id=GraphNode.make_id(kind, name),
                display_name=display_name(name),
                full_name=name,
                kind=kind,
                layer=layer,
                statement_type=statement_type,
            )
        )
        self._node_ids.setdefault(name_key(name), node.id)
        return node

    def _add_source_nodes(self, analysis: StatementAnalysis, excluded_keys: Set[str]):
        """One SOURCE node per physical table read anywhere"""
        names = list(analysis.table_references)
        for cte in analysis.ctes:
            names.extend(cte.source_tables)
        for name in unique_names(names, exclude=excluded_keys):
            self._add_node(name, NodeKind.SOURCE, layer=0)

    def _add_cte_nodes(self, analysis: StatementAnalysis) -> int:
        """Add CTE nodes at their assigned layers; returns the deepest layer"""
        layers, forced = resolve_layers(analysis.ctes)
        for name in forced:
            self.graph.add_warning(
                f"CTE '{name}' is part of a reference cycle and was placed in layer 1"
            )
        for cte in analysis.ctes:
            self._add_node(cte.name, NodeKind.CTE, layer=layers[name_key(cte.name)])
        return max(layers.values(), default=0)

    def _add_target_nodes(self, targets: List[LineageTarget], cte_keys: Set[str], layer: int):
        for target in targets:
            if name_key(target.name) in cte_keys:
                continue
            self._add_node(
                target.name, NodeKind.TARGET, layer=layer, statement_type=target.statement_type
            )

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def _node_id(self, name: str) -> Optional[str]:
        return self._node_ids.get(name_key(name))

    def _connect(self, source_name: str, target_node_id: str) -> bool:
        source_id = self._node_id(source_name)
        if source_id is None:
            return False
        return self.graph.add_edge(source_id, target_node_id) is not None

    def _add_cte_edges(self, analysis: StatementAnalysis):
        """Edges into each CTE from the tables and CTEs its body reads"""
        for cte in analysis.ctes:
            cte_id = GraphNode.make_id(NodeKind.CTE, cte.name)
            for name in cte.source_tables + cte.referenced_ctes:
                self._connect(name, cte_id)

    def _add_target_edges(
        self,
        analysis: StatementAnalysis,
        targets: List[LineageTarget],
        cte_keys: Set[str],
    ):
        """
        Edges into each target from what the main body reads.

        When the main body names no CTE although CTEs exist, every CTE feeds
        every target; when there are no CTEs and the main body names no source,
        every source feeds every target.
        """
        main_refs = list(analysis.main_body_references)
        main_ctes = [name for name in main_refs if name_key(name) in cte_keys]
        source_ids = {node.id for node in self.graph.get_nodes(NodeKind.SOURCE)}
        main_sources = [
            name
            for name in main_refs
            if name_key(name) not in cte_keys and self._node_id(name) in source_ids
        ]

        if analysis.ctes and not main_ctes:
            main_ctes = [cte.name for cte in analysis.ctes]
            logger.debug("Main body reads no CTE; connecting every CTE to every target")
        if not analysis.ctes and not main_sources:
            main_sources = [node.full_name for node in self.graph.get_nodes(NodeKind.SOURCE)]
            logger.debug("Main body reads no table; connecting every source to every target")

        for target_node in self.graph.get_nodes(NodeKind.TARGET):
            for name in main_ctes + main_sources:
                self._connect(name, target_node.id)


def build_lineage_graph(
    sql: str,
    dialect: str = DEFAULT_DIALECT,
    parser: Optional[SqlParser] = None,
    preview_length: int = QUERY_PREVIEW_LENGTH,
) -> LineageGraph:
    """
    Build the layered, ordered table-level lineage graph of a SQL text.

    Never raises for SQL the parser rejects: only the CTE definitions found by
    the pattern scanner and the write targets are kept, so the graph is
    usually empty.

    Args:
        sql: SQL text (may hold several statements)
        dialect: sqlglot dialect used when no parser is given
        parser: Optional parser implementing the SqlParser protocol
        preview_length: Length of ``LineageGraph.query_preview`` before truncation

    Raises:
        TypeError: If ``sql`` is not a string
    """
    return LineageGraphBuilder(
        sql, dialect=dialect, parser=parser, preview_length=preview_length
    ).build()


__all__ = [
    "QUERY_PREVIEW_LENGTH",
    "make_query_preview",
    "LineageGraphBuilder",
    "build_lineage_graph",
]
