"""
Tests for Graphviz rendering.
"""

import graphviz

from bqlineage.lineage_graph import build_lineage_graph
from bqlineage.models import LineageGraph
from bqlineage.visualizations import _sanitize_graphviz_id, visualize_lineage_graph


class TestVisualizeLineageGraph:
    def test_returns_digraph(self, revenue_sql):
        dot = visualize_lineage_graph(build_lineage_graph(revenue_sql))
        assert isinstance(dot, graphviz.Digraph)

    def test_nodes_and_edges_present(self, revenue_sql):
        source = visualize_lineage_graph(build_lineage_graph(revenue_sql)).source

        assert "rankdir=LR" in source
        assert "source_shop_raw_orders" in source
        assert "cte_joined -> target_analytics_reporting_daily_revenue" in source
        assert "#9b59b6" in source
        assert "CREATE TABLE" in source

    def test_one_rank_per_layer(self, chained_cte_sql):
        source = visualize_lineage_graph(build_lineage_graph(chained_cte_sql)).source
        assert source.count("rank=same") == 3

    def test_empty_graph(self):
        source = visualize_lineage_graph(LineageGraph()).source
        assert "->" not in source

    def test_sanitize_id(self):
        assert _sanitize_graphviz_id("source_proj.ds.t") == "source_proj_ds_t"
        assert _sanitize_graphviz_id("cte:x") == "cte__x"
