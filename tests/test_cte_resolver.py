"""
Tests for the CTE Resolver, CTE name listing and CTE column listing.
"""

import pytest

from bqlineage.cte_resolver import (
    build_cte_definitions,
    classify_references,
    extract_cte_columns,
    extract_ctes,
    get_cte_names,
)
from bqlineage.models import CteDefinition


def _by_name(ctes):
    return {cte.name: cte for cte in ctes}


class TestExtractCtes:
    def test_no_ctes(self):
        assert extract_ctes("SELECT * FROM t") == []

    def test_case_insensitive_reference(self):
        """A reference to foo resolves to the CTE Foo"""
        ctes = extract_ctes("WITH Foo AS (SELECT * FROM T) SELECT * FROM foo")
        assert ctes == [CteDefinition(name="Foo", source_tables=("T",), referenced_ctes=())]

    def test_chained(self, chained_cte_sql):
        ctes = _by_name(extract_ctes(chained_cte_sql))
        assert ctes["c1"].source_tables == ("t1",)
        assert ctes["c1"].referenced_ctes == ()
        assert ctes["c2"].source_tables == ()
        assert ctes["c2"].referenced_ctes == ("c1",)

    def test_forward_reference(self):
        """A CTE may read a CTE defined after it"""
        sql = """
        WITH a AS (SELECT * FROM b),
             b AS (SELECT * FROM raw)
        SELECT * FROM a
        """
        ctes = _by_name(extract_ctes(sql))
        assert ctes["a"].referenced_ctes == ("b",)
        assert ctes["a"].source_tables == ()

    def test_cte_name_wins_over_table(self):
        """A name matching a CTE is never a physical table"""
        sql = """
        WITH orders AS (SELECT * FROM ds.orders)
        SELECT * FROM orders JOIN ds.items USING (order_id)
        """
        ctes = _by_name(extract_ctes(sql))
        assert ctes["orders"].source_tables == ("ds.orders",)

    def test_self_reference_kept(self):
        """The resolver keeps a self-reference; the graph builder drops the loop"""
        ctes = extract_ctes("WITH r AS (SELECT * FROM r) SELECT * FROM r")
        assert ctes[0].referenced_ctes == ("r",)

    def test_mixed_sources_and_ctes(self, revenue_sql):
        ctes = _by_name(extract_ctes(revenue_sql))
        assert list(ctes) == ["orders", "customers", "joined"]
        assert ctes["orders"].source_tables == ("shop.raw.orders",)
        assert ctes["customers"].source_tables == ("shop.raw.customers",)
        assert set(ctes["joined"].referenced_ctes) == {"orders", "customers"}
        assert ctes["joined"].source_tables == ()

    def test_nested_with_block(self):
        """CTEs defined inside a subquery are found too"""
        sql = """
        SELECT * FROM (
            WITH inner_cte AS (SELECT * FROM ds.t)
            SELECT * FROM inner_cte
        ) AS s
        """
        ctes = extract_ctes(sql)
        assert [c.name for c in ctes] == ["inner_cte"]
        assert ctes[0].source_tables == ("ds.t",)

    def test_fallback_on_parse_failure(self, rejecting_parser):
        """The pattern scanner takes over when the parser rejects the text"""
        sql = "WITH c AS (SELECT * FROM ds.t) SELECT * FROM c"
        ctes = extract_ctes(sql, parser=rejecting_parser)
        assert ctes == [CteDefinition(name="c", source_tables=("ds.t",))]


class TestClassification:
    def test_classify_references(self):
        sources, ctes = classify_references(["A", "t", "b", "T"], {"a", "b"})
        assert sources == ["t"]
        assert ctes == ["A", "b"]

    def test_duplicate_definitions_merge(self):
        definitions = build_cte_definitions(
            [("x", ["t1"]), ("X", ["t2", "y"]), ("y", [])],
            {"x", "y"},
        )
        assert definitions == [
            CteDefinition(name="x", source_tables=("t1", "t2"), referenced_ctes=("y",)),
            CteDefinition(name="y"),
        ]


class TestCteNames:
    def test_definition_order(self, revenue_sql):
        assert get_cte_names(revenue_sql) == ["orders", "customers", "joined"]

    def test_parse_failure(self, rejecting_parser):
        sql = "WITH a AS (SELECT 1) SELECT * FROM a"
        assert get_cte_names(sql, parser=rejecting_parser) == ["a"]


class TestCteColumns:
    @pytest.fixture
    def sql(self):
        return """
        WITH base AS (
            SELECT
                o.order_id,
                amount,
                amount * 2 AS doubled,
                COUNT(*),
                o.*,
                *
            FROM ds.orders o
            GROUP BY 1, 2
        )
        SELECT * FROM base
        """

    def test_column_names(self, sql):
        names = [c.name for c in extract_cte_columns(sql, "base")]
        assert names == ["order_id", "amount", "doubled", "COUNT", "o.*", "*"]

    def test_lookup_is_case_insensitive(self, sql):
        assert extract_cte_columns(sql, "BASE") == extract_cte_columns(sql, "base")

    def test_unknown_cte(self, sql):
        assert extract_cte_columns(sql, "missing") == []

    def test_explicit_column_list_wins(self):
        sql = "WITH c (a, b) AS (SELECT x, y FROM t) SELECT * FROM c"
        names = [col.name for col in extract_cte_columns(sql, "c", dialect="postgres")]
        assert names == ["a", "b"]

    def test_set_operation_uses_first_branch(self):
        sql = """
        WITH u AS (
            SELECT id, name FROM a
            UNION ALL
            SELECT id, label FROM b
        )
        SELECT * FROM u
        """
        assert [c.name for c in extract_cte_columns(sql, "u")] == ["id", "name"]

    def test_parse_failure(self, rejecting_parser):
        sql = "WITH c AS (SELECT a FROM t) SELECT * FROM c"
        assert extract_cte_columns(sql, "c", parser=rejecting_parser) == []
