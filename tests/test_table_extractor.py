"""
Tests for the Identifier Extractor.
"""

import pytest
import sqlglot
from sqlglot import exp

from bqlineage.table_extractor import (
    collect_table_references,
    extract_table_references,
    table_name_of,
)


class TestExtractTableReferences:
    def test_simple_from(self):
        assert extract_table_references("SELECT * FROM orders") == ["orders"]

    def test_comma_join(self):
        """FROM a, b yields both tables"""
        assert extract_table_references("SELECT * FROM a, b WHERE a.id = b.id") == ["a", "b"]

    @pytest.mark.parametrize("join", ["JOIN", "INNER JOIN", "LEFT JOIN", "RIGHT JOIN", "FULL JOIN"])
    def test_join_kinds(self, join):
        sql = f"SELECT * FROM a {join} b ON a.id = b.id"
        assert extract_table_references(sql) == ["a", "b"]

    def test_cross_join(self):
        assert extract_table_references("SELECT * FROM a CROSS JOIN b") == ["a", "b"]

    def test_chained_joins(self):
        sql = """
        SELECT *
        FROM a
        JOIN b ON a.id = b.id
        LEFT JOIN c ON b.id = c.id
        JOIN d USING (id)
        """
        assert extract_table_references(sql) == ["a", "b", "c", "d"]

    def test_parenthesized_join_tree(self):
        """Leaves on both sides of a nested join expression are collected"""
        sql = "SELECT * FROM (a JOIN b ON a.id = b.id) JOIN c ON c.id = a.id"
        assert set(extract_table_references(sql)) == {"a", "b", "c"}

    def test_quoted_multi_part_identifier(self):
        """A backtick-quoted path is one logical name"""
        sql = "SELECT * FROM `my-project.sales.orders`"
        assert extract_table_references(sql) == ["my-project.sales.orders"]

    def test_per_part_quoting(self):
        sql = "SELECT * FROM `proj`.`ds`.orders"
        assert extract_table_references(sql) == ["proj.ds.orders"]

    def test_alias_is_not_part_of_name(self):
        sql = "SELECT o.id FROM sales.orders AS o JOIN sales.items i ON o.id = i.order_id"
        assert extract_table_references(sql) == ["sales.orders", "sales.items"]

    def test_subquery_tables(self):
        """Tables read inside subqueries are references too"""
        sql = "SELECT * FROM (SELECT * FROM inner_t) s WHERE s.id IN (SELECT id FROM ids)"
        assert set(extract_table_references(sql)) == {"inner_t", "ids"}

    def test_cte_bodies_included(self):
        """CTE names are returned like any other name; classification happens later"""
        sql = "WITH c AS (SELECT * FROM t) SELECT * FROM c"
        assert set(extract_table_references(sql)) == {"t", "c"}

    def test_unnest_is_not_a_table(self):
        sql = "SELECT * FROM orders o, UNNEST(o.items) AS item"
        assert extract_table_references(sql) == ["orders"]

    def test_duplicates_collapse_case_insensitively(self):
        sql = "SELECT * FROM Orders a JOIN orders b ON a.parent_id = b.id"
        assert extract_table_references(sql) == ["Orders"]

    def test_merge_using_source(self):
        sql = """
        MERGE ds.target t
        USING ds.updates s
        ON t.id = s.id
        WHEN MATCHED THEN UPDATE SET v = s.v
        """
        assert extract_table_references(sql) == ["ds.updates"]

    def test_multiple_statements(self):
        sql = "SELECT * FROM a; SELECT * FROM b"
        assert extract_table_references(sql) == ["a", "b"]

    def test_parse_failure_returns_empty(self):
        """Unparseable SQL means "no lineage information", never an exception"""
        assert extract_table_references("SELECT * FROM (((") == []

    def test_injected_parser(self, rejecting_parser):
        assert extract_table_references("SELECT * FROM t", parser=rejecting_parser) == []
        assert rejecting_parser.calls == 1


class TestTreeHelpers:
    def test_table_name_of(self):
        table = sqlglot.parse_one("SELECT * FROM proj.ds.t AS x", read="bigquery").find(
            exp.Table
        )
        assert table_name_of(table) == "proj.ds.t"

    def test_collect_from_subtree(self):
        tree = sqlglot.parse_one("SELECT * FROM a JOIN b ON TRUE", read="bigquery")
        assert collect_table_references(tree) == ["a", "b"]
