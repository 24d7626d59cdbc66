"""
Shared fixtures for the bqlineage test suite.
"""

import sys
from pathlib import Path
from typing import List

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlglot import exp  # noqa: E402

from bqlineage.sql_parser import ParseUnavailableError  # noqa: E402


class RejectingParser:
    """Parser stand-in that rejects every SQL text, forcing the fallback path"""

    dialect = "bigquery"

    def __init__(self):
        self.calls = 0

    def parse(self, sql: str) -> List[exp.Expression]:
        self.calls += 1
        raise ParseUnavailableError("rejected for test")


@pytest.fixture
def rejecting_parser():
    return RejectingParser()


@pytest.fixture
def chained_cte_sql():
    return """
    WITH c1 AS (SELECT * FROM t1),
         c2 AS (SELECT * FROM c1)
    SELECT * FROM c2
    """


@pytest.fixture
def revenue_sql():
    return """
    CREATE OR REPLACE TABLE `analytics.reporting.daily_revenue` AS
    WITH orders AS (
        SELECT o.order_id, o.customer_id, o.amount
        FROM `shop.raw.orders` o
        WHERE o.status = 'paid'
    ),
    customers AS (
        SELECT c.customer_id, c.region FROM `shop.raw.customers` c
    ),
    joined AS (
        SELECT c.region, o.amount
        FROM orders o
        JOIN customers c ON o.customer_id = c.customer_id
    )
    SELECT region, SUM(amount) AS revenue FROM joined GROUP BY region
    """
