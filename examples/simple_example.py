"""
Simple example demonstrating table lineage for a CTE chain
"""

from bqlineage import NodeKind, build_lineage_graph

# Example SQL with chained CTEs feeding a write target
sql = """
CREATE OR REPLACE TABLE `analytics.marts.user_tiers` AS
WITH monthly_sales AS (
  SELECT
    user_id,
    DATE_TRUNC(order_date, MONTH) AS month,
    SUM(amount) AS total_amount
  FROM `shop.raw.orders`
  WHERE status = 'completed'
  GROUP BY 1, 2
),
user_stats AS (
  SELECT user_id, AVG(total_amount) AS avg_monthly_sales
  FROM monthly_sales
  GROUP BY user_id
)
SELECT u.name, us.avg_monthly_sales
FROM `shop.raw.users` u
JOIN user_stats us ON u.id = us.user_id
"""


def main():
    print("=" * 80)
    print("BigQuery Table Lineage Example")
    print("=" * 80)
    print()

    graph = build_lineage_graph(sql)

    print(f"Query: {graph.query_preview}")
    print()

    for layer, nodes in graph.get_layers().items():
        names = ", ".join(f"{n.full_name} ({n.kind.value})" for n in nodes)
        print(f"Layer {layer}: {names}")
    print()

    print("Edges:")
    for edge in graph.edges:
        source = graph.get_node(edge.source_node_id)
        target = graph.get_node(edge.target_node_id)
        print(f"  {source.full_name} -> {target.full_name}")
    print()

    target = graph.get_nodes(NodeKind.TARGET)[0]
    assert target.layer == 3, target
    print(f"Target {target.full_name} written by {target.statement_type.value}")


if __name__ == "__main__":
    main()
