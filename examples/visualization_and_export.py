"""
Example: layout, Graphviz rendering and JSON export of a lineage graph

Writes lineage.json and lineage.dot to a temporary directory. Rendering the
DOT file to an image needs the Graphviz binaries, which are not required here.
"""

import tempfile
from pathlib import Path

from bqlineage import (
    JSONExporter,
    build_lineage_graph,
    calculate_layout,
    extract_cte_columns,
    get_cte_names,
    get_layout_config,
    visualize_lineage_graph,
)

sql = """
INSERT INTO `analytics.reporting.region_revenue` (region, revenue)
WITH paid AS (
  SELECT o.order_id, o.customer_id, o.amount
  FROM `shop.raw.orders` o
  WHERE o.status = 'paid'
),
customers AS (
  SELECT c.customer_id, c.region FROM `shop.raw.customers` c
),
joined AS (
  SELECT c.region, p.amount
  FROM paid p
  JOIN customers c USING (customer_id)
)
SELECT region, SUM(amount) FROM joined GROUP BY region
"""


def main():
    print("=" * 80)
    print("Layout, Visualization and Export Example")
    print("=" * 80)
    print()

    for name in get_cte_names(sql):
        columns = [c.name for c in extract_cte_columns(sql, name)]
        print(f"CTE {name}: {', '.join(columns)}")
    print()

    graph = build_lineage_graph(sql)
    result = calculate_layout(graph, get_layout_config(node_width=180))
    print(f"Canvas: {result.width} x {result.height}")
    for node in graph.nodes.values():
        print(f"  ({node.x:>5}, {node.y:>6}) {node.display_name}")
    print()

    output_dir = Path(tempfile.mkdtemp())
    json_path = output_dir / "lineage.json"
    dot_path = output_dir / "lineage.dot"

    JSONExporter.export_to_file(graph, str(json_path))
    dot_path.write_text(visualize_lineage_graph(graph).source)

    print(f"Wrote {json_path}")
    print(f"Wrote {dot_path}")


if __name__ == "__main__":
    main()
