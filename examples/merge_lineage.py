"""
Example: lineage of a multi-statement script with MERGE, UPDATE and DELETE

Every write target of the script becomes a TARGET node. A table that is both
read and written is shown once, as a target.
"""

from bqlineage import NodeKind, build_lineage_graph, extract_targets

sql = """
-- Upsert the daily snapshot
MERGE `warehouse.core.customers` t
USING `staging.crm.customers_delta` s
ON t.customer_id = s.customer_id
WHEN MATCHED AND s.is_deleted THEN DELETE
WHEN MATCHED THEN UPDATE SET email = s.email
WHEN NOT MATCHED THEN INSERT (customer_id, email) VALUES (s.customer_id, s.email);

UPDATE `warehouse.core.customers` c
SET segment = m.segment
FROM `warehouse.ref.segment_map` m
WHERE c.region = m.region;

DELETE FROM `staging.crm.customers_delta` WHERE TRUE;
"""


def main():
    print("=" * 80)
    print("MERGE / UPDATE / DELETE Lineage Example")
    print("=" * 80)
    print()

    print("Write targets (first statement type wins):")
    for target in extract_targets(sql):
        print(f"  {target.statement_type.value:<12} {target.name}")
    print()

    graph = build_lineage_graph(sql)

    print("Sources:")
    for node in graph.get_nodes(NodeKind.SOURCE):
        print(f"  {node.full_name}")
    print()

    print("Edges:")
    for edge in graph.edges:
        print(f"  {edge.source_node_id} -> {edge.target_node_id}")

    sources = {n.full_name.lower() for n in graph.get_nodes(NodeKind.SOURCE)}
    targets = {n.full_name.lower() for n in graph.get_nodes(NodeKind.TARGET)}
    assert not sources & targets


if __name__ == "__main__":
    main()
