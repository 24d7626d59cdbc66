"""
Tests for layer assignment and crossing-minimization ordering.
"""

import pytest

from bqlineage.layering import assign_layers, order_graph, order_layer, resolve_layers
from bqlineage.models import CteDefinition, GraphEdge, GraphNode, LineageGraph, NodeKind


def _cte(name, *refs, sources=()):
    return CteDefinition(name=name, source_tables=tuple(sources), referenced_ctes=tuple(refs))


def _node(kind, name, layer):
    return GraphNode(
        id=GraphNode.make_id(kind, name),
        display_name=name.split(".")[-1],
        full_name=name,
        kind=kind,
        layer=layer,
    )


def _edge(source, target):
    return GraphEdge(
        id=GraphEdge.make_id(source.id, target.id),
        source_node_id=source.id,
        target_node_id=target.id,
    )


class TestAssignLayers:
    def test_empty(self):
        assert assign_layers([]) == {}

    def test_leaf_ctes_are_layer_one(self):
        layers = assign_layers([_cte("a", sources=["t"]), _cte("b")])
        assert layers == {"a": 1, "b": 1}

    def test_chain(self):
        layers = assign_layers([_cte("c1", sources=["t1"]), _cte("c2", "c1"), _cte("c3", "c2")])
        assert layers == {"c1": 1, "c2": 2, "c3": 3}

    def test_longest_path_wins(self):
        """A diamond with one long arm takes the long arm's depth"""
        ctes = [
            _cte("a"),
            _cte("b", "a"),
            _cte("c", "b"),
            _cte("d", "a", "c"),
        ]
        assert assign_layers(ctes) == {"a": 1, "b": 2, "c": 3, "d": 4}

    def test_forward_reference(self):
        """Definition order does not matter"""
        layers = assign_layers([_cte("late_user", "early"), _cte("early")])
        assert layers == {"late_user": 2, "early": 1}

    def test_keys_are_lower_case(self):
        assert assign_layers([_cte("Foo"), _cte("Bar", "FOO")]) == {"foo": 1, "bar": 2}

    def test_self_reference_ignored(self):
        """A recursive CTE is layered as if it had no self-dependency"""
        layers = assign_layers([_cte("r", "r"), _cte("after", "r")])
        assert layers == {"r": 1, "after": 2}

    def test_unknown_reference_ignored(self):
        assert assign_layers([_cte("a", "not_a_cte")]) == {"a": 1}

    def test_cycle_forced_to_layer_one(self):
        """A true cycle terminates with every member in layer 1"""
        ctes = [_cte("a", "b"), _cte("b", "a"), _cte("c", "a")]
        layers, forced = resolve_layers(ctes)
        assert layers == {"a": 1, "b": 1, "c": 1}
        assert forced == ["a", "b", "c"]

    def test_cycle_does_not_affect_independent_ctes(self):
        ctes = [_cte("x"), _cte("y", "x"), _cte("a", "b"), _cte("b", "a")]
        layers, forced = resolve_layers(ctes)
        assert layers["x"] == 1
        assert layers["y"] == 2
        assert forced == ["a", "b"]


class TestOrderLayer:
    @pytest.fixture
    def sources(self):
        return [
            _node(NodeKind.SOURCE, "zeta", 0),
            _node(NodeKind.SOURCE, "Alpha", 0),
            _node(NodeKind.SOURCE, "mid", 0),
        ]

    def test_first_layer_alphabetical(self, sources):
        """Layer 0 is sorted case-insensitively by display name"""
        ordered = order_layer(sources, None, [])
        assert [n.display_name for n in ordered] == ["Alpha", "mid", "zeta"]

    def test_barycenter(self, sources):
        alpha, mid, zeta = order_layer(sources, None, [])
        c_top = _node(NodeKind.CTE, "c_top", 1)
        c_bottom = _node(NodeKind.CTE, "c_bottom", 1)
        c_middle = _node(NodeKind.CTE, "c_middle", 1)
        edges = [
            _edge(zeta, c_top),  # barycenter 2
            _edge(alpha, c_bottom),
            _edge(zeta, c_bottom),  # barycenter 1
            _edge(alpha, c_middle),  # barycenter 0
        ]

        ordered = order_layer([c_top, c_bottom, c_middle], [alpha, mid, zeta], edges)
        assert [n.display_name for n in ordered] == ["c_middle", "c_bottom", "c_top"]

    def test_unconnected_nodes_last(self, sources):
        previous = order_layer(sources, None, [])
        connected = _node(NodeKind.CTE, "z_connected", 1)
        loose = _node(NodeKind.CTE, "a_loose", 1)
        edges = [_edge(previous[2], connected)]

        ordered = order_layer([loose, connected], previous, edges)
        assert ordered == [connected, loose]

    def test_ties_alphabetical(self, sources):
        previous = order_layer(sources, None, [])
        b = _node(NodeKind.CTE, "b", 1)
        a = _node(NodeKind.CTE, "a", 1)
        edges = [_edge(previous[0], b), _edge(previous[0], a)]

        assert order_layer([b, a], previous, edges) == [a, b]

    def test_only_previous_layer_counts(self, sources):
        """Predecessors outside the previous layer do not move a node"""
        previous = order_layer(sources, None, [])
        far = _node(NodeKind.SOURCE, "far", 0)
        early = _node(NodeKind.TARGET, "a_out", 2)
        late = _node(NodeKind.TARGET, "z_out", 2)
        edges = [_edge(far, early), _edge(previous[1], late)]

        assert order_layer([early, late], previous, edges) == [late, early]


class TestOrderGraph:
    def test_sets_order_and_sorts_nodes(self):
        graph = LineageGraph()
        target = graph.add_node(_node(NodeKind.TARGET, "out", 2))
        b = graph.add_node(_node(NodeKind.SOURCE, "b", 0))
        cte = graph.add_node(_node(NodeKind.CTE, "c", 1))
        a = graph.add_node(_node(NodeKind.SOURCE, "a", 0))
        graph.add_edge(a.id, cte.id)
        graph.add_edge(cte.id, target.id)
        graph.add_edge(b.id, target.id)

        order_graph(graph)

        assert list(graph.nodes) == [a.id, b.id, cte.id, target.id]
        assert (a.order, b.order, cte.order, target.order) == (0, 1, 0, 0)

    def test_empty_graph(self):
        graph = order_graph(LineageGraph())
        assert graph.is_empty()
