"""Tests for InputGraph and graph algorithms."""

import pytest

from quantiq import InputGraph, Variable, VariableGraph
from quantiq._graph import topological_sort


class TestTopologicalSort:
    """Tests for the topological_sort algorithm."""

    def test_empty_graph(self) -> None:
        assert topological_sort({}) == ([], [])

    def test_linear_chain(self) -> None:
        assert topological_sort({"a": ["b"], "b": ["c"], "c": []}) == (["a", "b", "c"], [])

    def test_diamond(self) -> None:
        order, remaining = topological_sort({"a": ["b", "c"], "b": ["d"], "c": ["d"], "d": []})

        assert order == ["a", "b", "c", "d"]
        assert remaining == []

    def test_cycle_is_left_over(self) -> None:
        assert topological_sort({"a": ["b"], "b": ["a"], "c": []}) == (["c"], ["a", "b"])

    def test_downstream_of_cycle_is_left_over(self) -> None:
        assert topological_sort({"a": ["b"], "b": ["a", "c"], "c": []}) == ([], ["a", "b", "c"])

    def test_self_loop(self) -> None:
        assert topological_sort({"a": ["a"]}) == ([], ["a"])


class TestInputGraph:
    """Tests for InputGraph queries."""

    @pytest.fixture
    def chain(self) -> InputGraph[str]:
        # a -> b -> c, d alone
        return InputGraph.from_edges([("a", "b"), ("b", "c")], nodes=["d"])

    def test_nodes(self, chain: InputGraph[str]) -> None:
        assert set(chain.nodes) == {"a", "b", "c", "d"}
        assert len(chain) == 4
        assert "d" in chain
        assert "e" not in chain

    def test_direct_neighbors(self, chain: InputGraph[str]) -> None:
        assert chain.inputs_of("b") == ("a",)
        assert chain.dependents_of("b") == ("c",)
        assert chain.inputs_of("unknown") == ()

    def test_sources_and_sinks(self, chain: InputGraph[str]) -> None:
        assert set(chain.sources()) == {"a", "d"}
        assert set(chain.sinks()) == {"c", "d"}

    def test_upstream_and_downstream(self, chain: InputGraph[str]) -> None:
        assert chain.upstream("c") == frozenset({"a", "b"})
        assert chain.downstream("a") == frozenset({"b", "c"})
        assert chain.upstream("a") == frozenset()

    def test_evaluation_order(self, chain: InputGraph[str]) -> None:
        order = chain.evaluation_order()

        assert order.index("a") < order.index("b") < order.index("c")
        assert not chain.has_cycle()
        assert chain.cycle_members() == ()

    def test_duplicate_edges_are_ignored(self) -> None:
        graph = InputGraph.from_edges([("a", "b"), ("a", "b")])

        assert graph.inputs_of("b") == ("a",)
        assert graph.evaluation_order() == ["a", "b"]

    def test_cycle(self) -> None:
        graph = InputGraph.from_edges([("a", "b"), ("b", "a"), ("b", "c"), ("x", "y")])

        assert graph.has_cycle()
        assert set(graph.cycle_members()) == {"a", "b"}
        assert graph.upstream("a") == frozenset({"a", "b"})
        with pytest.raises(ValueError, match="Cycle detected"):
            graph.evaluation_order()

    def test_non_strict_order_puts_cycles_last(self) -> None:
        graph = InputGraph.from_edges([("a", "b"), ("b", "a"), ("x", "y")])

        order = graph.evaluation_order(strict=False)

        assert order[:2] == ["x", "y"]
        assert set(order[2:]) == {"a", "b"}


class TestFromVariables:
    """Tests for the dependency view of a variable graph."""

    def test_edges_follow_inputs(self, graph: VariableGraph) -> None:
        a = graph.add(Variable(name="a"))
        b = graph.add(Variable(name="b"))
        total = graph.add(Variable(inputs=[a.id, b.id, "stale"]))

        view = graph.input_graph()

        assert view.inputs_of(total.id) == (a.id, b.id)
        assert "stale" not in view
        assert view.downstream(a.id) == frozenset({total.id})
        assert view.evaluation_order()[-1] == total.id
