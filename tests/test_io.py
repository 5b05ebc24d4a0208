"""Tests for graph snapshots and result export in quantiq._io."""

import json
import tomllib
from pathlib import Path

import pytest
from pydantic import ValidationError

from quantiq import (
    Operation,
    Variable,
    VariableGraph,
    evaluate_graph,
    export_results_to_toml,
    load_graph,
    results_to_dict,
    save_graph,
)
from quantiq._resolution import NO_EXPRESSION_ERROR

# --- Test Fixtures ---


@pytest.fixture
def area_graph(graph: VariableGraph) -> VariableGraph:
    """width × height, with labels and a display name on the result."""
    width = graph.add(Variable(id="width", name="width", value=3, unit="m"))
    height = graph.add(Variable(id="height", name="height", value=50, unit="cm"))
    graph.add(
        Variable(
            id="area",
            name="area",
            display_name="Floor area",
            inputs=[width.id, height.id],
            operation=Operation.MULTIPLY,
            labels=["room:kitchen"],
        ),
    )
    return graph


# --- get_state() / apply_state() Tests ---


class TestState:
    def test_camel_case_keys_and_absent_fields_omitted(self, area_graph: VariableGraph) -> None:
        state = area_graph.get_state()

        assert state["items"][0] == {
            "id": "width",
            "name": "width",
            "value": 3.0,
            "unit": "m",
            "inputs": [],
            "color": "light-gray",
            "labels": [],
        }
        area = state["items"][2]
        assert area["displayName"] == "Floor area"
        assert area["operation"] == "×"
        assert area["inputs"] == ["width", "height"]
        assert "expression" not in area

    def test_apply_state_replaces_variables(self, area_graph: VariableGraph) -> None:
        other = VariableGraph(registry=area_graph.registry)
        other.add(Variable(id="old", value=1))

        other.apply_state(area_graph.get_state())

        assert "old" not in other
        assert [variable.id for variable in other] == ["width", "height", "area"]
        assert other["area"].computed_value == 15000

    def test_rejected_state_leaves_graph_unchanged(self, graph: VariableGraph) -> None:
        keep = graph.add(Variable(id="keep", value=1))

        with pytest.raises(ValueError, match="Duplicate variable ids in snapshot: x"):
            graph.apply_state({"items": [{"id": "x"}, {"id": "x"}]})

        assert [variable.id for variable in graph] == ["keep"]
        assert keep.graph is graph
        assert keep.computed_value == 1

    def test_malformed_state(self, graph: VariableGraph) -> None:
        with pytest.raises(ValidationError):
            graph.apply_state({"items": [{"id": "a", "value": "lots"}]})

    def test_temporary_value_is_not_saved(self, graph: VariableGraph) -> None:
        variable = graph.add(Variable(id="a", value=1))
        variable.set_temporary_value(5)

        assert graph.get_state()["items"][0]["value"] == 1


# --- save_graph() / load_graph() Tests ---


class TestSaveAndLoad:
    @pytest.mark.parametrize("suffix", [".toml", ".json"])
    def test_round_trip(self, area_graph: VariableGraph, tmp_path: Path, suffix: str) -> None:
        path = tmp_path / f"graph{suffix}"

        save_graph(area_graph, path)
        loaded = load_graph(path, registry=area_graph.registry)

        assert loaded.get_state() == area_graph.get_state()
        assert loaded["area"].computed_unit == "cm^2"

    def test_json_is_readable(self, area_graph: VariableGraph, tmp_path: Path) -> None:
        path = tmp_path / "graph.json"

        save_graph(area_graph, path)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["items"][2]["operation"] == "×"

    def test_unsupported_suffix(self, area_graph: VariableGraph, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Unsupported graph file format"):
            save_graph(area_graph, tmp_path / "graph.yaml")
        with pytest.raises(ValueError, match="Unsupported graph file format"):
            load_graph(tmp_path / "graph.yaml")

    def test_load_hand_written_toml(self, tmp_path: Path, graph: VariableGraph) -> None:
        path = tmp_path / "graph.toml"
        path.write_text(
            """
[[items]]
id = "d"
name = "distance"
value = 20
unit = "m"

[[items]]
id = "t"
name = "time"
value = 10
unit = "s"

[[items]]
id = "v"
inputs = ["d", "t"]
expression = "distance / time"
""",
        )

        loaded = load_graph(path, registry=graph.registry)

        assert loaded["v"].computed_value == 2
        assert loaded["v"].computed_unit == "m / s"


# --- results_to_dict() / export_results_to_toml() Tests ---


class TestResults:
    def test_results_to_dict(self, area_graph: VariableGraph) -> None:
        area_graph.add(Variable(id="broken", inputs=["width", "height", "area"]))

        data = results_to_dict(area_graph, evaluate_graph(area_graph))

        assert data["width"] == {"name": "width", "value": 3.0, "unit": "m"}
        assert data["area"]["value"] == 15000
        assert data["area"]["unit"] == "cm^2"
        assert data["broken"] == {"value_error": NO_EXPRESSION_ERROR}

    def test_export_results_to_toml(self, area_graph: VariableGraph, tmp_path: Path) -> None:
        output = tmp_path / "results.toml"

        export_results_to_toml(area_graph, evaluate_graph(area_graph), output)

        with output.open("rb") as f:
            data = tomllib.load(f)
        assert list(data) == ["width", "height", "area"]
        assert data["height"] == {"name": "height", "value": 50.0, "unit": "cm"}
