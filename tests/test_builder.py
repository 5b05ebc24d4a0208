"""Tests for building the effective expression of a variable."""

import pytest

from quantiq import Operation, build_expression
from quantiq._builder import input_token, referenced_inputs, replace_input_names


class TestReplaceInputNames:
    """Tests for substituting input names with positional tokens."""

    def test_replaces_names_in_order(self) -> None:
        assert replace_input_names("a * b", ["a", "b"]) == "input_0 * input_1"

    def test_matches_whole_identifiers_only(self) -> None:
        assert replace_input_names("ab + a + a2", ["a"]) == "ab + input_0 + a2"

    def test_first_duplicate_name_wins(self) -> None:
        assert replace_input_names("a + a", ["a", "a"]) == "input_0 + input_0"

    def test_unnamed_inputs_are_skipped(self) -> None:
        assert replace_input_names("a + b", [None, "b"]) == "a + input_1"

    def test_unit_names_are_left_alone(self) -> None:
        assert replace_input_names("a to cm", ["a"]) == "input_0 to cm"

    def test_unicode_names(self) -> None:
        assert replace_input_names("Δt * v", ["Δt", "v"]) == "input_0 * input_1"


class TestBuildExpression:
    """Tests for build_expression."""

    def test_expression(self) -> None:
        assert build_expression("a * b", None, ["a", "b"]) == "input_0 * input_1"

    def test_expression_with_unit(self) -> None:
        assert build_expression("a*b", None, ["a", "b"], "mm^2") == "(input_0*input_1) to mm^2"

    def test_expression_takes_precedence_over_operation(self) -> None:
        assert build_expression("a - b", Operation.ADD, ["a", "b"]) == "input_0 - input_1"

    @pytest.mark.parametrize(
        ("operation", "expected"),
        [
            (Operation.ADD, "input_0 + input_1"),
            (Operation.SUBTRACT, "input_0 - input_1"),
            (Operation.MULTIPLY, "input_0 × input_1"),
            (Operation.DIVIDE, "input_0 ÷ input_1"),
        ],
    )
    def test_operation_with_two_inputs(self, operation: Operation, expected: str) -> None:
        assert build_expression(None, operation, ["a", "b"]) == expected

    def test_single_input_passes_through(self) -> None:
        assert build_expression(None, Operation.ADD, ["a"]) == "input_0"

    def test_single_input_with_unit(self) -> None:
        assert build_expression(None, None, [None], "cm") == "(input_0) to cm"

    def test_two_inputs_without_operation(self) -> None:
        assert build_expression(None, None, ["a", "b"]) is None

    def test_three_inputs_without_expression(self) -> None:
        assert build_expression(None, Operation.ADD, ["a", "b", "c"]) is None

    def test_no_inputs(self) -> None:
        assert build_expression(None, None, [], "m") is None


class TestReferencedInputs:
    """Tests for finding the input tokens an expression uses."""

    def test_sorted_and_unique(self) -> None:
        assert referenced_inputs("(input_1 + input_0 * input_1) to m") == [0, 1]

    def test_ignores_longer_identifiers(self) -> None:
        assert referenced_inputs("input_0x + my_input_1") == []

    def test_empty(self) -> None:
        assert referenced_inputs(None) == []
        assert input_token(3) == "input_3"


class TestOperation:
    """Tests for the Operation enum."""

    def test_serializes_as_symbol(self) -> None:
        assert Operation.MULTIPLY.value == "×"
        assert str(Operation.DIVIDE) == "÷"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("×", Operation.MULTIPLY), ("*", Operation.MULTIPLY), ("/", Operation.DIVIDE), ("add", Operation.ADD)],
    )
    def test_accepts_ascii_symbols_and_names(self, raw: str, expected: Operation) -> None:
        assert Operation(raw) is expected

    def test_members_have_docs(self) -> None:
        assert Operation.SUBTRACT.__doc__ == "First input minus the second."
