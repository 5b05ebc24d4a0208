import pytest

from quantiq import ExpressionEvaluator, UnitRegistry, VariableGraph


@pytest.fixture
def registry() -> UnitRegistry:
    """A fresh unit registry, so custom units do not leak between tests."""
    return UnitRegistry()


@pytest.fixture
def evaluator(registry: UnitRegistry) -> ExpressionEvaluator:
    return ExpressionEvaluator(registry)


@pytest.fixture
def graph(registry: UnitRegistry) -> VariableGraph:
    return VariableGraph(registry=registry)
