"""Online backpropagation over a shared weight graph."""

from __future__ import annotations

from dataclasses import dataclass

from swarmprop.core.errors import DimensionMismatch, InvalidConfiguration
from swarmprop.core.metrics import is_misclassified, squared_error
from swarmprop.core.pattern import Pattern
from swarmprop.core.weight_graph import WeightGraph

DEFAULT_LEARNING_RATE = 0.7


@dataclass(frozen=True)
class BackpropStepResult:
    """Error signal observed for one presented pattern."""

    squared_error: float
    misclassified: bool


class BackpropagationOptimizer:
    """Updates weights in place after every pattern, not per batch."""

    def __init__(self, learning_rate: float = DEFAULT_LEARNING_RATE) -> None:
        if learning_rate <= 0.0:
            raise InvalidConfiguration("learning_rate must be positive")
        self.learning_rate = learning_rate

    def train_pattern(self, graph: WeightGraph, pattern: Pattern) -> BackpropStepResult:
        if pattern.output_dim != graph.output_dim:
            raise DimensionMismatch(
                f"pattern has {pattern.output_dim} outputs, network has {graph.output_dim}"
            )
        predicted = graph.forward(pattern.inputs)
        delta = pattern.outputs - predicted
        result = BackpropStepResult(
            squared_error=squared_error(predicted, pattern.outputs),
            misclassified=is_misclassified(predicted, pattern),
        )
        graph.adjust_weights(delta, self.learning_rate)
        return result
