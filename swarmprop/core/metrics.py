"""Classification measures computed from network outputs."""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from swarmprop.core.errors import EmptyDatasetError
from swarmprop.core.pattern import Pattern
from swarmprop.core.weight_graph import WeightGraph

Array = NDArray[np.float64]


def predicted_class(outputs: Array) -> int:
    """Arg-max of the outputs; the first maximum wins."""
    return int(np.argmax(outputs))


def squared_error(outputs: Array, targets: Array) -> float:
    return float(np.sum(np.square(targets - outputs)))


def is_misclassified(outputs: Array, pattern: Pattern) -> bool:
    return bool(pattern.outputs[predicted_class(outputs)] != 1.0)


def misclassification_count(graph: WeightGraph, patterns: Sequence[Pattern]) -> int:
    count = 0
    for pattern in patterns:
        if is_misclassified(graph.forward(pattern.inputs), pattern):
            count += 1
    return count


def validation_rate(graph: WeightGraph, patterns: Sequence[Pattern]) -> float:
    """Fraction of ``patterns`` the graph classifies correctly."""
    if len(patterns) == 0:
        raise EmptyDatasetError("validation rate needs at least one pattern")
    wrong = misclassification_count(graph, patterns)
    return (len(patterns) - wrong) / float(len(patterns))
