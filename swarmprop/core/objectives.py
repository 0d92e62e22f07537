"""Closed-form objectives for exercising the swarm without a network."""

from __future__ import annotations

from typing import Callable

import numpy as np
from numpy.typing import NDArray

Array = NDArray[np.float64]

Objective = Callable[[Array], float]


def sphere(position: Array) -> float:
    values = np.asarray(position, dtype=np.float64)
    return float(np.dot(values, values))


def beale(position: Array) -> float:
    """Beale's function on the first two coordinates; minimum 0 at (3, 0.5)."""
    values = np.asarray(position, dtype=np.float64)
    if values.size < 2:
        raise ValueError("beale needs at least two coordinates")
    x, y = float(values[0]), float(values[1])
    return (
        (1.5 - x + x * y) ** 2
        + (2.25 - x + x * y**2) ** 2
        + (2.625 - x + x * y**3) ** 2
    )


OBJECTIVES: dict[str, Objective] = {
    "beale": beale,
    "sphere": sphere,
}
