"""Labeled training example with a one-hot target vector."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from swarmprop.core.errors import MalformedPattern

Array = NDArray[np.float64]


@dataclass(frozen=True, eq=False)
class Pattern:
    """Input feature vector paired with its one-hot expected output."""

    inputs: Array
    outputs: Array

    def __post_init__(self) -> None:
        inputs = np.array(self.inputs, dtype=np.float64).reshape(-1)
        outputs = np.array(self.outputs, dtype=np.float64).reshape(-1)
        if inputs.size == 0:
            raise MalformedPattern("pattern inputs cannot be empty")
        hot_count = int(np.count_nonzero(outputs == 1.0))
        cold_count = int(np.count_nonzero(outputs == 0.0))
        if hot_count != 1 or hot_count + cold_count != outputs.size:
            raise MalformedPattern("pattern outputs must be a one-hot vector")
        inputs.setflags(write=False)
        outputs.setflags(write=False)
        object.__setattr__(self, "inputs", inputs)
        object.__setattr__(self, "outputs", outputs)

    @classmethod
    def from_class_index(
        cls,
        inputs: Sequence[float] | Array,
        class_index: int,
        output_dim: int,
    ) -> Pattern:
        if output_dim <= 0:
            raise MalformedPattern("output_dim must be positive")
        if class_index < 0 or class_index >= output_dim:
            raise MalformedPattern(
                f"class index {class_index} is outside 0..{output_dim - 1}"
            )
        outputs = np.zeros(output_dim, dtype=np.float64)
        outputs[class_index] = 1.0
        return cls(inputs=np.asarray(inputs, dtype=np.float64), outputs=outputs)

    @classmethod
    def from_tokens(
        cls,
        tokens: Sequence[str],
        input_dim: int,
        output_dim: int,
        class_index: int,
    ) -> Pattern:
        """Parse exactly ``input_dim`` numeric tokens into a pattern."""
        if len(tokens) != input_dim:
            raise MalformedPattern(
                f"expected {input_dim} feature values, found {len(tokens)}"
            )
        try:
            values = [float(token) for token in tokens]
        except ValueError as exc:
            raise MalformedPattern(f"non-numeric feature value in {list(tokens)!r}") from exc
        return cls.from_class_index(values, class_index=class_index, output_dim=output_dim)

    @property
    def input_dim(self) -> int:
        return int(self.inputs.size)

    @property
    def output_dim(self) -> int:
        return int(self.outputs.size)

    @property
    def expected_index(self) -> int:
        return int(np.argmax(self.outputs))

    def with_inputs(self, inputs: Sequence[float] | Array) -> Pattern:
        """Return a copy with replaced inputs and the same target."""
        return Pattern(inputs=np.asarray(inputs, dtype=np.float64), outputs=self.outputs)
