"""Three-layer fully-connected sigmoid network with flat weight addressing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from swarmprop.core.activations import (
    DEFAULT_STEEPNESS,
    sigmoid,
    sigmoid_derivative_from_output,
)
from swarmprop.core.errors import DimensionMismatch, InvalidConfiguration

Array = NDArray[np.float64]


@dataclass(frozen=True)
class Computed:
    """Neuron output is derived from its weighted inputs and bias."""


@dataclass(frozen=True)
class Pinned:
    """Neuron output is supplied from outside the network."""

    value: float


NeuronOutputState = Union[Computed, Pinned]

COMPUTED = Computed()


@dataclass
class Weight:
    """Incoming connection identified by its source neuron's index."""

    source_index: int
    value: float


class Neuron:
    """Sigmoid unit holding one weight per neuron of the previous layer."""

    def __init__(
        self,
        weights: list[Weight] | None = None,
        bias: float = 0.0,
        steepness: float = DEFAULT_STEEPNESS,
    ) -> None:
        self.weights: list[Weight] = list(weights or [])
        self.bias = bias
        self.weighted_sum = 0.0
        self.error = 0.0
        self.state: NeuronOutputState = COMPUTED
        self._steepness = steepness

    @property
    def output(self) -> float:
        # Re-evaluated on every read so a bias update is visible immediately.
        if isinstance(self.state, Pinned):
            return self.state.value
        return sigmoid(self.weighted_sum + self.bias, self._steepness)

    @property
    def derivative(self) -> float:
        return sigmoid_derivative_from_output(self.output)

    def pin(self, value: float) -> None:
        self.state = Pinned(float(value))

    def activate(self, previous: Layer) -> None:
        """Cache the weighted sum of the previous layer's current outputs."""
        total = 0.0
        for weight in self.weights:
            total += weight.value * previous[weight.source_index].output
        self.weighted_sum = total

    def error_feedback(self, source_index: int) -> float:
        """Error this neuron sends back through its link to ``source_index``."""
        return self.error * self.derivative * self.weights[source_index].value

    def adjust_weights(self, error: float, learning_rate: float, previous: Layer) -> None:
        self.error = error
        step = error * self.derivative * learning_rate
        for weight in self.weights:
            weight.value += step * previous[weight.source_index].output
        self.bias += step


@dataclass
class Layer:
    """Ordered, fixed-size sequence of neurons."""

    neurons: list[Neuron] = field(default_factory=list)

    @classmethod
    def empty(cls, size: int, steepness: float = DEFAULT_STEEPNESS) -> Layer:
        """Layer without incoming weights, used for pinned inputs."""
        return cls(neurons=[Neuron(steepness=steepness) for _ in range(size)])

    @classmethod
    def fully_connected(
        cls,
        size: int,
        previous: Layer,
        rng: np.random.Generator,
        steepness: float = DEFAULT_STEEPNESS,
    ) -> Layer:
        """Layer whose neurons each link to every neuron of ``previous``."""
        neurons: list[Neuron] = []
        for _ in range(size):
            values = rng.uniform(-1.0, 1.0, size=len(previous))
            weights = [
                Weight(source_index=source_index, value=float(value))
                for source_index, value in enumerate(values)
            ]
            neurons.append(Neuron(weights=weights, steepness=steepness))
        return cls(neurons=neurons)

    def __len__(self) -> int:
        return len(self.neurons)

    def __iter__(self) -> Iterator[Neuron]:
        return iter(self.neurons)

    def __getitem__(self, index: int) -> Neuron:
        return self.neurons[index]

    def outputs(self) -> Array:
        return np.array([neuron.output for neuron in self.neurons], dtype=np.float64)


class WeightGraph:
    """Input, hidden and output layers wired input -> hidden -> output.

    The flat weight vector lists every hidden-layer weight first (hidden
    neuron major, input neuron minor) and then every output-layer weight
    (output neuron major, hidden neuron minor). Biases are not part of it.
    """

    def __init__(
        self,
        input_dim: int,
        hidden_dim: int,
        output_dim: int,
        rng: np.random.Generator,
        steepness: float = DEFAULT_STEEPNESS,
    ) -> None:
        if input_dim <= 0 or hidden_dim <= 0 or output_dim <= 0:
            raise InvalidConfiguration("all layer dimensions must be positive")
        self.input_dim = input_dim
        self.hidden_dim = hidden_dim
        self.output_dim = output_dim
        self.steepness = steepness

        self.inputs = Layer.empty(input_dim, steepness=steepness)
        self.hidden = Layer.fully_connected(hidden_dim, self.inputs, rng, steepness=steepness)
        self.outputs = Layer.fully_connected(output_dim, self.hidden, rng, steepness=steepness)

    @property
    def weight_count(self) -> int:
        return self.hidden_dim * self.input_dim + self.output_dim * self.hidden_dim

    def forward(self, input_vector: Sequence[float] | Array) -> Array:
        values = np.asarray(input_vector, dtype=np.float64).reshape(-1)
        if values.size != self.input_dim:
            raise DimensionMismatch(
                f"expected {self.input_dim} input values, received {values.size}"
            )
        for neuron, value in zip(self.inputs, values):
            neuron.pin(value)
        for neuron in self.hidden:
            neuron.activate(self.inputs)
        for neuron in self.outputs:
            neuron.activate(self.hidden)
        return self.outputs.outputs()

    def classify(self, input_vector: Sequence[float] | Array) -> int:
        """Index of the strongest output; the first one wins on ties."""
        return int(np.argmax(self.forward(input_vector)))

    def export_weights(self) -> Array:
        return np.fromiter(
            (weight.value for weight in self._iter_weights()),
            dtype=np.float64,
            count=self.weight_count,
        )

    def import_weights(self, vector: Sequence[float] | Array) -> None:
        values = np.asarray(vector, dtype=np.float64)
        if values.ndim != 1 or values.size != self.weight_count:
            raise DimensionMismatch(
                f"expected a flat vector of {self.weight_count} weights, "
                f"received shape {values.shape}"
            )
        for weight, value in zip(self._iter_weights(), values):
            weight.value = float(value)

    def adjust_weights(self, output_errors: Sequence[float] | Array, learning_rate: float) -> None:
        """Apply one online backpropagation update from per-output errors."""
        errors = np.asarray(output_errors, dtype=np.float64).reshape(-1)
        if errors.size != self.output_dim:
            raise DimensionMismatch(
                f"expected {self.output_dim} output errors, received {errors.size}"
            )
        for neuron, error in zip(self.outputs, errors):
            neuron.adjust_weights(float(error), learning_rate, self.hidden)

        # Feedback reads the output weights and biases as just updated.
        for hidden_index, neuron in enumerate(self.hidden):
            error_sum = 0.0
            for output_neuron in self.outputs:
                error_sum += output_neuron.error_feedback(hidden_index)
            neuron.adjust_weights(error_sum, learning_rate, self.inputs)

    def _iter_weights(self) -> Iterator[Weight]:
        for neuron in self.hidden:
            yield from neuron.weights
        for neuron in self.outputs:
            yield from neuron.weights
