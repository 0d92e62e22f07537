"""Epoch orchestration for backpropagation and particle swarm training."""

from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import Protocol, Sequence

import numpy as np

from swarmprop.core.activations import DEFAULT_STEEPNESS
from swarmprop.core.backprop import DEFAULT_LEARNING_RATE, BackpropagationOptimizer
from swarmprop.core.errors import DimensionMismatch, EmptyDatasetError, InvalidConfiguration
from swarmprop.core.metrics import is_misclassified, squared_error, validation_rate
from swarmprop.core.particle_swarm import ParticleSwarmOptimizer, SwarmConfig
from swarmprop.core.pattern import Pattern
from swarmprop.core.weight_graph import WeightGraph

ALGORITHMS = ("backprop", "pso")


@dataclass(frozen=True)
class TrainingConfig:
    """Network shape, optimizer choice and its fixed hyperparameters."""

    algorithm: str
    input_dim: int
    hidden_dim: int
    output_dim: int
    max_iteration: int
    learning_rate: float = DEFAULT_LEARNING_RATE
    steepness: float = DEFAULT_STEEPNESS
    swarm_size: int = 50
    x_min: float = -1.0
    x_max: float = 1.0
    velocity_clamp: float | None = None
    seed: int = 7

    def __post_init__(self) -> None:
        if self.algorithm not in ALGORITHMS:
            raise InvalidConfiguration(
                f"algorithm must be one of {ALGORITHMS}, got {self.algorithm!r}"
            )
        if self.max_iteration < 0:
            raise InvalidConfiguration("max_iteration cannot be negative")


@dataclass(frozen=True)
class EpochMetrics:
    """Metrics emitted after every epoch."""

    epoch_index: int
    error: float
    validation_rate: float
    best_fitness: float | None = None


class MetricsSink(Protocol):
    """Receiver of per-epoch metrics."""

    def record(self, metrics: EpochMetrics) -> None:
        """Consume metrics for one finished epoch."""


@dataclass(frozen=True)
class TrainingReport:
    """End-of-run summary."""

    algorithm: str
    history: list[EpochMetrics]
    final_validation_rate: float
    best_fitness: float | None
    position_faults: int
    elapsed_seconds: float


class TrainingLoop:
    """Runs one optimizer over the full pattern set for a fixed epoch count.

    After training, :attr:`graph` holds the trained weights (for PSO, the
    global best position) and can classify new examples.
    """

    def __init__(self, config: TrainingConfig, rng: np.random.Generator | None = None) -> None:
        self.config = config
        self._rng = rng if rng is not None else np.random.default_rng(config.seed)
        self.graph = WeightGraph(
            input_dim=config.input_dim,
            hidden_dim=config.hidden_dim,
            output_dim=config.output_dim,
            rng=self._rng,
            steepness=config.steepness,
        )
        self.backprop: BackpropagationOptimizer | None = None
        self.swarm: ParticleSwarmOptimizer | None = None
        if config.algorithm == "backprop":
            self.backprop = BackpropagationOptimizer(learning_rate=config.learning_rate)
        else:
            swarm_config = SwarmConfig(
                swarm_size=config.swarm_size,
                dimensions=self.graph.weight_count,
                x_min=config.x_min,
                x_max=config.x_max,
                velocity_clamp=config.velocity_clamp,
            )
            self.swarm = ParticleSwarmOptimizer(
                config=swarm_config,
                rng=self._rng,
                weight_count=self.graph.weight_count,
            )

    def run(
        self,
        train_patterns: Sequence[Pattern],
        validation_patterns: Sequence[Pattern],
        sink: MetricsSink | None = None,
    ) -> TrainingReport:
        self._check_patterns(train_patterns, "training")
        self._check_patterns(validation_patterns, "validation")

        started = perf_counter()
        history: list[EpochMetrics] = []
        for epoch_index in range(self.config.max_iteration + 1):
            metrics = self.run_epoch(epoch_index, train_patterns, validation_patterns)
            history.append(metrics)
            if sink is not None:
                sink.record(metrics)

        final = history[-1]
        return TrainingReport(
            algorithm=self.config.algorithm,
            history=history,
            final_validation_rate=final.validation_rate,
            best_fitness=final.best_fitness,
            position_faults=self.swarm.position_faults if self.swarm is not None else 0,
            elapsed_seconds=perf_counter() - started,
        )

    def run_epoch(
        self,
        epoch_index: int,
        train_patterns: Sequence[Pattern],
        validation_patterns: Sequence[Pattern],
    ) -> EpochMetrics:
        best_fitness: float | None = None
        if self.backprop is not None:
            error = self._backprop_epoch(train_patterns)
        else:
            error = self._swarm_epoch(epoch_index, train_patterns)
            best_fitness = float(self.swarm.global_best.fitness)

        return EpochMetrics(
            epoch_index=epoch_index,
            error=error,
            validation_rate=validation_rate(self.graph, validation_patterns),
            best_fitness=best_fitness,
        )

    def _backprop_epoch(self, train_patterns: Sequence[Pattern]) -> float:
        error = 0.0
        for pattern in train_patterns:
            error += self.backprop.train_pattern(self.graph, pattern).squared_error
        return error

    def _swarm_epoch(self, epoch_index: int, train_patterns: Sequence[Pattern]) -> float:
        swarm = self.swarm
        swarm.reset_fitness()
        error = 0.0
        for index, particle in enumerate(swarm.particles):
            self.graph.import_weights(particle.position)
            for pattern in train_patterns:
                predicted = self.graph.forward(pattern.inputs)
                error += squared_error(predicted, pattern.outputs)
                if is_misclassified(predicted, pattern):
                    swarm.add_fitness(index, 1.0)

        swarm.step(epoch_index)
        self.graph.import_weights(swarm.global_best.position)
        return error

    def _check_patterns(self, patterns: Sequence[Pattern], label: str) -> None:
        if len(patterns) == 0:
            raise EmptyDatasetError(f"{label} set is empty")
        for pattern in patterns:
            if pattern.input_dim != self.config.input_dim or pattern.output_dim != self.config.output_dim:
                raise DimensionMismatch(
                    f"{label} pattern has shape ({pattern.input_dim}, {pattern.output_dim}), "
                    f"network expects ({self.config.input_dim}, {self.config.output_dim})"
                )


def run_training(
    config: TrainingConfig,
    train_patterns: Sequence[Pattern],
    validation_patterns: Sequence[Pattern],
    sink: MetricsSink | None = None,
) -> TrainingReport:
    """Build a training loop from ``config`` and run it to completion."""
    return TrainingLoop(config).run(train_patterns, validation_patterns, sink=sink)


def format_training_report(report: TrainingReport) -> str:
    """Build a human-readable training summary."""
    first = report.history[0]
    last = report.history[-1]
    title = "Backpropagation" if report.algorithm == "backprop" else "Particle Swarm Optimization"
    lines = [
        f"{title} training",
        "-" * (len(title) + 9),
        f"Epochs: {len(report.history)}",
        f"Error: {first.error:.3f} -> {last.error:.3f}",
        f"Validation rate: {first.validation_rate:.3f} -> {report.final_validation_rate:.3f}",
    ]
    if report.best_fitness is not None:
        lines.append(f"Global best misclassifications: {report.best_fitness:.0f}")
        lines.append(f"Position faults: {report.position_faults}")
    lines.append(f"Elapsed: {report.elapsed_seconds:.2f}s")
    return "\n".join(lines)
