from __future__ import annotations

import numpy as np
import pytest

from swarmprop.app.training_loop import (
    TrainingConfig,
    TrainingLoop,
    format_training_report,
    run_training,
)
from swarmprop.core.errors import DimensionMismatch, EmptyDatasetError, InvalidConfiguration
from swarmprop.core.metrics import misclassification_count
from swarmprop.core.pattern import Pattern
from swarmprop.infra.datasets import PatternSplit, generate_cluster_patterns
from swarmprop.infra.metrics_sinks import MemoryMetricsSink


def _split() -> PatternSplit:
    return generate_cluster_patterns(
        sample_count=90, input_dim=3, class_count=3, noise_scale=0.06, seed=4
    )


def test_should_run_backprop_for_inclusive_epoch_count() -> None:
    split = _split()
    config = TrainingConfig(algorithm="backprop", input_dim=3, hidden_dim=5, output_dim=3, max_iteration=4)
    sink = MemoryMetricsSink()

    report = run_training(config, split.train, split.validation, sink=sink)

    assert len(report.history) == 5
    assert [metrics.epoch_index for metrics in sink.records] == [0, 1, 2, 3, 4]
    assert all(metrics.best_fitness is None for metrics in report.history)
    assert all(0.0 <= metrics.validation_rate <= 1.0 for metrics in report.history)
    assert report.best_fitness is None
    assert report.position_faults == 0
    assert "Backpropagation training" in format_training_report(report)


def test_should_track_non_increasing_global_best_with_swarm() -> None:
    split = _split()
    config = TrainingConfig(
        algorithm="pso", input_dim=3, hidden_dim=4, output_dim=3, max_iteration=6, swarm_size=8, seed=3
    )
    loop = TrainingLoop(config)

    report = loop.run(split.train, split.validation)

    fitness_history = [metrics.best_fitness for metrics in report.history]
    assert all(later <= earlier for earlier, later in zip(fitness_history, fitness_history[1:]))
    assert report.best_fitness == loop.swarm.global_best.fitness
    assert report.position_faults == loop.swarm.position_faults
    np.testing.assert_array_equal(loop.graph.export_weights(), loop.swarm.global_best.position)
    text = format_training_report(report)
    assert "Particle Swarm Optimization training" in text
    assert "Global best misclassifications" in text


def test_should_score_particles_by_misclassification_count() -> None:
    split = _split()
    config = TrainingConfig(
        algorithm="pso", input_dim=3, hidden_dim=4, output_dim=3, max_iteration=0, swarm_size=5
    )
    loop = TrainingLoop(config)

    metrics = loop.run_epoch(0, split.train, split.validation)

    assert metrics.best_fitness == float(misclassification_count(loop.graph, split.train))
    assert metrics.best_fitness == min(particle.fitness for particle in loop.swarm.particles)


def test_should_derive_swarm_dimensions_from_network() -> None:
    config = TrainingConfig(
        algorithm="pso", input_dim=13, hidden_dim=10, output_dim=3, max_iteration=1, swarm_size=3
    )
    loop = TrainingLoop(config)

    assert loop.swarm.config.dimensions == loop.graph.weight_count == 160


def test_should_be_deterministic_for_a_fixed_seed() -> None:
    split = _split()
    config = TrainingConfig(
        algorithm="pso", input_dim=3, hidden_dim=3, output_dim=3, max_iteration=3, swarm_size=4, seed=12
    )

    first = run_training(config, split.train, split.validation)
    second = run_training(config, split.train, split.validation)

    assert [m.error for m in first.history] == [m.error for m in second.history]
    assert [m.best_fitness for m in first.history] == [m.best_fitness for m in second.history]


def test_should_reject_patterns_with_wrong_dimensions() -> None:
    config = TrainingConfig(algorithm="backprop", input_dim=3, hidden_dim=2, output_dim=3, max_iteration=1)
    wrong = [Pattern.from_class_index([0.1, 0.2], class_index=0, output_dim=3)]
    good = [Pattern.from_class_index([0.1, 0.2, 0.3], class_index=0, output_dim=3)]

    with pytest.raises(DimensionMismatch):
        run_training(config, wrong, good)
    with pytest.raises(DimensionMismatch):
        run_training(config, good, wrong)


def test_should_reject_empty_pattern_sets() -> None:
    config = TrainingConfig(algorithm="backprop", input_dim=1, hidden_dim=2, output_dim=2, max_iteration=1)
    patterns = [Pattern.from_class_index([0.5], class_index=1, output_dim=2)]

    with pytest.raises(EmptyDatasetError):
        run_training(config, patterns, [])
    with pytest.raises(EmptyDatasetError):
        run_training(config, [], patterns)


def test_should_reject_unknown_algorithm_and_bad_bounds() -> None:
    with pytest.raises(InvalidConfiguration):
        TrainingConfig(algorithm="genetic", input_dim=1, hidden_dim=1, output_dim=2, max_iteration=1)
    with pytest.raises(InvalidConfiguration):
        TrainingLoop(
            TrainingConfig(
                algorithm="pso", input_dim=1, hidden_dim=1, output_dim=2, max_iteration=1, x_min=1.0, x_max=-1.0
            )
        )
