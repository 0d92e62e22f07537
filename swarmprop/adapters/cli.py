"""Command-line adapter for training runs and objective searches."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

import numpy as np

from swarmprop.app.objective_search import (
    ObjectiveSearchConfig,
    format_objective_search_result,
    run_objective_search,
)
from swarmprop.app.training_loop import (
    ALGORITHMS,
    MetricsSink,
    TrainingConfig,
    TrainingLoop,
    format_training_report,
)
from swarmprop.config.presets import get_preset
from swarmprop.config.settings import load_settings_from_env
from swarmprop.core.objectives import OBJECTIVES
from swarmprop.core.weight_graph import WeightGraph
from swarmprop.infra.datasets import (
    PatternSplit,
    generate_cluster_patterns,
    load_pattern_split,
    split_line,
)
from swarmprop.infra.metrics_sinks import CompositeMetricsSink, ConsoleMetricsSink, CsvMetricsSink


def build_argument_parser() -> argparse.ArgumentParser:
    """Create CLI parser."""
    settings = load_settings_from_env()

    parser = argparse.ArgumentParser(
        description="Train a sigmoid network with backpropagation or particle swarm optimization."
    )
    parser.add_argument(
        "--mode",
        choices=["train", "objective"],
        default="train",
        help="train: fit the network, objective: minimize a closed-form function with the swarm.",
    )
    parser.add_argument("--algorithm", choices=list(ALGORITHMS), default="pso")
    parser.add_argument(
        "--dataset",
        choices=["synthetic", "digits", "wine"],
        default="synthetic",
        help="digits/wine read digit_*/wine_* text files from --data-dir.",
    )
    parser.add_argument("--data-dir", type=str, default=".", help="Directory holding dataset files.")
    parser.add_argument("--samples", type=int, default=settings.sample_count, help="Synthetic samples.")
    parser.add_argument("--features", type=int, default=4, help="Synthetic input dimension.")
    parser.add_argument("--classes", type=int, default=3, help="Synthetic class count.")
    parser.add_argument("--noise", type=float, default=0.08, help="Synthetic cluster spread.")
    parser.add_argument("--epochs", type=int, default=None, help="Last epoch index (inclusive).")
    parser.add_argument("--hidden-dim", type=int, default=None, help="Hidden layer width.")
    parser.add_argument("--swarm-size", type=int, default=None, help="Particles in the swarm.")
    parser.add_argument("--learning-rate", type=float, default=0.7)
    parser.add_argument("--velocity-clamp", type=float, default=None)
    parser.add_argument(
        "--seed",
        type=int,
        default=settings.base_seed,
        help="Random seed for deterministic runs.",
    )
    parser.add_argument("--metrics-csv", type=str, default="", help="Optional per-epoch CSV path.")
    parser.add_argument(
        "--predict-file",
        type=str,
        default="",
        help="Optional file of feature lines to classify after training.",
    )
    parser.add_argument("--objective", choices=sorted(OBJECTIVES), default="beale")
    parser.add_argument("--iterations", type=int, default=300, help="Objective search iterations.")
    parser.add_argument("--verbose", action="store_true", help="Log debug detail.")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Run a training session or objective search from the command line."""
    parser = build_argument_parser()
    arguments = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if arguments.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if arguments.mode == "objective":
        result = run_objective_search(
            ObjectiveSearchConfig(
                objective_name=arguments.objective,
                swarm_size=arguments.swarm_size or 30,
                iteration_count=arguments.iterations,
                velocity_clamp=arguments.velocity_clamp,
                seed=arguments.seed,
            )
        )
        print(format_objective_search_result(result))
        return

    settings = load_settings_from_env()
    rng = np.random.default_rng(arguments.seed)
    config, split = _build_training_inputs(arguments, settings.epoch_count, settings.swarm_size, rng)

    sinks: list[MetricsSink] = [ConsoleMetricsSink()]
    if arguments.metrics_csv:
        sinks.append(
            CsvMetricsSink(arguments.metrics_csv, include_best_fitness=config.algorithm == "pso")
        )

    loop = TrainingLoop(config, rng=rng)
    report = loop.run(split.train, split.validation, sink=CompositeMetricsSink(sinks))
    print(format_training_report(report))

    if arguments.predict_file:
        for predicted in _classify_file(loop.graph, arguments.predict_file):
            print(predicted)


def _build_training_inputs(
    arguments: argparse.Namespace,
    default_epochs: int,
    default_swarm_size: int,
    rng: np.random.Generator,
) -> tuple[TrainingConfig, PatternSplit]:
    if arguments.dataset == "synthetic":
        split = generate_cluster_patterns(
            sample_count=arguments.samples,
            input_dim=arguments.features,
            class_count=arguments.classes,
            noise_scale=arguments.noise,
            seed=arguments.seed,
        )
        input_dim, output_dim = arguments.features, arguments.classes
        hidden_dim, epochs, swarm_size = 6, default_epochs, default_swarm_size
        x_min, x_max = -1.0, 1.0
    else:
        preset = get_preset(arguments.algorithm, arguments.dataset)
        split = load_pattern_split(arguments.dataset, arguments.data_dir, rng)
        input_dim, output_dim = preset.input_dim, preset.output_dim
        hidden_dim, epochs = preset.hidden_dim, preset.max_iteration
        swarm_size = preset.swarm_size or default_swarm_size
        x_min, x_max = preset.x_min, preset.x_max

    config = TrainingConfig(
        algorithm=arguments.algorithm,
        input_dim=input_dim,
        hidden_dim=arguments.hidden_dim or hidden_dim,
        output_dim=output_dim,
        max_iteration=arguments.epochs if arguments.epochs is not None else epochs,
        learning_rate=arguments.learning_rate,
        swarm_size=arguments.swarm_size or swarm_size,
        x_min=x_min,
        x_max=x_max,
        velocity_clamp=arguments.velocity_clamp,
        seed=arguments.seed,
    )
    return config, split


def _classify_file(graph: WeightGraph, path: str) -> list[int]:
    predictions: list[int] = []
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        features = [float(token) for token in split_line(line)]
        predictions.append(graph.classify(features))
    return predictions


if __name__ == "__main__":
    main()
