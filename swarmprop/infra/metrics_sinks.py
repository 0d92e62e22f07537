"""Receivers for per-epoch training metrics."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Sequence

from swarmprop.app.training_loop import EpochMetrics, MetricsSink

logger = logging.getLogger(__name__)


class MemoryMetricsSink:
    """Keeps every recorded epoch in a list."""

    def __init__(self) -> None:
        self.records: list[EpochMetrics] = []

    def record(self, metrics: EpochMetrics) -> None:
        self.records.append(metrics)


class ConsoleMetricsSink:
    """Logs one progress line per epoch."""

    def record(self, metrics: EpochMetrics) -> None:
        if metrics.best_fitness is None:
            logger.info(
                "Iteration %d\tError %.3f\tValidation %.3f",
                metrics.epoch_index,
                metrics.error,
                metrics.validation_rate,
            )
        else:
            logger.info(
                "Iteration %d\tError %.3f\tValidation %.3f\tGB %.0f",
                metrics.epoch_index,
                metrics.error,
                metrics.validation_rate,
                metrics.best_fitness,
            )


class CsvMetricsSink:
    """Writes ``epoch,error,validation_rate[,best_fitness]`` rows as they arrive."""

    def __init__(self, path: str | Path, include_best_fitness: bool) -> None:
        self.path = Path(path)
        self.include_best_fitness = include_best_fitness
        self.path.parent.mkdir(parents=True, exist_ok=True)
        header = ["epoch", "error", "validation_rate"]
        if include_best_fitness:
            header.append("best_fitness")
        with self.path.open("w", newline="", encoding="utf-8") as handle:
            csv.writer(handle).writerow(header)

    def record(self, metrics: EpochMetrics) -> None:
        row: list[object] = [metrics.epoch_index, metrics.error, metrics.validation_rate]
        if self.include_best_fitness:
            row.append("" if metrics.best_fitness is None else metrics.best_fitness)
        with self.path.open("a", newline="", encoding="utf-8") as handle:
            csv.writer(handle).writerow(row)


class CompositeMetricsSink:
    """Forwards every record to each wrapped sink in order."""

    def __init__(self, sinks: Sequence[MetricsSink]) -> None:
        self.sinks = list(sinks)

    def record(self, metrics: EpochMetrics) -> None:
        for sink in self.sinks:
            sink.record(metrics)
