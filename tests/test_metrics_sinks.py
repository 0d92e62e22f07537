from __future__ import annotations

import csv
import logging
from pathlib import Path

import pytest

from swarmprop.app.training_loop import EpochMetrics
from swarmprop.infra.metrics_sinks import (
    CompositeMetricsSink,
    ConsoleMetricsSink,
    CsvMetricsSink,
    MemoryMetricsSink,
)


def test_should_write_csv_rows_with_best_fitness(tmp_path: Path) -> None:
    path = tmp_path / "out" / "metrics.csv"
    sink = CsvMetricsSink(path, include_best_fitness=True)

    sink.record(EpochMetrics(epoch_index=0, error=3.5, validation_rate=0.25, best_fitness=12.0))
    sink.record(EpochMetrics(epoch_index=1, error=2.0, validation_rate=0.5, best_fitness=9.0))

    with path.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == ["epoch", "error", "validation_rate", "best_fitness"]
    assert rows[2] == ["1", "2.0", "0.5", "9.0"]


def test_should_fan_out_to_every_sink_and_log(caplog: pytest.LogCaptureFixture) -> None:
    first = MemoryMetricsSink()
    second = MemoryMetricsSink()
    sink = CompositeMetricsSink([first, second, ConsoleMetricsSink()])

    with caplog.at_level(logging.INFO, logger="swarmprop.infra.metrics_sinks"):
        sink.record(EpochMetrics(epoch_index=4, error=1.0, validation_rate=0.75))

    assert len(first.records) == len(second.records) == 1
    assert "Iteration 4" in caplog.text
    assert "GB" not in caplog.text
