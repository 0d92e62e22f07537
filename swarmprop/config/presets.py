"""Tuned network and swarm parameters per dataset and algorithm."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DatasetPreset:
    """Layer sizes and run length found effective for one dataset."""

    input_dim: int
    hidden_dim: int
    output_dim: int
    max_iteration: int
    swarm_size: int = 0
    x_min: float = -1.0
    x_max: float = 1.0


PRESETS: dict[tuple[str, str], DatasetPreset] = {
    ("backprop", "digits"): DatasetPreset(input_dim=64, hidden_dim=18, output_dim=10, max_iteration=200),
    ("backprop", "wine"): DatasetPreset(input_dim=13, hidden_dim=5, output_dim=3, max_iteration=100),
    ("pso", "digits"): DatasetPreset(
        input_dim=64, hidden_dim=10, output_dim=10, max_iteration=50, swarm_size=100
    ),
    ("pso", "wine"): DatasetPreset(
        input_dim=13, hidden_dim=10, output_dim=3, max_iteration=40, swarm_size=50
    ),
}


def get_preset(algorithm: str, dataset: str) -> DatasetPreset:
    try:
        return PRESETS[(algorithm, dataset)]
    except KeyError as exc:
        raise ValueError(f"No preset for algorithm={algorithm!r}, dataset={dataset!r}.") from exc
