"""Pattern sources: synthetic clusters and the digit/wine text layouts."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

import numpy as np
from numpy.typing import NDArray

from swarmprop.core.errors import EmptyDatasetError, MalformedPattern
from swarmprop.core.pattern import Pattern

Array = NDArray[np.float64]

DIGIT_INPUT_DIM = 64
DIGIT_CLASS_COUNT = 10
WINE_INPUT_DIM = 13
WINE_CLASS_COUNT = 3
WINE_LABEL_OFFSET = 1


@dataclass(frozen=True)
class PatternSplit:
    """Training patterns and held-out validation patterns."""

    train: list[Pattern]
    validation: list[Pattern]


def generate_cluster_patterns(
    sample_count: int,
    input_dim: int,
    class_count: int,
    noise_scale: float,
    seed: int,
    validation_ratio: float = 0.2,
) -> PatternSplit:
    """Create a deterministic multi-class dataset of Gaussian blobs in [0, 1]."""
    if sample_count < 2 * class_count:
        raise ValueError("sample_count must give every class at least two samples")
    if input_dim <= 0:
        raise ValueError("input_dim must be positive")
    if class_count < 2:
        raise ValueError("class_count must be at least 2")
    if noise_scale <= 0.0:
        raise ValueError("noise_scale must be positive")
    if validation_ratio <= 0.0 or validation_ratio >= 0.5:
        raise ValueError("validation_ratio must be between 0 and 0.5")

    rng = np.random.default_rng(seed)
    centers = rng.uniform(0.15, 0.85, size=(class_count, input_dim))
    class_size = sample_count // class_count

    patterns: list[Pattern] = []
    for class_index, center in enumerate(centers):
        points = rng.normal(loc=center, scale=noise_scale, size=(class_size, input_dim))
        for point in np.clip(points, 0.0, 1.0):
            patterns.append(
                Pattern.from_class_index(point, class_index=class_index, output_dim=class_count)
            )

    patterns = shuffle_patterns(patterns, rng)
    split_index = int((1.0 - validation_ratio) * len(patterns))
    return PatternSplit(train=patterns[:split_index], validation=patterns[split_index:])


def shuffle_patterns(patterns: Sequence[Pattern], rng: np.random.Generator) -> list[Pattern]:
    permutation = rng.permutation(len(patterns))
    return [patterns[index] for index in permutation]


def split_line(line: str) -> list[str]:
    """Split one comma-separated record, ignoring a trailing separator."""
    tokens = [token.strip() for token in line.strip().split(",")]
    if tokens and tokens[-1] == "":
        tokens.pop()
    return tokens


def load_labelled_file(
    path: str | Path,
    input_dim: int,
    output_dim: int,
    label_offset: int = 0,
) -> list[Pattern]:
    """Read ``label,f1,...,fn`` lines; class index is ``label - label_offset``."""
    patterns: list[Pattern] = []
    with Path(path).open("r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            tokens = split_line(line)
            try:
                label = int(tokens[0])
            except ValueError as exc:
                raise MalformedPattern(f"{path}:{line_number}: invalid label {tokens[0]!r}") from exc
            try:
                patterns.append(
                    Pattern.from_tokens(
                        tokens[1:],
                        input_dim=input_dim,
                        output_dim=output_dim,
                        class_index=label - label_offset,
                    )
                )
            except MalformedPattern as exc:
                raise MalformedPattern(f"{path}:{line_number}: {exc}") from exc
    return patterns


def load_class_files(
    paths_by_class: Mapping[int, str | Path],
    input_dim: int,
    output_dim: int,
) -> list[Pattern]:
    """Read one file per class where every line is a bare feature list."""
    patterns: list[Pattern] = []
    for class_index, path in sorted(paths_by_class.items()):
        with Path(path).open("r", encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                try:
                    patterns.append(
                        Pattern.from_tokens(
                            split_line(line),
                            input_dim=input_dim,
                            output_dim=output_dim,
                            class_index=class_index,
                        )
                    )
                except MalformedPattern as exc:
                    raise MalformedPattern(f"{path}:{line_number}: {exc}") from exc
    return patterns


def load_digit_split(directory: str | Path, split: str) -> list[Pattern]:
    """Load ``digit_{split}_{0..9}.txt`` from ``directory``."""
    root = Path(directory)
    paths = {
        digit: root / f"digit_{split}_{digit}.txt" for digit in range(DIGIT_CLASS_COUNT)
    }
    return load_class_files(paths, input_dim=DIGIT_INPUT_DIM, output_dim=DIGIT_CLASS_COUNT)


def load_wine_split(directory: str | Path, split: str) -> list[Pattern]:
    """Load ``wine_{split}.txt``; wine labels start at 1."""
    return load_labelled_file(
        Path(directory) / f"wine_{split}.txt",
        input_dim=WINE_INPUT_DIM,
        output_dim=WINE_CLASS_COUNT,
        label_offset=WINE_LABEL_OFFSET,
    )


def compute_feature_scales(patterns: Sequence[Pattern]) -> Array:
    """Per-feature maximum over ``patterns``."""
    if len(patterns) == 0:
        raise EmptyDatasetError("cannot compute feature scales without patterns")
    return np.max(np.vstack([pattern.inputs for pattern in patterns]), axis=0)


def normalize_patterns(patterns: Sequence[Pattern], scales: Array) -> list[Pattern]:
    """Divide every feature by its scale; zero scales leave the feature as is."""
    safe_scales = np.where(scales == 0.0, 1.0, scales)
    return [pattern.with_inputs(pattern.inputs / safe_scales) for pattern in patterns]


def load_pattern_split(
    dataset: str,
    directory: str | Path,
    rng: np.random.Generator,
) -> PatternSplit:
    """Load, normalize and shuffle the train/test files of a named dataset."""
    if dataset == "digits":
        train = load_digit_split(directory, "train")
        validation = load_digit_split(directory, "test")
    elif dataset == "wine":
        train = load_wine_split(directory, "train")
        validation = load_wine_split(directory, "test")
        scales = compute_feature_scales(train)
        train = normalize_patterns(train, scales)
        validation = normalize_patterns(validation, scales)
    else:
        raise ValueError(f"unknown dataset {dataset!r}")
    return PatternSplit(train=shuffle_patterns(train, rng), validation=validation)
