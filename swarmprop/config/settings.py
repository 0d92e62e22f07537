"""Environment-backed defaults for training runs."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    """Global settings loaded from environment variables."""

    base_seed: int = 7
    epoch_count: int = 40
    swarm_size: int = 50
    sample_count: int = 300


def load_settings_from_env() -> Settings:
    """Load settings from process environment with safe fallbacks."""
    return Settings(
        base_seed=_read_int_env("SP_BASE_SEED", 7),
        epoch_count=_read_int_env("SP_EPOCHS", 40),
        swarm_size=_read_int_env("SP_SWARM_SIZE", 50),
        sample_count=_read_int_env("SP_SAMPLES", 300),
    )


def _read_int_env(key: str, default_value: int) -> int:
    raw_value = os.getenv(key)
    if raw_value is None:
        return default_value
    try:
        return int(raw_value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} must be an integer.") from exc
