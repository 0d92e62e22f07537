"""Error kinds raised by the optimization engine."""

from __future__ import annotations


class DimensionMismatch(ValueError):
    """A vector length does not match the configured network dimensions."""


class InvalidConfiguration(ValueError):
    """Network, swarm, or training parameters are inconsistent or degenerate."""


class EmptyDatasetError(ValueError):
    """A computation over patterns received no patterns."""


class MalformedPattern(ValueError):
    """Raw example data cannot be turned into a labeled pattern."""
