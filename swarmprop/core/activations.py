"""Activation functions shared by the forward pass and the backprop rule."""

from __future__ import annotations

import math

DEFAULT_STEEPNESS = 6.0

# exp(30) keeps 1 / (1 + exp(-x)) strictly below 1.0 in float64.
_SCALED_INPUT_LIMIT = 30.0


def sigmoid(value: float, steepness: float = DEFAULT_STEEPNESS) -> float:
    """Compute a steep logistic sigmoid with stable clipping."""
    scaled = steepness * value
    clipped = min(max(scaled, -_SCALED_INPUT_LIMIT), _SCALED_INPUT_LIMIT)
    return 1.0 / (1.0 + math.exp(-clipped))


def sigmoid_derivative_from_output(output: float) -> float:
    """Derivative of the sigmoid evaluated from an already activated output."""
    return output * (1.0 - output)
