"""Use case: minimize a closed-form objective with the particle swarm."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from swarmprop.core.objectives import OBJECTIVES
from swarmprop.core.particle_swarm import ParticleSwarmOptimizer, SwarmConfig

Array = NDArray[np.float64]


@dataclass(frozen=True)
class ObjectiveSearchConfig:
    """Objective selection and swarm parameters."""

    objective_name: str = "beale"
    dimensions: int = 2
    x_min: float = -4.5
    x_max: float = 4.5
    swarm_size: int = 30
    iteration_count: int = 300
    velocity_clamp: float | None = None
    seed: int = 7


@dataclass(frozen=True)
class ObjectiveSearchResult:
    """Best point found and the global-best curve."""

    objective_name: str
    best_position: Array
    best_fitness: float
    fitness_history: list[float]
    position_faults: int


def run_objective_search(config: ObjectiveSearchConfig) -> ObjectiveSearchResult:
    """Evaluate every particle against the objective, then step, per iteration."""
    if config.objective_name not in OBJECTIVES:
        raise ValueError(
            f"unknown objective {config.objective_name!r}; choose from {sorted(OBJECTIVES)}"
        )
    if config.iteration_count <= 0:
        raise ValueError("iteration_count must be positive")
    objective = OBJECTIVES[config.objective_name]

    swarm = ParticleSwarmOptimizer(
        config=SwarmConfig(
            swarm_size=config.swarm_size,
            dimensions=config.dimensions,
            x_min=config.x_min,
            x_max=config.x_max,
            velocity_clamp=config.velocity_clamp,
        ),
        rng=np.random.default_rng(config.seed),
    )

    history: list[float] = []
    for iteration in range(config.iteration_count):
        for index, particle in enumerate(swarm.particles):
            swarm.set_fitness(index, objective(particle.position))
        step = swarm.step(iteration)
        history.append(step.global_best_fitness)

    best = swarm.global_best
    return ObjectiveSearchResult(
        objective_name=config.objective_name,
        best_position=best.position.copy(),
        best_fitness=float(best.fitness),
        fitness_history=history,
        position_faults=swarm.position_faults,
    )


def format_objective_search_result(result: ObjectiveSearchResult) -> str:
    position = ", ".join(f"{float(value):.4f}" for value in result.best_position)
    return "\n".join(
        [
            f"Objective search: {result.objective_name}",
            "-------------------------------",
            f"Best fitness: {result.fitness_history[0]:.6f} -> {result.best_fitness:.6f}",
            f"Best position: [{position}]",
            f"Position faults: {result.position_faults}",
        ]
    )
