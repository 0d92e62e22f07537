"""Particle swarm search over a flat weight vector."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from swarmprop.core.errors import InvalidConfiguration
from swarmprop.core.weight_graph import WeightGraph

Array = NDArray[np.float64]

logger = logging.getLogger(__name__)

DEFAULT_INERTIA = 0.729844
DEFAULT_ACCELERATION = 1.496180
VELOCITY_CLAMP_FRACTION = 0.2


@dataclass(frozen=True)
class SwarmConfig:
    """Swarm size, search bounds and update coefficients."""

    swarm_size: int
    dimensions: int
    x_min: float = -1.0
    x_max: float = 1.0
    inertia: float = DEFAULT_INERTIA
    cognitive: float = DEFAULT_ACCELERATION
    social: float = DEFAULT_ACCELERATION
    velocity_clamp: float | None = None

    def __post_init__(self) -> None:
        if self.swarm_size <= 0:
            raise InvalidConfiguration("swarm_size must be positive")
        if self.dimensions <= 0:
            raise InvalidConfiguration("dimensions must be positive")
        if self.x_min >= self.x_max:
            raise InvalidConfiguration(
                f"position bounds are degenerate: x_min={self.x_min} >= x_max={self.x_max}"
            )
        if self.velocity_clamp is not None and self.velocity_clamp <= 0.0:
            raise InvalidConfiguration("velocity_clamp must be positive")

    @property
    def resolved_velocity_clamp(self) -> float:
        """Explicit clamp, or a fifth of half the position range."""
        if self.velocity_clamp is not None:
            return self.velocity_clamp
        return VELOCITY_CLAMP_FRACTION * (self.x_max - self.x_min) / 2.0


@dataclass
class Particle:
    """Candidate solution: position, search velocity and last fitness."""

    position: Array
    velocity: Array
    fitness: float | None = None

    def copy(self) -> Particle:
        return Particle(
            position=self.position.copy(),
            velocity=self.velocity.copy(),
            fitness=self.fitness,
        )


@dataclass(frozen=True)
class SwarmStepResult:
    """Bookkeeping outcome of one swarm iteration."""

    epoch_index: int
    best_index: int
    global_best_fitness: float
    global_best_improved: bool
    personal_best_updates: int
    position_faults: int


def clamp_velocity(velocity: Array, v_max: float) -> None:
    """Saturate every component to ``[-v_max, v_max]`` in place."""
    np.clip(velocity, -v_max, v_max, out=velocity)


def reflect_and_move(position: Array, velocity: Array, x_min: float, x_max: float) -> None:
    """Negate velocity components that would leave the bounds, then move."""
    proposed = position + velocity
    leaving = (proposed > x_max) | (proposed < x_min)
    velocity[leaving] = -velocity[leaving]
    position += velocity


class ParticleSwarmOptimizer:
    """Global-best PSO minimizing an externally evaluated fitness.

    The orchestrator resets and accumulates each particle's fitness for an
    epoch, then calls :meth:`step` once every particle has been evaluated.
    """

    def __init__(
        self,
        config: SwarmConfig,
        rng: np.random.Generator,
        weight_count: int | None = None,
    ) -> None:
        if weight_count is not None and config.dimensions != weight_count:
            raise InvalidConfiguration(
                f"swarm dimensions {config.dimensions} do not match "
                f"the network weight count {weight_count}"
            )
        self._config = config
        self._rng = rng
        self._v_max = config.resolved_velocity_clamp
        self._particles = [self._spawn_particle() for _ in range(config.swarm_size)]
        self._personal_bests: list[Particle | None] = [None] * config.swarm_size
        self._global_best: Particle | None = None
        self._position_faults = 0

    @classmethod
    def for_graph(
        cls,
        graph: WeightGraph,
        swarm_size: int,
        rng: np.random.Generator,
        x_min: float = -1.0,
        x_max: float = 1.0,
        velocity_clamp: float | None = None,
    ) -> ParticleSwarmOptimizer:
        config = SwarmConfig(
            swarm_size=swarm_size,
            dimensions=graph.weight_count,
            x_min=x_min,
            x_max=x_max,
            velocity_clamp=velocity_clamp,
        )
        return cls(config=config, rng=rng, weight_count=graph.weight_count)

    @property
    def config(self) -> SwarmConfig:
        return self._config

    @property
    def particles(self) -> tuple[Particle, ...]:
        return tuple(self._particles)

    @property
    def personal_bests(self) -> tuple[Particle | None, ...]:
        return tuple(self._personal_bests)

    @property
    def global_best(self) -> Particle | None:
        return self._global_best

    @property
    def position_faults(self) -> int:
        return self._position_faults

    @property
    def velocity_clamp(self) -> float:
        return self._v_max

    def reset_fitness(self) -> None:
        for particle in self._particles:
            particle.fitness = 0.0

    def set_fitness(self, index: int, value: float) -> None:
        self._particles[index].fitness = float(value)

    def add_fitness(self, index: int, amount: float) -> None:
        particle = self._particles[index]
        particle.fitness = (particle.fitness or 0.0) + float(amount)

    def find_best_index(self) -> int:
        """Index of the lowest current fitness; the first one wins on ties."""
        fitness = self._fitness_snapshot()
        best_index = 0
        for index in range(1, len(fitness)):
            if fitness[index] < fitness[best_index]:
                best_index = index
        return best_index

    def step(self, epoch_index: int) -> SwarmStepResult:
        """Run one iteration from the particles' freshly evaluated fitness."""
        fitness = self._fitness_snapshot()
        first_epoch = epoch_index == 0 or self._global_best is None

        personal_best_updates = 0
        for index, particle in enumerate(self._particles):
            stored = self._personal_bests[index]
            if first_epoch or stored is None or fitness[index] < stored.fitness:
                self._personal_bests[index] = particle.copy()
                personal_best_updates += 1

        best_index = self.find_best_index()
        improved = first_epoch or fitness[best_index] < self._global_best.fitness
        if improved:
            self._global_best = self._particles[best_index].copy()

        for index, particle in enumerate(self._particles):
            self._move(particle, self._personal_bests[index])
        faults = self.enforce_bounds()

        return SwarmStepResult(
            epoch_index=epoch_index,
            best_index=best_index,
            global_best_fitness=float(self._global_best.fitness),
            global_best_improved=bool(improved),
            personal_best_updates=personal_best_updates,
            position_faults=faults,
        )

    def enforce_bounds(self) -> int:
        """Resample every out-of-bounds coordinate uniformly within the bounds."""
        x_min, x_max = self._config.x_min, self._config.x_max
        faults = 0
        for index, particle in enumerate(self._particles):
            outside = np.flatnonzero((particle.position > x_max) | (particle.position < x_min))
            for dimension in outside:
                logger.debug(
                    "Particle %d dimension %d left bounds at %.6f; resampling.",
                    index,
                    dimension,
                    particle.position[dimension],
                )
                particle.position[dimension] = self._rng.uniform(x_min, x_max)
            faults += int(outside.size)
        self._position_faults += faults
        return faults

    def _move(self, particle: Particle, personal_best: Particle) -> None:
        config = self._config
        dimensions = config.dimensions
        r1 = self._rng.random(dimensions)
        r2 = self._rng.random(dimensions)
        velocity = (
            config.inertia * particle.velocity
            + config.cognitive * r1 * (personal_best.position - particle.position)
            + config.social * r2 * (self._global_best.position - particle.position)
        )
        clamp_velocity(velocity, self._v_max)
        particle.velocity = velocity
        reflect_and_move(particle.position, particle.velocity, config.x_min, config.x_max)

    def _spawn_particle(self) -> Particle:
        config = self._config
        position = self._rng.uniform(config.x_min, config.x_max, size=config.dimensions)
        velocity = self._rng.uniform(-1.0, 1.0, size=config.dimensions)
        return Particle(position=position, velocity=velocity)

    def _fitness_snapshot(self) -> list[float]:
        snapshot: list[float] = []
        for index, particle in enumerate(self._particles):
            if particle.fitness is None:
                raise ValueError(f"particle {index} has not been evaluated yet")
            snapshot.append(particle.fitness)
        return snapshot
