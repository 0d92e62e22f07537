from __future__ import annotations

import numpy as np
import pytest

from swarmprop.core.errors import InvalidConfiguration
from swarmprop.core.particle_swarm import (
    ParticleSwarmOptimizer,
    SwarmConfig,
    clamp_velocity,
    reflect_and_move,
)
from swarmprop.core.weight_graph import WeightGraph


def _swarm(
    swarm_size: int = 6,
    dimensions: int = 5,
    seed: int = 2,
    velocity_clamp: float | None = None,
) -> ParticleSwarmOptimizer:
    config = SwarmConfig(
        swarm_size=swarm_size,
        dimensions=dimensions,
        x_min=-1.0,
        x_max=1.0,
        velocity_clamp=velocity_clamp,
    )
    return ParticleSwarmOptimizer(config=config, rng=np.random.default_rng(seed))


def test_should_initialize_positions_and_velocities_within_ranges() -> None:
    swarm = _swarm(swarm_size=20, dimensions=8)

    for particle in swarm.particles:
        assert particle.position.shape == (8,)
        assert np.all((particle.position >= -1.0) & (particle.position <= 1.0))
        assert np.all((particle.velocity >= -1.0) & (particle.velocity <= 1.0))
        assert particle.fitness is None
    assert swarm.global_best is None


def test_should_refuse_to_step_before_evaluation() -> None:
    swarm = _swarm()

    with pytest.raises(ValueError):
        swarm.step(0)


def test_should_copy_single_particle_into_both_bests_on_first_epoch() -> None:
    swarm = _swarm(swarm_size=1, dimensions=4, seed=11)
    particle = swarm.particles[0]
    initial_position = particle.position.copy()
    initial_velocity = particle.velocity.copy()
    swarm.set_fitness(0, 7.0)

    swarm.step(0)

    personal_best = swarm.personal_bests[0]
    assert personal_best is not None
    for best in (personal_best, swarm.global_best):
        np.testing.assert_array_equal(best.position, initial_position)
        np.testing.assert_array_equal(best.velocity, initial_velocity)
        assert best.fitness == 7.0


def test_should_keep_global_best_unless_strictly_improved() -> None:
    swarm = _swarm(swarm_size=2, dimensions=1, seed=5)
    first_position = swarm.particles[0].position.copy()
    second_position = swarm.particles[1].position.copy()
    swarm.set_fitness(0, 0.0)
    swarm.set_fitness(1, 1.0)

    first = swarm.step(0)

    assert first.best_index == 0
    assert swarm.global_best.fitness == 0.0
    np.testing.assert_array_equal(swarm.global_best.position, first_position)

    swarm.set_fitness(0, 2.0)
    swarm.set_fitness(1, 0.5)
    second = swarm.step(1)

    assert second.best_index == 1
    assert second.global_best_improved is False
    assert swarm.global_best.fitness == 0.0
    np.testing.assert_array_equal(swarm.global_best.position, first_position)
    assert swarm.personal_bests[0].fitness == 0.0
    assert swarm.personal_bests[1].fitness == 0.5
    assert not np.array_equal(swarm.personal_bests[1].position, second_position)


def test_should_not_overwrite_personal_best_on_tie() -> None:
    swarm = _swarm(swarm_size=2, dimensions=3)
    swarm.set_fitness(0, 4.0)
    swarm.set_fitness(1, 4.0)
    swarm.step(0)
    stored = swarm.personal_bests[0].position.copy()

    swarm.set_fitness(0, 4.0)
    swarm.set_fitness(1, 4.0)
    result = swarm.step(1)

    assert result.personal_best_updates == 0
    np.testing.assert_array_equal(swarm.personal_bests[0].position, stored)


def test_should_pick_first_minimum_on_ties() -> None:
    swarm = _swarm(swarm_size=4)
    for index, value in enumerate([3.0, 1.0, 1.0, 2.0]):
        swarm.set_fitness(index, value)

    assert swarm.find_best_index() == 1


def test_should_accumulate_and_reset_fitness() -> None:
    swarm = _swarm(swarm_size=2)
    swarm.reset_fitness()
    swarm.add_fitness(1, 1.0)
    swarm.add_fitness(1, 1.0)

    assert [particle.fitness for particle in swarm.particles] == [0.0, 2.0]
    swarm.reset_fitness()
    assert [particle.fitness for particle in swarm.particles] == [0.0, 0.0]


def test_should_keep_velocity_clamped_and_global_best_non_increasing() -> None:
    swarm = _swarm(swarm_size=8, dimensions=6, seed=21)
    fitness_rng = np.random.default_rng(99)
    best_history: list[float] = []

    for epoch in range(25):
        for index in range(8):
            swarm.set_fitness(index, float(fitness_rng.integers(0, 50)))
        best_history.append(swarm.step(epoch).global_best_fitness)

        for particle in swarm.particles:
            assert np.all(np.abs(particle.velocity) <= swarm.velocity_clamp)
            assert np.all((particle.position >= -1.0) & (particle.position <= 1.0))

    assert all(later <= earlier for earlier, later in zip(best_history, best_history[1:]))


def test_should_default_velocity_clamp_to_fifth_of_half_range() -> None:
    assert SwarmConfig(swarm_size=2, dimensions=2).resolved_velocity_clamp == pytest.approx(0.2)
    assert SwarmConfig(
        swarm_size=2, dimensions=2, x_min=-4.0, x_max=4.0
    ).resolved_velocity_clamp == pytest.approx(0.8)
    assert SwarmConfig(swarm_size=2, dimensions=2, velocity_clamp=0.5).resolved_velocity_clamp == 0.5


def test_should_clamp_velocity_preserving_sign() -> None:
    velocity = np.array([-0.5, 0.1, 0.3, -0.2])
    clamp_velocity(velocity, 0.2)

    np.testing.assert_allclose(velocity, [-0.2, 0.1, 0.2, -0.2])


def test_should_reflect_velocity_before_leaving_bounds() -> None:
    position = np.array([0.95, 0.0])
    velocity = np.array([0.2, 0.2])

    reflect_and_move(position, velocity, x_min=-1.0, x_max=1.0)

    np.testing.assert_allclose(velocity, [-0.2, 0.2])
    np.testing.assert_allclose(position, [0.75, 0.2])


def test_should_resample_each_out_of_bounds_coordinate_once() -> None:
    swarm = _swarm(swarm_size=2, dimensions=3)
    swarm.particles[0].position[:] = [5.0, 0.5, -3.0]
    swarm.particles[1].position[:] = [0.1, 1.0, -1.0]

    faults = swarm.enforce_bounds()

    assert faults == 2
    assert swarm.position_faults == 2
    assert np.all((swarm.particles[0].position >= -1.0) & (swarm.particles[0].position <= 1.0))
    assert swarm.particles[0].position[1] == 0.5
    np.testing.assert_array_equal(swarm.particles[1].position, [0.1, 1.0, -1.0])

    assert swarm.enforce_bounds() == 0
    assert swarm.position_faults == 2


def test_should_be_reproducible_under_fixed_seed() -> None:
    runs = []
    for _ in range(2):
        swarm = _swarm(seed=8)
        for epoch in range(5):
            for index, particle in enumerate(swarm.particles):
                swarm.set_fitness(index, float(np.sum(np.square(particle.position))))
            swarm.step(epoch)
        runs.append(np.vstack([particle.position for particle in swarm.particles]))

    np.testing.assert_array_equal(runs[0], runs[1])


def test_should_reject_degenerate_configuration() -> None:
    with pytest.raises(InvalidConfiguration):
        SwarmConfig(swarm_size=3, dimensions=2, x_min=1.0, x_max=1.0)
    with pytest.raises(InvalidConfiguration):
        SwarmConfig(swarm_size=0, dimensions=2)
    with pytest.raises(InvalidConfiguration):
        ParticleSwarmOptimizer(
            config=SwarmConfig(swarm_size=3, dimensions=5),
            rng=np.random.default_rng(0),
            weight_count=6,
        )


def test_should_size_swarm_from_graph_weight_count() -> None:
    graph = WeightGraph(input_dim=13, hidden_dim=10, output_dim=3, rng=np.random.default_rng(0))
    swarm = ParticleSwarmOptimizer.for_graph(graph, swarm_size=4, rng=np.random.default_rng(1))

    assert swarm.config.dimensions == 160
    assert all(particle.position.shape == (160,) for particle in swarm.particles)
