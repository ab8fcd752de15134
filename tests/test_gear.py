"""
Test suite for the Gear predictor-corrector engine.

Tests cover:
- Method constants
- Exact prediction for uniform motion
- Degenerate time steps and initialization errors
- Resynchronization of particles with their derivative vectors
- Whole-set particle replacement
"""

import math
import numpy as np
import pytest
from kinesis import (Gear5SystemData, GearPredictorCorrector, Particle,
                     Vector2D, OscillatorParams)
from kinesis.oscillator import GearOscillator, OscillatorGear5SystemData
from kinesis.vector import ZERO


class FreeParticles(Gear5SystemData):
    """Particles with no force acting on them."""

    def initial_derivatives(self, particle):
        r = np.zeros((self.s_vectors(), 2))
        r[0] = particle.position.to_numpy()
        r[1] = particle.velocity.to_numpy()
        return r

    def force_with_predicted(self, particle):
        return ZERO


class ConstantPull(FreeParticles):
    """Particles under a constant force, starting with zero acceleration."""
    FORCE = Vector2D(2.0, -4.0)

    def force_with_predicted(self, particle):
        return self.FORCE


class BadShape(FreeParticles):

    def initial_derivatives(self, particle):
        return np.zeros((3, 2))


@pytest.fixture
def free_data():
    particles = [
        Particle(id=1, position=Vector2D(1.0, 2.0), velocity=Vector2D(0.5, -0.25), mass=1.0),
        Particle(id=2, position=Vector2D(-4.0, 0.0), velocity=Vector2D(2.0, 8.0), mass=3.0),
    ]
    data = FreeParticles(particles)
    data.init()
    return data


class TestConstants:
    """Test fifth order coefficients."""

    def test_order_and_vectors(self, free_data):
        assert free_data.order() == 5
        assert free_data.s_vectors() == 6

    def test_alpha(self, free_data):
        expected = [3 / 16, 251 / 360, 1, 11 / 18, 1 / 6, 1 / 60]
        assert [free_data.alpha(k) for k in range(6)] == pytest.approx(expected)

    def test_factorials(self, free_data):
        assert [free_data.factorial(n) for n in range(6)] == [1, 1, 2, 6, 24, 120]


class TestPrediction:
    """Predict phase with all higher derivatives zero."""

    def test_uniform_velocity_is_exact(self, free_data):
        """Predicted and final position equal x + v dt exactly."""
        GearPredictorCorrector().evolve_system(free_data, 0.5)
        assert free_data.predicted_r(1, 0) == Vector2D(1.25, 1.875)
        assert free_data.particles[0].position == Vector2D(1.25, 1.875)
        assert free_data.particles[1].position == Vector2D(-3.0, 4.0)

    def test_velocity_is_unchanged(self, free_data):
        GearPredictorCorrector().evolve_system(free_data, 0.5)
        assert free_data.particles[0].velocity == Vector2D(0.5, -0.25)
        assert free_data.delta_r2(1) == Vector2D(0.0, 0.0)

    def test_many_steps(self, free_data):
        gear = GearPredictorCorrector()
        for _ in range(8):
            gear.evolve_system(free_data, 0.25)
        assert free_data.particles[1].position == Vector2D(0.0, 16.0)


class TestCorrection:
    """Correct phase scales delta_r2 by alpha[k] k! / dt^k."""

    def test_corrected_derivatives_follow_delta(self):
        dt = 0.5
        data = ConstantPull([Particle(id=1, position=Vector2D(1.0, 0.0),
                                     velocity=Vector2D(0.0, 1.0), mass=2.0)])
        data.init()
        GearPredictorCorrector().evolve_system(data, dt)
        delta = data.delta_r2(1)
        assert delta == ConstantPull.FORCE / 2.0 * dt ** 2 / 2.0
        for k in range(data.s_vectors()):
            expected = (data.predicted_r(1, k)
                        + delta * (data.alpha(k) * data.factorial(k) / dt ** k))
            assert data.r(1, k).isclose(expected)
        # alpha[2] is 1, so the acceleration lands on F / m in one step
        assert data.particles[0].force.isclose(ConstantPull.FORCE)


class TestErrors:
    """Test invalid usage."""

    def test_zero_dt_raises(self, free_data):
        """dt = 0 would divide by zero in the corrector."""
        before = free_data.r_vectors(1)
        with pytest.raises(ValueError, match="non-zero dt"):
            GearPredictorCorrector().evolve_system(free_data, 0.0)
        np.testing.assert_array_equal(free_data.r_vectors(1), before)

    def test_step_before_init_raises(self):
        data = FreeParticles([Particle(id=1, position=Vector2D(0, 0))])
        with pytest.raises(RuntimeError, match="init"):
            GearPredictorCorrector().evolve_system(data, 0.1)

    def test_double_init_raises(self, free_data):
        with pytest.raises(RuntimeError, match="already initialized"):
            free_data.init()

    def test_wrong_derivative_shape(self):
        data = BadShape([Particle(id=1, position=Vector2D(0, 0))])
        with pytest.raises(ValueError, match="shape"):
            data.init()

    def test_replacement_must_keep_ids(self, free_data):
        with pytest.raises(ValueError, match="same ids"):
            free_data.replace_particles([free_data.particles[0]])


class TestOscillatorData:
    """Gear data of the damped oscillator."""

    def test_initial_derivatives_follow_force_law(self):
        """r[i] = (-k r[i-2] - gamma r[i-1]) / m."""
        m, k, gamma = 2.0, 8.0, 1.0
        p = Particle(id=1, position=Vector2D(1.0, 0.0), velocity=Vector2D(-0.25, 0.0), mass=m)
        data = OscillatorGear5SystemData(p, k, gamma)
        data.init()
        r = data.r_vectors(1)[:, 0]
        assert r[0] == 1.0
        assert r[1] == -0.25
        for i in range(2, 6):
            assert r[i] == pytest.approx((-k * r[i - 2] - gamma * r[i - 1]) / m)

    def test_particle_resynchronized_after_step(self):
        """Position, velocity and force come from r[0], r[1] and m r[2]."""
        params = OscillatorParams(mass=70.0, r=1.0, k=1e4, gamma=100.0, dt=1e-3, tf=1.0)
        system = GearOscillator(params)
        for _ in range(50):
            system.evolve_system()
            data = system.system_data
            pid = system.particle.id
            assert system.particle.position == data.r(pid, 0)
            assert system.particle.velocity == data.r(pid, 1)
            assert system.particle.force == data.r(pid, 2) * params.mass

    def test_particle_set_replaced_together(self):
        """Snapshots taken before a step are left untouched."""
        params = OscillatorParams(mass=1.0, r=1.0, k=1.0, gamma=0.0, dt=0.1, tf=1.0)
        system = GearOscillator(params)
        before = system.particles
        system.evolve_system()
        assert before[0].position == Vector2D(1.0, 0.0)
        assert system.particles is not before
        assert system.particle.x == pytest.approx(math.cos(0.1), abs=1e-6)
