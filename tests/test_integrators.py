"""
Test suite for the fixed-step integration methods.

Tests cover:
- First step formulas of Euler and Verlet
- Verlet central difference velocity
- Beeman position formula and history handling
- Analytic closed form
- Energy drift of every method on an undamped oscillator
- Agreement with the analytic solution on a damped oscillator
"""

import math
import pytest
from kinesis import (OscillatorParams, DampedOscillator, make_oscillator,
                     EulerIntegration, VerletIntegration, BeemanIntegration,
                     AnalyticIntegration, get_method, Particle, Vector2D)


def _energy_drift(method, steps=10000):
    params = OscillatorParams(mass=1.0, r=1.0, k=1.0, gamma=0.0, dt=1e-3, tf=steps * 1e-3)
    system = make_oscillator(params, method)
    e0 = system.mechanical_energy()
    drift = 0.0
    for _ in range(steps):
        system.evolve_system()
        drift = max(drift, abs(system.mechanical_energy() - e0))
    return drift


@pytest.fixture(scope="module")
def drifts():
    return {method: _energy_drift(method)
            for method in ('euler', 'verlet', 'beeman', 'gear')}


class TestEuler:
    """Test explicit Euler."""

    def test_first_step_position(self):
        """m=1, k=1, gamma=0, r=1, dt=0.01 gives 1 - 0.01^2/2."""
        params = OscillatorParams(mass=1, r=1, k=1, gamma=0, dt=0.01, tf=1)
        system = DampedOscillator(params, 'euler')
        system.evolve_system()
        assert system.particle.x == pytest.approx(0.99995, rel=1e-15)

    def test_first_step_velocity(self):
        """Velocity uses the force at the start of the step."""
        params = OscillatorParams(mass=1, r=1, k=1, gamma=0, dt=0.01, tf=1)
        system = DampedOscillator(params, 'euler')
        system.evolve_system()
        assert system.particle.vx == pytest.approx(-0.01, rel=1e-15)

    def test_formula_in_two_dimensions(self):
        p = Particle(id=1, position=Vector2D(1.0, 2.0), velocity=Vector2D(0.5, -1.0),
                     force=Vector2D(4.0, 2.0), mass=2.0)
        euler = EulerIntegration()
        assert euler.next_position(p, 0, 0.5) == Vector2D(1.0 + 0.25 + 0.25, 2.0 - 0.5 + 0.125)
        assert euler.next_velocity(p, 0, 0.5) == Vector2D(1.5, -0.5)


class TestVerlet:
    """Test position Verlet."""

    def test_first_step_position(self):
        """Bootstrap r(-dt) is one backward Euler step, so r(dt) = 0.99995."""
        params = OscillatorParams(mass=1, r=1, k=1, gamma=0, dt=0.01, tf=1)
        system = DampedOscillator(params, 'verlet')
        assert system.method.previous_position(system.particle.id).x == pytest.approx(0.99995)
        system.evolve_system()
        assert system.particle.x == pytest.approx(0.99995, rel=1e-15)

    def test_velocity_is_central_difference(self):
        """v reported after a step is (x(t+dt) - x(t-dt)) / 2dt exactly."""
        params = OscillatorParams(mass=1.0, r=1.0, k=10.0, gamma=0.5, dt=0.01, tf=5)
        system = DampedOscillator(params, 'verlet')
        dt = params.dt
        positions = [system.method.previous_position(system.particle.id).x,
                     system.particle.x]
        for _ in range(200):
            system.evolve_system()
            positions.append(system.particle.x)
            expected = (positions[-1] - positions[-3]) / (2 * dt)
            assert system.particle.vx == expected

    def test_step_without_start_fails(self):
        """History must be seeded first."""
        p = Particle(id=1, position=Vector2D(1, 0), mass=1.0)
        with pytest.raises(RuntimeError, match="start"):
            VerletIntegration().next_position(p, 0, 0.1)

    def test_velocity_before_position_fails(self):
        """Velocity may not be requested before the position of the step."""
        p = Particle(id=1, position=Vector2D(1, 0), mass=1.0)
        verlet = VerletIntegration()
        verlet.start(p, 0.1)
        with pytest.raises(RuntimeError, match="before next_position"):
            verlet.next_velocity(p, 0, 0.1)

    def test_velocity_without_start_fails(self):
        p = Particle(id=9, position=Vector2D(1, 0), mass=1.0)
        with pytest.raises(RuntimeError, match="start"):
            VerletIntegration().next_velocity(p, 0, 0.1)

    def test_membership(self):
        p = Particle(id=3, position=Vector2D(1, 0), mass=1.0)
        verlet = VerletIntegration()
        assert 3 not in verlet
        verlet.start(p, 0.1)
        assert 3 in verlet


class TestBeeman:
    """Test Beeman's method."""

    @staticmethod
    def _spring(position, velocity):
        return position * -1.0

    def test_requires_force_law(self):
        p = Particle(id=1, position=Vector2D(1, 0), mass=1.0)
        with pytest.raises(ValueError, match="force law"):
            BeemanIntegration().start(p, 0.1)

    def test_first_position(self):
        """x + v dt + 2/3 a dt^2 - 1/6 a_prev dt^2 with a_prev from the backward state."""
        dt = 0.1
        p = Particle(id=1, position=Vector2D(1.0, 0.0), velocity=Vector2D(0.0, 0.0),
                     force=Vector2D(-1.0, 0.0), mass=1.0)
        beeman = BeemanIntegration()
        beeman.start(p, dt, self._spring)
        # F_prev = -(1 + F_prev dt^2/2) solved for F_prev
        a_prev = -1.0 / (1 + dt * dt / 2)
        expected = 1.0 + 2.0 / 3.0 * (-1.0) * dt * dt - a_prev * dt * dt / 6.0
        assert beeman.next_position(p, 0, dt).x == pytest.approx(expected, rel=1e-12)

    def test_previous_acceleration_is_self_consistent(self):
        """Seed force solves F = -k x(-dt) - gamma v(-dt) with the state built from F itself."""
        m, k, gamma, dt = 70.0, 1e4, 100.0, 1e-2
        params = OscillatorParams(mass=m, r=1.0, k=k, gamma=gamma, dt=dt, tf=1.0)
        system = DampedOscillator(params, 'beeman')
        r, v = 1.0, params.initial_velocity
        f_prev = (-k * r + (k * dt - gamma) * v) / (1 + k * dt * dt / (2 * m) - gamma * dt / m)
        a_prev = system.method.previous_acceleration(system.particle.id)
        assert a_prev.x == pytest.approx(f_prev / m, rel=1e-9)
        assert a_prev.y == 0.0

    def test_seed_diverges_for_huge_dt(self):
        """Fixed point iteration gives up instead of returning garbage."""
        p = Particle(id=1, position=Vector2D(1.0, 0.0), force=Vector2D(-1.0, 0.0), mass=1.0)
        with pytest.raises(ValueError, match="reduce dt"):
            BeemanIntegration().start(p, 10.0, self._spring)

    def test_step_without_start_fails(self):
        p = Particle(id=1, position=Vector2D(1, 0), mass=1.0)
        with pytest.raises(RuntimeError, match="start"):
            BeemanIntegration().next_position(p, 0, 0.1)

    def test_history_is_per_particle(self):
        """Two particles keep separate previous accelerations."""
        beeman = BeemanIntegration()
        a = Particle(id=1, position=Vector2D(1, 0), force=Vector2D(-1, 0), mass=1.0)
        b = Particle(id=2, position=Vector2D(2, 0), force=Vector2D(-2, 0), mass=1.0)
        beeman.start(a, 0.1, self._spring)
        beeman.start(b, 0.1, self._spring)
        assert beeman.next_position(b, 0, 0.1).x == pytest.approx(
            2 * beeman.next_position(a, 0, 0.1).x)


class TestAnalytic:
    """Test the closed form solution."""

    def test_undamped_position(self):
        """x(t + dt) = A cos(omega (t + dt)) with no damping."""
        analytic = AnalyticIntegration(mass=1.0, k=1.0, gamma=0.0)
        p = Particle(id=1, position=Vector2D(2.0, 0.0), mass=1.0)
        analytic.start(p, 0.5)
        assert analytic.next_position(p, 0.5, 0.5).x == pytest.approx(2 * math.cos(1.0))

    def test_damped_position(self):
        analytic = AnalyticIntegration(mass=70.0, k=1e4, gamma=100.0)
        p = Particle(id=1, position=Vector2D(1.0, 0.0), mass=70.0)
        analytic.start(p, 0.01)
        beta = 100.0 / 140.0
        omega = math.sqrt(1e4 / 70.0 - beta ** 2)
        expected = math.exp(-beta * 0.3) * math.cos(omega * 0.3)
        assert analytic.next_position(p, 0.29, 0.01).x == pytest.approx(expected)

    def test_velocity_is_zero(self):
        analytic = AnalyticIntegration(mass=1.0, k=1.0, gamma=0.0)
        p = Particle(id=1, position=Vector2D(1.0, 0.0), velocity=Vector2D(3, 3), mass=1.0)
        assert analytic.next_velocity(p, 0, 0.1) == Vector2D(0, 0)

    def test_overdamped_rejected(self):
        """Closed form only covers the underdamped case."""
        with pytest.raises(ValueError, match="underdamped"):
            AnalyticIntegration(mass=1.0, k=1.0, gamma=3.0)


class TestFactory:
    """Test get_method."""

    @pytest.mark.parametrize("name, cls", [
        ('euler', EulerIntegration),
        ('Verlet', VerletIntegration),
        (' BEEMAN ', BeemanIntegration),
    ])
    def test_known_names(self, name, cls):
        assert isinstance(get_method(name), cls)

    def test_analytic_needs_parameters(self):
        with pytest.raises(ValueError, match="requires"):
            get_method('analytic')
        assert isinstance(get_method('analytic', mass=1, k=1, gamma=0), AnalyticIntegration)

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown integration method"):
            get_method('runge-kutta')


class TestEnergyDrift:
    """Undamped oscillator energy stays bounded, tighter for higher order methods."""

    def test_euler_bounded(self, drifts):
        assert drifts['euler'] < 2e-2

    def test_verlet_bounded(self, drifts):
        assert drifts['verlet'] < 5e-3

    def test_beeman_bounded(self, drifts):
        assert drifts['beeman'] < 1e-4

    def test_gear_bounded(self, drifts):
        assert drifts['gear'] < 1e-6

    def test_ordering(self, drifts):
        """Gear is the tightest method, Euler the loosest."""
        assert drifts['gear'] < drifts['verlet'] < drifts['euler']
        assert drifts['beeman'] < drifts['euler']


class TestAgainstAnalytic:
    """Damped oscillator runs converge to the closed form."""

    PARAMS = OscillatorParams(mass=70.0, r=1.0, k=1e4, gamma=100.0, dt=1e-4, tf=1.0)

    @pytest.mark.parametrize("method, tolerance", [
        ('euler', 5e-2),
        ('verlet', 2e-3),
        ('beeman', 1e-3),
        ('gear', 1e-5),
    ])
    def test_final_position(self, method, tolerance):
        system = make_oscillator(self.PARAMS, method)
        for _ in range(self.PARAMS.steps):
            system.evolve_system()
        beta = self.PARAMS.beta
        expected = math.exp(-beta * system.time) * math.cos(self.PARAMS.omega * system.time)
        assert system.particle.x == pytest.approx(expected, abs=tolerance)

    def test_analytic_method_matches_closed_form(self):
        system = make_oscillator(self.PARAMS, 'analytic')
        for _ in range(100):
            system.evolve_system()
        t = system.time
        expected = math.exp(-self.PARAMS.beta * t) * math.cos(self.PARAMS.omega * t)
        assert system.particle.x == pytest.approx(expected, rel=1e-9)
