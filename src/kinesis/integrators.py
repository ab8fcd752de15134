'''Numerical integration package for classical mechanics
Fixed-step integration methods'''

import math
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple
from .particle import Particle
from .vector import Vector2D, ZERO

# force_law(position, velocity) -> force
ForceLaw = Callable[[Vector2D, Vector2D], Vector2D]


def backward_euler_position(particle: Particle, dt: float) -> Vector2D:
    """
    Position one step in the past, r(-dt) = r - v dt + F dt^2 / (2m).

    Used to bootstrap the multistep methods. Terms of order dt^3 are dropped.
    """
    return (particle.position
            - particle.velocity * dt
            + particle.force * (dt * dt / (2 * particle.mass)))


class IntegrationMethod(ABC):
    """
    Fixed-step integration method for particles driven by a force.

    A step always asks for the position first and the velocity second:
    ``next_position`` receives the particle carrying F(t), and
    ``next_velocity`` receives the same particle already moved to its new
    position (velocity and force still as of t). Methods that need history
    keep it in a dict keyed by particle id, filled by ``start``.
    """
    name = 'abstract'

    def start(self, particle: Particle, dt: float,
              force_law: Optional[ForceLaw] = None) -> None:
        """Seed the per-particle history. The particle must carry F(0)."""

    @abstractmethod
    def next_position(self, particle: Particle, t: float, dt: float) -> Vector2D:
        ...

    @abstractmethod
    def next_velocity(self, particle: Particle, t: float, dt: float) -> Vector2D:
        ...

    def __repr__(self):
        return f"{type(self).__name__}()"


# ========== EULER ==========
class EulerIntegration(IntegrationMethod):
    """
    Explicit Euler with the second order position term.

    x(t+dt) = x + v dt + F dt^2 / (2m)
    v(t+dt) = v + F dt / m
    """
    name = 'euler'

    def next_position(self, particle, t, dt):
        return (particle.position
                + particle.velocity * dt
                + particle.force * (dt * dt / (2 * particle.mass)))

    def next_velocity(self, particle, t, dt):
        return particle.velocity + particle.force * (dt / particle.mass)


# ========== VERLET ==========
class VerletIntegration(IntegrationMethod):
    """
    Position Verlet.

    r(t+dt) = 2 r(t) - r(t-dt) + F(t) dt^2 / m

    The velocity is the central difference (r(t+dt) - r(t-dt)) / (2 dt), which
    is v(t): the velocity reported after a step lags the position by one step.
    """
    name = 'verlet'

    def __init__(self):
        # id -> (r(t-dt), r(t-2dt))
        self._history: Dict[int, Tuple[Vector2D, Optional[Vector2D]]] = {}

    def start(self, particle, dt, force_law=None):
        self._history[particle.id] = (backward_euler_position(particle, dt), None)

    def next_position(self, particle, t, dt):
        try:
            previous, _ = self._history[particle.id]
        except KeyError:
            raise RuntimeError(
                f"Verlet history missing for particle {particle.id}, "
                f"call start() before stepping") from None
        self._history[particle.id] = (particle.position, previous)
        return (particle.position * 2
                - previous
                + particle.force * (dt * dt / particle.mass))

    def next_velocity(self, particle, t, dt):
        try:
            _, before_previous = self._history[particle.id]
        except KeyError:
            raise RuntimeError(
                f"Verlet history missing for particle {particle.id}, "
                f"call start() before stepping") from None
        if before_previous is None:
            raise RuntimeError(
                f"next_velocity called before next_position for particle {particle.id}")
        return (particle.position - before_previous) / (2 * dt)

    def previous_position(self, particle_id: int) -> Vector2D:
        """Cached r(t-dt) of a particle (the position before its current one)."""
        return self._history[particle_id][0]

    def __contains__(self, particle_id: int) -> bool:
        return particle_id in self._history


# ========== BEEMAN ==========
class BeemanIntegration(IntegrationMethod):
    """
    Beeman predictor-corrector.

    x(t+dt) = x + v dt + 2/3 a dt^2 - 1/6 a_prev dt^2
    v_p     = v + 3/2 a dt - 1/2 a_prev dt
    v(t+dt) = v + 5/12 a_next dt + 2/3 a dt - 1/12 a_prev dt

    where a_next is the force law evaluated at (x(t+dt), v_p). The force law
    is needed because the next acceleration depends on the velocity when the
    motion is damped.
    """
    name = 'beeman'

    MAX_SEED_ITERATIONS = 100

    def __init__(self):
        self._prev_acceleration: Dict[int, Vector2D] = {}
        self._force_laws: Dict[int, ForceLaw] = {}

    def start(self, particle, dt, force_law=None):
        if force_law is None:
            raise ValueError("Beeman integration requires a force law")
        self._force_laws[particle.id] = force_law
        prev_force = self._backward_force(particle, dt, force_law)
        self._prev_acceleration[particle.id] = prev_force / particle.mass

    def _backward_force(self, particle: Particle, dt: float, force_law: ForceLaw) -> Vector2D:
        """
        Force at -dt, consistent with the backward Euler state it produces.

        Solves F = force_law(r - v dt + F dt^2 / (2m), v - F dt / m) by fixed
        point iteration starting from F(0).

        Raises:
            ValueError: If the iteration does not converge (dt too large)
        """
        mass = particle.mass
        force = particle.force
        for _ in range(self.MAX_SEED_ITERATIONS):
            position = (particle.position
                        - particle.velocity * dt
                        + force * (dt * dt / (2 * mass)))
            velocity = particle.velocity - force * (dt / mass)
            updated = force_law(position, velocity)
            if updated.isclose(force):
                return updated
            force = updated
        raise ValueError(
            f"Could not find a consistent force at -dt for particle {particle.id}, "
            f"reduce dt (got {dt})")

    def previous_acceleration(self, particle_id: int) -> Vector2D:
        """Acceleration of the step before the current one."""
        return self._prev_acceleration[particle_id]

    def _previous(self, particle: Particle) -> Vector2D:
        try:
            return self._prev_acceleration[particle.id]
        except KeyError:
            raise RuntimeError(
                f"Beeman history missing for particle {particle.id}, "
                f"call start() before stepping") from None

    def next_position(self, particle, t, dt):
        a = particle.force / particle.mass
        a_prev = self._previous(particle)
        return (particle.position
                + particle.velocity * dt
                + a * (2.0 / 3.0 * dt * dt)
                - a_prev * (dt * dt / 6.0))

    def next_velocity(self, particle, t, dt):
        a = particle.force / particle.mass
        a_prev = self._previous(particle)
        predicted = particle.velocity + a * (1.5 * dt) - a_prev * (0.5 * dt)
        a_next = self._force_laws[particle.id](particle.position, predicted) / particle.mass
        self._prev_acceleration[particle.id] = a
        return (particle.velocity
                + a_next * (5.0 / 12.0 * dt)
                + a * (2.0 / 3.0 * dt)
                - a_prev * (dt / 12.0))


# ========== ANALYTIC ==========
class AnalyticIntegration(IntegrationMethod):
    """
    Closed-form underdamped oscillator, x(t) = A exp(-beta t) cos(omega t).

    Only meant to validate the numerical methods: positions are evaluated
    directly at t + dt and the velocity is always the zero vector.

    Parameters:
        mass: oscillating mass [kg]
        k: spring constant [N/m]
        gamma: damping coefficient [kg/s]
    """
    name = 'analytic'

    def __init__(self, mass: float, k: float, gamma: float):
        if mass <= 0:
            raise ValueError(f"Mass must be positive, got {mass}")
        self.beta = gamma / (2 * mass)
        discriminant = k / mass - self.beta ** 2
        if discriminant <= 0:
            raise ValueError(
                f"Analytic solution requires an underdamped oscillator "
                f"(k/m > beta^2), got k/m={k / mass}, beta^2={self.beta ** 2}")
        self.omega = math.sqrt(discriminant)
        self._amplitude: Dict[int, float] = {}

    def start(self, particle, dt, force_law=None):
        self._amplitude[particle.id] = particle.x

    def position_at(self, amplitude: float, t: float) -> float:
        return amplitude * math.exp(-self.beta * t) * math.cos(self.omega * t)

    def next_position(self, particle, t, dt):
        amplitude = self._amplitude.setdefault(particle.id, particle.x)
        return Vector2D(self.position_at(amplitude, t + dt), particle.y)

    def next_velocity(self, particle, t, dt):
        return ZERO

    def __repr__(self):
        return f"AnalyticIntegration(beta={self.beta}, omega={self.omega})"


# ========== FACTORY ==========
METHODS = ('euler', 'verlet', 'beeman', 'analytic')


def get_method(name: str, mass: Optional[float] = None, k: Optional[float] = None,
               gamma: Optional[float] = None) -> IntegrationMethod:
    """
    Build an integration method from its name.

    Parameters:
        name: one of 'euler', 'verlet', 'beeman', 'analytic' (case-insensitive)
        mass, k, gamma: oscillator parameters, required by 'analytic' only

    Raises:
        ValueError: If the name is unknown or analytic parameters are missing
    """
    key = name.strip().lower()
    if key == 'euler':
        return EulerIntegration()
    if key == 'verlet':
        return VerletIntegration()
    if key == 'beeman':
        return BeemanIntegration()
    if key == 'analytic':
        if mass is None or k is None or gamma is None:
            raise ValueError("Analytic integration requires mass, k and gamma")
        return AnalyticIntegration(mass, k, gamma)
    raise ValueError(f"Unknown integration method '{name}'. "
                     f"Valid methods: {list(METHODS)}")
