'''Numerical integration package for classical mechanics
Damped harmonic oscillator definitions'''

import logging
import math
import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple, Union
from .config import config
from .gear import Gear5SystemData, GearPredictorCorrector
from .integrators import IntegrationMethod, get_method
from .particle import IdAllocator, Particle
from .trajectory import Trajectory
from .utils import validation_error
from .vector import Vector2D

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OscillatorParams:
    """
    Immutable parameters of a damped harmonic oscillator run.

    Attributes:
        mass: oscillating mass [kg]
        r: initial amplitude [m]
        k: spring constant [N/m]
        gamma: damping coefficient [kg/s]
        dt: integration step [s]
        tf: final time [s]
    """
    mass: float
    r: float
    k: float
    gamma: float
    dt: float
    tf: float

    def __post_init__(self):
        if self.mass <= 0:
            validation_error(f"Mass must be positive, got {self.mass}")
        if self.k < 0:
            validation_error(f"Spring constant must be non-negative, got {self.k}")
        if self.gamma < 0:
            validation_error(f"Damping coefficient must be non-negative, got {self.gamma}")
        if self.dt <= 0:
            validation_error(f"Time step must be positive, got {self.dt}")
        if self.tf < 0:
            validation_error(f"Final time must be non-negative, got {self.tf}")

    @property
    def beta(self) -> float:
        """Damping rate gamma / 2m [1/s]"""
        return self.gamma / (2 * self.mass)

    @property
    def omega(self) -> float:
        """Damped angular frequency, nan when not underdamped."""
        discriminant = self.k / self.mass - self.beta ** 2
        return math.sqrt(discriminant) if discriminant > 0 else math.nan

    @property
    def initial_velocity(self) -> float:
        # fixed convention: matches the initial slope used by the analytic solution
        return -self.beta

    @property
    def steps(self) -> int:
        """Number of steps needed to reach tf."""
        return int(math.ceil(self.tf / self.dt - 1e-9))

    def force(self, position: Vector2D, velocity: Vector2D) -> Vector2D:
        """Restoring plus damping force, F = -k x - gamma v."""
        return position * (-self.k) - velocity * self.gamma


# ========== SYSTEMS ==========
class TimeDrivenSystem(ABC):
    """A system advanced by a fixed time step."""

    @abstractmethod
    def evolve_system(self) -> None:
        ...

    @property
    @abstractmethod
    def particles(self) -> Tuple[Particle, ...]:
        ...

    @property
    @abstractmethod
    def time(self) -> float:
        ...


class _OscillatorBase(TimeDrivenSystem):

    def __init__(self, params: OscillatorParams):
        self._params = params
        self._ids = IdAllocator()
        self._time = 0.0
        initial = Particle(
            id=self._ids.next_id(),
            position=Vector2D(params.r, 0.0),
            velocity=Vector2D(params.initial_velocity, 0.0),
            mass=params.mass,
        )
        self._particle = initial.with_force(params.force(initial.position, initial.velocity))

    @property
    def params(self) -> OscillatorParams:
        return self._params

    @property
    def particle(self) -> Particle:
        return self._particle

    @property
    def particles(self):
        return (self._particle,)

    @property
    def time(self):
        return self._time

    def mechanical_energy(self) -> float:
        """Kinetic plus elastic energy, 1/2 m v^2 + 1/2 k x^2."""
        x = self._particle.position.norm()
        return self._particle.kinetic_energy + 0.5 * self._params.k * x ** 2


class DampedOscillator(_OscillatorBase):
    """
    Damped oscillator advanced by a single-particle integration method.

    Each step recomputes the force from the current state, then asks the
    method for the new position and only then for the new velocity.

    Parameters:
        params: OscillatorParams
        method: IntegrationMethod instance or its name
            ('euler', 'verlet', 'beeman', 'analytic')
    """

    def __init__(self, params: OscillatorParams,
                 method: Union[IntegrationMethod, str] = 'verlet'):
        super().__init__(params)
        if isinstance(method, str):
            method = get_method(method, mass=params.mass, k=params.k, gamma=params.gamma)
        self._method = method
        self._method.start(self._particle, params.dt, params.force)
        logger.debug("Created oscillator with %r, dt=%s", method, params.dt)

    @property
    def method(self) -> IntegrationMethod:
        return self._method

    def evolve_system(self):
        dt = self._params.dt
        particle = self._particle
        particle = particle.with_force(self._params.force(particle.position, particle.velocity))

        position = self._method.next_position(particle, self._time, dt)
        particle = particle.with_position(position)

        velocity = self._method.next_velocity(particle, self._time, dt)
        self._particle = particle.with_velocity(velocity)
        self._time += dt


class OscillatorGear5SystemData(Gear5SystemData):
    """
    Gear data for one oscillating particle.

    Higher derivatives follow from differentiating m r'' = -k r - gamma r':
    r[i] = (-k r[i-2] - gamma r[i-1]) / m for i >= 2.
    """

    def __init__(self, particle: Particle, k: float, gamma: float):
        super().__init__([particle])
        self.k = k
        self.gamma = gamma

    def initial_derivatives(self, particle):
        r = np.zeros((self.s_vectors(), 2))
        r[0] = particle.position.to_numpy()
        r[1] = particle.velocity.to_numpy()
        for i in range(2, self.s_vectors()):
            r[i] = (-self.k * r[i - 2] - self.gamma * r[i - 1]) / particle.mass
        return r

    def force_with_predicted(self, particle):
        return (self.predicted_r(particle.id, 0) * (-self.k)
                - self.predicted_r(particle.id, 1) * self.gamma)


class GearOscillator(_OscillatorBase):
    """Damped oscillator advanced by the fifth order Gear predictor-corrector."""

    def __init__(self, params: OscillatorParams):
        super().__init__(params)
        self._data = OscillatorGear5SystemData(self._particle, params.k, params.gamma)
        self._data.init()
        self._gear = GearPredictorCorrector()
        logger.debug("Created Gear5 oscillator, dt=%s", params.dt)

    @property
    def system_data(self) -> OscillatorGear5SystemData:
        return self._data

    def evolve_system(self):
        self._gear.evolve_system(self._data, self._params.dt)
        self._particle = self._data.particles[0]
        self._time += self._params.dt


OSCILLATOR_METHODS = ('euler', 'verlet', 'beeman', 'gear', 'analytic')


def make_oscillator(params: OscillatorParams, method: str = 'verlet') -> _OscillatorBase:
    """
    Oscillator system for a method name, see OSCILLATOR_METHODS.

    Raises:
        ValueError: If the method name is unknown
    """
    key = method.strip().lower()
    if key not in OSCILLATOR_METHODS:
        raise ValueError(f"Unknown integration method '{method}'. "
                         f"Valid methods: {list(OSCILLATOR_METHODS)}")
    if key == 'gear':
        return GearOscillator(params)
    return DampedOscillator(params, key)


def run_oscillator(params: OscillatorParams, method: str = 'verlet',
                   output_interval: Optional[int] = None) -> Trajectory:
    """
    Integrate an oscillator from t = 0 to tf.

    Parameters:
        params: OscillatorParams
        method: integration method name, see OSCILLATOR_METHODS
        output_interval: steps between recorded snapshots
            (default: config.OUTPUT_INTERVAL)

    Returns:
        Trajectory holding the initial state, every output_interval-th step
        and the final state
    """
    if output_interval is None:
        output_interval = config.OUTPUT_INTERVAL
    if output_interval < 1:
        raise ValueError(f"output_interval must be at least 1, got {output_interval}")

    system = make_oscillator(params, method)
    trajectory = Trajectory(name=f"oscillator ({method})")
    trajectory.record(0, system.time, system.particles)

    steps = params.steps
    for step in range(1, steps + 1):
        system.evolve_system()
        if step % output_interval == 0 or step == steps:
            trajectory.record(step, system.time, system.particles)

    logger.info("Oscillator run with %s finished after %d steps (t=%.6g s)",
                method, steps, system.time)
    return trajectory
