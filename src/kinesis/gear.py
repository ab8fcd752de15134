'''Numerical integration package for classical mechanics
Gear predictor-corrector definitions'''

import math
import numpy as np
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Tuple
from .particle import Particle
from .vector import Vector2D


# ========== SYSTEM DATA ==========
class GearSystemData(ABC):
    """
    Derivative vectors of every particle of a system, as used by a Gear method.

    For each particle id the data holds ``r`` (position and its time
    derivatives up to ``order()``), the predicted ``r`` of the current step and
    the ``delta_r2`` correction term. Vectors are stored as numpy arrays of
    shape (s_vectors(), 2).

    Subclasses describe the physics: how the derivatives are seeded from a
    particle and how the force is computed from predicted values.
    """

    def __init__(self, particles: Iterable[Particle]):
        self._particles: Tuple[Particle, ...] = tuple(particles)
        self._r: Dict[int, np.ndarray] = {}
        self._r_predicted: Dict[int, np.ndarray] = {}
        self._delta_r2: Dict[int, np.ndarray] = {}
        self._initialized = False

    # ========== SYSTEM DESCRIPTION ==========
    @abstractmethod
    def initial_derivatives(self, particle: Particle) -> np.ndarray:
        """
        Derivatives of order 0 to ``order()`` of a particle at t = 0.

        Other particles of the system are available through ``particles``.

        Returns:
            Array of shape (s_vectors(), 2)
        """

    @abstractmethod
    def force_with_predicted(self, particle: Particle) -> Vector2D:
        """Force on a particle evaluated with the predicted derivatives."""

    @abstractmethod
    def order(self) -> int:
        ...

    @abstractmethod
    def s_vectors(self) -> int:
        ...

    @abstractmethod
    def alpha(self, derivative_order: int) -> float:
        ...

    @abstractmethod
    def factorial(self, n: int) -> float:
        ...

    def init(self):
        """
        Seed ``r`` of every particle from ``initial_derivatives``.

        Must be called once, before the first step.
        """
        if self._initialized:
            raise RuntimeError("Gear system data already initialized")
        shape = (self.s_vectors(), 2)
        for particle in self._particles:
            derivatives = np.array(self.initial_derivatives(particle), dtype=float)
            if derivatives.shape != shape:
                raise ValueError(
                    f"Initial derivatives must have shape {shape}, "
                    f"got {derivatives.shape}")
            self._r[particle.id] = derivatives
            self._r_predicted[particle.id] = np.zeros(shape)
            self._delta_r2[particle.id] = np.zeros(2)
        self._initialized = True

    @property
    def initialized(self) -> bool:
        return self._initialized

    # ========== PARTICLE ACCESS ==========
    @property
    def particles(self) -> Tuple[Particle, ...]:
        return self._particles

    def replace_particles(self, particles: Iterable[Particle]):
        """Swap in a whole new particle set, keeping the derivative vectors."""
        particles = tuple(particles)
        if [p.id for p in particles] != [p.id for p in self._particles]:
            raise ValueError("Replacement particles must keep the same ids and order")
        self._particles = particles

    # ========== DERIVATIVE ACCESS ==========
    def r(self, particle_id: int, derivative_order: int) -> Vector2D:
        return Vector2D.from_numpy(self._r[particle_id][derivative_order])

    def predicted_r(self, particle_id: int, derivative_order: int) -> Vector2D:
        return Vector2D.from_numpy(self._r_predicted[particle_id][derivative_order])

    def delta_r2(self, particle_id: int) -> Vector2D:
        return Vector2D.from_numpy(self._delta_r2[particle_id])

    def r_vectors(self, particle_id: int) -> np.ndarray:
        """Copy of all current derivatives of a particle."""
        return self._r[particle_id].copy()

    def predicted_vectors(self, particle_id: int) -> np.ndarray:
        return self._r_predicted[particle_id].copy()

    # used by GearPredictorCorrector only
    def _set_r(self, particle_id: int, values: np.ndarray):
        self._r[particle_id] = values

    def _set_predicted(self, particle_id: int, values: np.ndarray):
        self._r_predicted[particle_id] = values

    def _set_delta_r2(self, particle_id: int, value: np.ndarray):
        self._delta_r2[particle_id] = value


class Gear5SystemData(GearSystemData):
    """Fifth order Gear data: position plus five derivatives per particle."""
    ORDER = 5
    # corrector coefficients for second order equations
    ALPHA = (3 / 16, 251 / 360, 1.0, 11 / 18, 1 / 6, 1 / 60)
    _FACTORIALS = tuple(float(math.factorial(n)) for n in range(ORDER + 1))

    def order(self):
        return self.ORDER

    def s_vectors(self):
        return self.ORDER + 1

    def alpha(self, derivative_order):
        return self.ALPHA[derivative_order]

    def factorial(self, n):
        return self._FACTORIALS[n]


# ========== INTEGRATOR ==========
class GearPredictorCorrector:
    """
    Gear predictor-corrector stepping for any GearSystemData.

    Every step runs three phases over all particles in turn, so no particle
    sees another one partially advanced:

    1. predict:  rp[k] = sum_{j>=k} r[j] dt^(j-k) / (j-k)!
    2. evaluate: delta_r2 = (F(rp)/m - rp[2]) dt^2 / 2!
    3. correct:  r[k] = rp[k] + alpha[k] delta_r2 k! / dt^k

    Afterwards each particle's position, velocity and force are set from
    r[0], r[1] and m r[2], and the particle set is replaced in one go.
    """

    def evolve_system(self, system_data: GearSystemData, dt: float):
        """
        Advance every particle of ``system_data`` by ``dt``.

        Raises:
            ValueError: If dt is zero
            RuntimeError: If the system data was not initialized
        """
        if dt == 0:
            raise ValueError("Gear predictor-corrector requires a non-zero dt")
        if not system_data.initialized:
            raise RuntimeError("Call init() on the system data before stepping")

        taylor = self._taylor_matrix(system_data, dt)
        particles = system_data.particles

        for particle in particles:
            self._predict(system_data, particle, taylor)
        for particle in particles:
            self._evaluate(system_data, particle, dt)
        for particle in particles:
            self._correct(system_data, particle, dt)

        system_data.replace_particles(
            self._updated_particle(system_data, particle) for particle in particles)

    # ========== PHASES ==========
    @staticmethod
    def _taylor_matrix(system_data: GearSystemData, dt: float) -> np.ndarray:
        """Upper triangular matrix T with T[k, j] = dt^(j-k) / (j-k)!"""
        n = system_data.s_vectors()
        matrix = np.zeros((n, n))
        for k in range(n):
            for j in range(k, n):
                matrix[k, j] = dt ** (j - k) / system_data.factorial(j - k)
        return matrix

    @staticmethod
    def _predict(system_data, particle, taylor):
        r = system_data.r_vectors(particle.id)
        system_data._set_predicted(particle.id, taylor @ r)

    @staticmethod
    def _evaluate(system_data, particle, dt):
        acceleration = system_data.force_with_predicted(particle).to_numpy() / particle.mass
        predicted_acceleration = system_data.predicted_vectors(particle.id)[2]
        delta = (acceleration - predicted_acceleration) * dt ** 2 / system_data.factorial(2)
        system_data._set_delta_r2(particle.id, delta)

    @staticmethod
    def _correct(system_data, particle, dt):
        predicted = system_data.predicted_vectors(particle.id)
        delta = system_data.delta_r2(particle.id).to_numpy()
        corrected = np.empty_like(predicted)
        for k in range(system_data.s_vectors()):
            constant = system_data.alpha(k) * system_data.factorial(k) / dt ** k
            corrected[k] = predicted[k] + constant * delta
        system_data._set_r(particle.id, corrected)

    @staticmethod
    def _updated_particle(system_data, particle) -> Particle:
        return particle.with_state(
            position=system_data.r(particle.id, 0),
            velocity=system_data.r(particle.id, 1),
            force=system_data.r(particle.id, 2) * particle.mass,
        )
