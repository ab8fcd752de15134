'''Numerical integration package for classical mechanics
Particle class definition'''

import itertools
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict
from .vector import Vector2D, ZERO


class ParticleType(Enum):
    COMMON = 'common'
    SUN = 'sun'
    EARTH = 'earth'
    MARS = 'mars'
    SHIP = 'ship'
    EDGE = 'edge'  # rendering-only boundary marker


class IdAllocator:
    """
    Source of particle identifiers.

    Each simulated system owns one allocator, so identifiers are unique and
    increasing within that system and independent between systems.
    """
    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._last = start - 1

    def next_id(self) -> int:
        self._last = next(self._counter)
        return self._last

    @property
    def last(self) -> int:
        """Most recently issued identifier (start - 1 before the first call)."""
        return self._last


@dataclass(frozen=True)
class Particle:
    """
    Immutable state of a point mass.

    Updates go through the ``with_*`` methods, which return a new Particle
    carrying the same id. A snapshot of particles therefore never changes
    after it was handed out.

    Attributes:
        id: identifier issued by the owning system's IdAllocator
        position: position [m]
        velocity: velocity [m/s]
        force: total force acting on the particle [N]
        mass: mass [kg]
        radius: radius [m], used for surface distances
        type: ParticleType tag
        age_in_days: simulated time the particle has existed
    """
    id: int
    position: Vector2D
    velocity: Vector2D = ZERO
    force: Vector2D = ZERO
    mass: float = 1.0
    radius: float = 0.0
    type: ParticleType = ParticleType.COMMON
    age_in_days: float = 0.0

    def __post_init__(self):
        if self.radius < 0:
            raise ValueError(f"Radius must be non-negative, got {self.radius}")
        if self.mass < 0:
            raise ValueError(f"Mass must be non-negative, got {self.mass}")

    # ========== PROPERTY ACCESS ==========
    @property
    def x(self) -> float:
        return self.position.x

    @property
    def y(self) -> float:
        return self.position.y

    @property
    def vx(self) -> float:
        return self.velocity.x

    @property
    def vy(self) -> float:
        return self.velocity.y

    @property
    def speed(self) -> float:
        return self.velocity.norm()

    @property
    def kinetic_energy(self) -> float:
        """Kinetic energy 1/2 m |v|^2 [J]"""
        return 0.5 * self.mass * self.speed ** 2

    # ========== COPY-ON-WRITE UPDATES ==========
    def with_position(self, position: Vector2D) -> "Particle":
        return replace(self, position=position)

    def with_velocity(self, velocity: Vector2D) -> "Particle":
        return replace(self, velocity=velocity)

    def with_force(self, force: Vector2D) -> "Particle":
        return replace(self, force=force)

    def with_age(self, age_in_days: float) -> "Particle":
        return replace(self, age_in_days=age_in_days)

    def with_state(self, position: Vector2D, velocity: Vector2D,
                   force: Vector2D) -> "Particle":
        """New particle with kinematic state and force replaced together."""
        return replace(self, position=position, velocity=velocity, force=force)

    def distance_to(self, other: "Particle") -> float:
        """Center-to-center distance."""
        return self.position.distance_to(other.position)

    def surface_distance_to(self, other: "Particle") -> float:
        """Distance between the two surfaces; negative when they overlap."""
        return self.distance_to(other) - self.radius - other.radius

    def to_record(self) -> Dict[str, Any]:
        """Flat representation for output layers and DataFrame export."""
        return {
            'id': self.id,
            'type': self.type.name,
            'x': self.position.x,
            'y': self.position.y,
            'vx': self.velocity.x,
            'vy': self.velocity.y,
            'fx': self.force.x,
            'fy': self.force.y,
            'mass': self.mass,
            'radius': self.radius,
            'age_in_days': self.age_in_days,
        }
