'''Numerical integration package for classical mechanics
SolarSystem class definition'''

import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from .defaults import (G, SECONDS_PER_DAY, SHIP_DISTANCE_TO_SURFACE, SHIP_MASS,
                       SHIP_ORBITAL_V0, SHIP_RADIUS, SOLAR_BODIES, BodyDefinition)
from .integrators import VerletIntegration
from .particle import IdAllocator, Particle, ParticleType
from .utils import validation_error
from .vector import Vector2D, ZERO

logger = logging.getLogger(__name__)

# types that may appear any number of times and are not looked up by type
_UNTRACKED_TYPES = (ParticleType.COMMON, ParticleType.EDGE)


def gravitational_force(p1: Particle, p2: Particle) -> Vector2D:
    """
    Newtonian attraction exerted on p1 by p2.

    The result is exactly antisymmetric: gravitational_force(a, b) equals
    -gravitational_force(b, a) component by component.

    Raises:
        ValueError: If both particles are at the same position
    """
    delta = p2.position - p1.position
    distance_squared = delta.dot(delta)
    if distance_squared == 0:
        raise ValueError(
            f"Particles {p1.id} and {p2.id} are coincident, force is undefined")
    magnitude = G * (p1.mass * p2.mass) / distance_squared
    return delta * (magnitude / math.sqrt(distance_squared))


@dataclass(frozen=True)
class MinDistanceRecord:
    """
    Closest approach of the ship to its target observed so far.

    Distances are surface to surface [m]. A new record replaces the old one,
    records are never modified.

    Attributes:
        distance_to_mars: ship to Mars distance at the recorded instant
        distance_to_earth: ship to Earth distance at the recorded instant
        simulation_time: simulated time of the record [s]
        particles: snapshot of every body at that instant
    """
    distance_to_mars: float = math.inf
    distance_to_earth: float = math.inf
    simulation_time: float = 0.0
    particles: Tuple[Particle, ...] = ()

    def distance_to(self, target: ParticleType) -> float:
        if target is ParticleType.MARS:
            return self.distance_to_mars
        if target is ParticleType.EARTH:
            return self.distance_to_earth
        raise ValueError(f"No distance recorded for {target.name}")

    def summary(self) -> str:
        lines = [f"Min distance to Mars: {self.distance_to_mars}",
                 f"Min distance to Earth: {self.distance_to_earth}",
                 f"Simulation Time to min distance: {self.simulation_time}"]
        lines.extend(repr(p) for p in self.particles)
        return "\n".join(lines)


class SolarSystem:
    """
    Sun, Earth and Mars under mutual gravity, plus an optional spacecraft.

    Every body is advanced with position Verlet. Forces of a step are all
    computed from the same snapshot before any body moves.

    Parameters:
        dt: integration step [s]
        bodies: initial body definitions (default: Sun, Earth and Mars)

    Examples:
        >>> system = SolarSystem(dt=100)
        >>> ship = system.take_off(speed=10000)
        >>> while not system.ship_crashed() and system.time < 3600 * 24 * 365:
        ...     system.evolve_system()
    """

    # ========== CONSTRUCTION ==========
    def __init__(self, dt: float, bodies: Sequence[BodyDefinition] = SOLAR_BODIES):
        if dt <= 0:
            validation_error(f"Time step must be positive, got {dt}")
        self._dt = float(dt)
        self._time = 0.0
        self._ids = IdAllocator()
        self._verlet = VerletIntegration()
        self._bodies: Tuple[Particle, ...] = ()
        self._by_type: Dict[ParticleType, Particle] = {}
        self._ship_landed_to: Optional[ParticleType] = None

        self._add_particles([
            Particle(id=self._ids.next_id(), position=body.position,
                     velocity=body.velocity, mass=body.mass,
                     radius=body.radius, type=body.type)
            for body in bodies
        ])
        self._min_distance = MinDistanceRecord(particles=self._bodies)
        logger.debug("Created SolarSystem with %d bodies, dt=%s", len(self._bodies), dt)

    def _add_particles(self, particles: Iterable[Particle]):
        """
        Append particles, giving them F(0) and their Verlet history.

        Bodies already in the system keep their history untouched. EDGE
        markers are kept as they are, with no force and no history.
        """
        new = tuple(particles)
        for particle in new:
            if particle.type not in _UNTRACKED_TYPES and (
                    particle.type in self._by_type
                    or sum(p.type is particle.type for p in new) > 1):
                raise ValueError(f"System already holds a {particle.type.name} body")
        snapshot = self._bodies + new
        started = []
        for particle in new:
            if particle.type is not ParticleType.EDGE:
                particle = particle.with_force(self.total_force(particle, snapshot))
                self._verlet.start(particle, self._dt)
            started.append(particle)
        self._set_bodies(self._bodies + tuple(started))

    def _set_bodies(self, bodies: Iterable[Particle]):
        bodies = tuple(bodies)
        self._by_type = {p.type: p for p in bodies if p.type not in _UNTRACKED_TYPES}
        self._bodies = bodies

    # ========== PROPERTY ACCESS ==========
    @property
    def dt(self) -> float:
        return self._dt

    @property
    def time(self) -> float:
        """Total simulated time [s]"""
        return self._time

    @property
    def particles(self) -> Tuple[Particle, ...]:
        """Snapshot of all bodies, in insertion order."""
        return self._bodies

    @property
    def ship(self) -> Optional[Particle]:
        return self._by_type.get(ParticleType.SHIP)

    @property
    def min_distance_record(self) -> MinDistanceRecord:
        return self._min_distance

    @property
    def ship_landed_to(self) -> Optional[ParticleType]:
        """Body the ship crashed into, None while it is flying or not launched."""
        return self._ship_landed_to

    def body(self, particle_type: ParticleType) -> Particle:
        try:
            return self._by_type[particle_type]
        except KeyError:
            raise KeyError(f"No {particle_type.name} body in the system") from None

    @property
    def sun_position(self) -> Vector2D:
        return self.body(ParticleType.SUN).position

    @property
    def earth_position(self) -> Vector2D:
        return self.body(ParticleType.EARTH).position

    @property
    def mars_position(self) -> Vector2D:
        return self.body(ParticleType.MARS).position

    # ========== DYNAMICS ==========
    @staticmethod
    def total_force(particle: Particle, bodies: Iterable[Particle]) -> Vector2D:
        """Sum of the attraction of every other body on ``particle``."""
        force = ZERO
        for other in bodies:
            if other.id == particle.id or other.type is ParticleType.EDGE:
                continue
            force = force + gravitational_force(particle, other)
        return force

    def evolve_system(self):
        """Advance every body by dt. EDGE markers do not move."""
        dt = self._dt
        snapshot = self._bodies
        forces: List[Optional[Vector2D]] = [
            None if p.type is ParticleType.EDGE else self.total_force(p, snapshot)
            for p in snapshot]

        updated = []
        for particle, force in zip(snapshot, forces):
            if force is None:
                updated.append(particle)
                continue
            particle = particle.with_force(force)
            particle = particle.with_position(
                self._verlet.next_position(particle, self._time, dt))
            velocity = self._verlet.next_velocity(particle, self._time, dt)
            updated.append(replace(particle, velocity=velocity,
                                   age_in_days=particle.age_in_days + dt / SECONDS_PER_DAY))

        self._set_bodies(updated)
        self._time += dt

    # ========== LAUNCH ==========
    def take_off(self, speed: float, angle: Optional[Vector2D] = None) -> Particle:
        """
        Launch the ship from Earth.

        The ship starts 1500 km above the surface on the side facing away from
        the Sun, with Earth's velocity plus the orbital insertion speed along
        the tangential plus ``speed`` along ``angle``.

        Parameters:
            speed: launch speed [m/s]
            angle: launch direction, any non-zero length (default: tangential)

        Returns:
            The ship particle

        Raises:
            RuntimeError: If a ship was already launched
            ValueError: If angle is the zero vector
        """
        return self._launch(ParticleType.EARTH, speed, angle, side=1.0)

    def take_off_from_mars(self, speed: float, angle: Optional[Vector2D] = None) -> Particle:
        """Launch the ship from Mars, placed on the sunward side. See take_off."""
        return self._launch(ParticleType.MARS, speed, angle, side=-1.0)

    def launch_versors(self, departure: ParticleType) -> Tuple[Vector2D, Vector2D]:
        """Normal (Sun to body) and tangential unit vectors of a body."""
        normal = (self.body(departure).position - self.sun_position).normalized()
        return normal, normal.perpendicular()

    def _launch(self, departure_type, speed, angle, side):
        if ParticleType.SHIP in self._by_type:
            raise RuntimeError("Ship has already taken off")
        departure = self.body(departure_type)
        normal, tangential = self.launch_versors(departure_type)
        direction = tangential if angle is None else angle.normalized()

        height = side * (departure.radius + SHIP_DISTANCE_TO_SURFACE)
        ship = Particle(
            id=self._ids.next_id(),
            position=departure.position + normal * height,
            velocity=(departure.velocity
                      + tangential * SHIP_ORBITAL_V0
                      + direction * speed),
            mass=SHIP_MASS,
            radius=SHIP_RADIUS,
            type=ParticleType.SHIP,
        )
        self._add_particles([ship])
        logger.info("Ship launched from %s at t=%.0f s with speed %.1f m/s",
                    departure_type.name, self._time, speed)
        return self.ship

    # ========== CRASH DETECTION ==========
    def ship_crashed(self) -> bool:
        """
        Whether the ship touched any body, tracking its approach to Mars.

        Returns False while no ship exists.
        """
        return self._check_ship(ParticleType.MARS)

    def ship_crashed_earth(self) -> bool:
        """Same as ship_crashed, tracking the approach to Earth instead."""
        return self._check_ship(ParticleType.EARTH)

    def _check_ship(self, target: ParticleType) -> bool:
        ship = self.ship
        if ship is None:
            return False

        crashed_into = None
        for body in self._bodies:
            if body.id == ship.id or body.type is ParticleType.EDGE:
                continue
            distance = ship.surface_distance_to(body)
            if body.type is target and distance < self._min_distance.distance_to(target):
                self._record(ship, target, distance)
            if distance <= 0 and crashed_into is None:
                crashed_into = body.type

        if crashed_into is not None:
            self._ship_landed_to = crashed_into
            logger.info("Ship landed on %s at t=%.0f s", crashed_into.name, self._time)
            return True
        return False

    def _record(self, ship: Particle, target: ParticleType, distance: float):
        if target is ParticleType.MARS:
            to_mars = distance
            to_earth = ship.surface_distance_to(self.body(ParticleType.EARTH))
        else:
            to_earth = distance
            to_mars = ship.surface_distance_to(self.body(ParticleType.MARS))
        self._min_distance = MinDistanceRecord(
            distance_to_mars=to_mars,
            distance_to_earth=to_earth,
            simulation_time=self._time,
            particles=self._bodies,
        )

    def __repr__(self):
        return (f"SolarSystem(dt={self._dt}, time={self._time}, "
                f"bodies={[p.type.name for p in self._bodies]})")
