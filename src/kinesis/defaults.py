"""
Default Bodies and Search Configurations
========================================

Physical constants, the initial state of the Sun, Earth and Mars used by
SolarSystem, the spacecraft launch constants, and the default launch window
search ranges.

All values are SI (m, kg, s) unless the name says otherwise.

Examples
--------
>>> from kinesis.defaults import EARTH, DEFAULT_SEARCH
>>> EARTH.radius
6371000.0
>>> DEFAULT_SEARCH['speed']
(10000.0, 11000.0, 1000.0)
"""
from dataclasses import dataclass
from .particle import ParticleType
from .vector import Vector2D

# ========== CONSTANTS ==========
G = 6.693e-11  # gravitational constant used for the N-body system [m^3/(kg s^2)]
KM_TO_M = 1000.0
SECONDS_PER_HOUR = 3600
HOURS_PER_DAY = 24
SECONDS_PER_DAY = SECONDS_PER_HOUR * HOURS_PER_DAY
SECONDS_PER_YEAR = SECONDS_PER_DAY * 365


@dataclass(frozen=True)
class BodyDefinition:
    """
    Immutable initial state of a celestial body.

    Attributes:
        type: ParticleType of the body
        mass: [kg]
        radius: [m]
        position: initial position [m]
        velocity: initial velocity [m/s]
    """
    type: ParticleType
    mass: float
    radius: float
    position: Vector2D
    velocity: Vector2D

    def __post_init__(self):
        if self.mass <= 0:
            raise ValueError(f"Mass must be positive, got {self.mass}")
        if self.radius < 0:
            raise ValueError(f"Radius must be non-negative, got {self.radius}")


"""
Initial conditions for the Solar System bodies
Positions and velocities relative to the Sun, expressed in km and km/s at the
reference epoch and converted to SI
"""
SUN = BodyDefinition(
    type=ParticleType.SUN,
    mass=1.988e30,
    radius=695700 * KM_TO_M,
    position=Vector2D(0.0, 0.0),
    velocity=Vector2D(0.0, 0.0),
)

EARTH = BodyDefinition(
    type=ParticleType.EARTH,
    mass=5.972e24,
    radius=6371 * KM_TO_M,
    position=Vector2D(1.391734353396533e8 * KM_TO_M, -0.571059040560652e8 * KM_TO_M),
    velocity=Vector2D(10.801963811159256 * KM_TO_M, 27.565215006898345 * KM_TO_M),
)

MARS = BodyDefinition(
    type=ParticleType.MARS,
    mass=6.4185e23,
    radius=3389.9 * KM_TO_M,
    position=Vector2D(0.831483493435295e8 * KM_TO_M, -1.914579540822006e8 * KM_TO_M),
    velocity=Vector2D(23.637912321314047 * KM_TO_M, 11.429021426712032 * KM_TO_M),
)

SOLAR_BODIES = (SUN, EARTH, MARS)

# ========== SPACECRAFT ==========
SHIP_ORBITAL_V0 = 7.12 * KM_TO_M       # orbital insertion speed along the tangential
SHIP_RADIUS = 1e2
SHIP_MASS = 2e5
SHIP_DISTANCE_TO_SURFACE = 1500 * KM_TO_M

# ========== RENDERING AREA ==========
SOLAR_SYSTEM_WIDTH = 1e12
SOLAR_SYSTEM_LENGTH = 1e12

# ========== LAUNCH WINDOW SEARCH ==========
DEFAULT_DT = 100.0
DEFAULT_FLIGHT_TIME = SECONDS_PER_YEAR

# (start, stop, step), stop excluded
DEFAULT_SEARCH = {
    'speed': (10000.0, 11000.0, 1000.0),   # launch speed [m/s]
    'days': (0.0, 366.0, 100.0),           # days to wait before launch
    'angle': (50.0, 100.0, 30.0),          # launch angle from the tangential [deg]
}
