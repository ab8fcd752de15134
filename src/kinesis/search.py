"""
Launch window search over the Sun, Earth and Mars system.

Each transfer run builds its own SolarSystem, waits for the launch day,
launches the ship and flies it until it lands on a body or the flight time
budget runs out. ``TrajectorySearch`` repeats this over a grid of launch
speeds, launch delays and launch angles, optionally on several processes,
and keeps the runs that reached the target plus the closest miss.

Examples
--------
>>> from kinesis import TrajectorySearch, SearchGrid, ParameterRange
>>> grid = SearchGrid(speeds=ParameterRange(10000, 11000, 1000),
...                   days=ParameterRange(0, 366, 100),
...                   angles=ParameterRange(50, 100, 30))
>>> result = TrajectorySearch(grid, workers=4).run()
>>> result.to_dataframe()
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from multiprocessing import Pool
from typing import Iterator, List, Optional, Tuple
import pandas as pd
from .config import config
from .defaults import DEFAULT_DT, DEFAULT_FLIGHT_TIME, DEFAULT_SEARCH, SECONDS_PER_DAY
from .particle import Particle, ParticleType
from .solar import MinDistanceRecord, SolarSystem
from .trajectory import Trajectory
from .utils import Timer
from .vector import Vector2D

logger = logging.getLogger(__name__)


class Mission(Enum):
    TO_MARS = 'toMars'
    TO_EARTH = 'toEarth'

    @property
    def departure(self) -> ParticleType:
        return ParticleType.EARTH if self is Mission.TO_MARS else ParticleType.MARS

    @property
    def target(self) -> ParticleType:
        return ParticleType.MARS if self is Mission.TO_MARS else ParticleType.EARTH

    def launch(self, system: SolarSystem, speed: float,
               direction: Optional[Vector2D]) -> Particle:
        if self is Mission.TO_MARS:
            return system.take_off(speed, direction)
        return system.take_off_from_mars(speed, direction)

    def crashed(self, system: SolarSystem) -> bool:
        if self is Mission.TO_MARS:
            return system.ship_crashed()
        return system.ship_crashed_earth()


# ========== PARAMETER GRID ==========
@dataclass(frozen=True)
class ParameterRange:
    """
    Evenly spaced values start, start + step, ... strictly below stop.

    Attributes:
        start: first value
        stop: exclusive upper bound
        step: spacing, must be positive
    """
    start: float
    stop: float
    step: float

    def __post_init__(self):
        if self.step <= 0:
            raise ValueError(f"Step must be positive, got {self.step}")

    def values(self) -> List[float]:
        count = max(0, math.ceil((self.stop - self.start) / self.step))
        values = [self.start + i * self.step for i in range(count)]
        return [v for v in values if v < self.stop]

    def __iter__(self) -> Iterator[float]:
        return iter(self.values())

    def __len__(self):
        return len(self.values())


@dataclass(frozen=True)
class SearchGrid:
    """Launch speeds [m/s], days before launch and launch angles [deg]."""
    speeds: ParameterRange
    days: ParameterRange
    angles: ParameterRange

    @classmethod
    def default(cls) -> "SearchGrid":
        return cls(speeds=ParameterRange(*DEFAULT_SEARCH['speed']),
                   days=ParameterRange(*DEFAULT_SEARCH['days']),
                   angles=ParameterRange(*DEFAULT_SEARCH['angle']))

    def combinations(self) -> List[Tuple[float, float, float]]:
        """(speed, days, angle) triples, speed outermost and angle innermost."""
        return [(speed, days, angle)
                for speed in self.speeds
                for days in self.days
                for angle in self.angles]

    def __len__(self):
        return len(self.speeds) * len(self.days) * len(self.angles)


def take_off_direction(angle: float, departure: Particle, sun: Particle) -> Vector2D:
    """
    Launch direction at ``angle`` degrees from the tangential towards the normal.

    The normal points from the Sun to the departure body and the tangential
    is the normal rotated 90 degrees counter-clockwise.
    """
    normal = (departure.position - sun.position).normalized()
    tangential = normal.perpendicular()
    theta = math.radians(angle)
    return tangential * math.cos(theta) + normal * math.sin(theta)


# ========== SINGLE TRANSFER ==========
@dataclass(frozen=True)
class TransferResult:
    """
    Outcome of one launch.

    Attributes:
        speed: launch speed [m/s]
        days_to_launch: days waited before launching
        angle: launch angle [deg], None for the tangential default
        dt: integration step [s]
        ft: flight time budget [s]
        mission: Mission flown
        direction: launch direction actually used
        landed_to: body the ship crashed into, None if it never touched one
        record: closest approach to the target
        steps: integration steps performed
        elapsed: wall time of the run [s]
    """
    speed: float
    days_to_launch: float
    angle: Optional[float]
    dt: float
    ft: float
    mission: Mission
    direction: Optional[Vector2D]
    landed_to: Optional[ParticleType]
    record: MinDistanceRecord
    steps: int = 0
    elapsed: float = 0.0

    @property
    def reached(self) -> bool:
        """Whether the ship landed on its target."""
        return self.landed_to is self.mission.target

    @property
    def distance(self) -> float:
        """Closest surface distance to the target [m]."""
        return self.record.distance_to(self.mission.target)

    def to_record(self):
        return {
            'speed': self.speed,
            'days_to_launch': self.days_to_launch,
            'angle': self.angle,
            'mission': self.mission.value,
            'reached': self.reached,
            'landed_to': self.landed_to.name if self.landed_to else None,
            'distance_to_mars': self.record.distance_to_mars,
            'distance_to_earth': self.record.distance_to_earth,
            'time_of_min_distance': self.record.simulation_time,
            'steps': self.steps,
            'elapsed': self.elapsed,
        }

    def summary(self) -> str:
        direction = ("tangential" if self.direction is None
                     else f"({self.direction.x}, {self.direction.y})")
        lines = [f"dt: {self.dt}",
                 f"Flight time: {self.ft}",
                 f"Take off direction: {direction}",
                 f"Take off angle: {self.angle}",
                 f"Take off speed: {self.speed}",
                 f"Days to take off: {self.days_to_launch}",
                 f"Landed on: {self.landed_to.name if self.landed_to else 'nothing'}",
                 self.record.summary()]
        return "\n".join(lines)


def run_transfer(speed: float, days_to_launch: float, angle: Optional[float] = None,
                 dt: float = DEFAULT_DT, ft: float = DEFAULT_FLIGHT_TIME,
                 mission: Mission = Mission.TO_MARS,
                 trajectory: Optional[Trajectory] = None,
                 output_interval: Optional[int] = None) -> TransferResult:
    """
    Fly a single transfer.

    Parameters:
        speed: launch speed [m/s]
        days_to_launch: days the system evolves before the launch
        angle: launch angle [deg] from the tangential (None: tangential)
        dt: integration step [s]
        ft: flight time budget after launch [s]
        mission: Mission.TO_MARS or Mission.TO_EARTH
        trajectory: if given, snapshots are recorded into it
        output_interval: steps between snapshots (default: config.OUTPUT_INTERVAL)

    Returns:
        TransferResult
    """
    if output_interval is None:
        output_interval = config.OUTPUT_INTERVAL

    with Timer(f"Transfer speed={speed} days={days_to_launch} angle={angle}",
               verbose=False) as timer:
        system = SolarSystem(dt)
        step = 0

        def snapshot(force=False):
            if trajectory is not None and (force or step % output_interval == 0):
                trajectory.record(step, system.time, system.particles)

        snapshot(force=True)
        launch_time = days_to_launch * SECONDS_PER_DAY
        while system.time < launch_time:
            system.evolve_system()
            step += 1
            snapshot()

        direction = None
        if angle is not None:
            direction = take_off_direction(angle, system.body(mission.departure),
                                           system.body(ParticleType.SUN))
        mission.launch(system, speed, direction)

        flight = 0.0
        while flight < ft:
            system.evolve_system()
            step += 1
            flight += dt
            if mission.crashed(system):
                snapshot(force=True)
                break
            snapshot()

    return TransferResult(
        speed=speed, days_to_launch=days_to_launch, angle=angle, dt=dt, ft=ft,
        mission=mission, direction=direction, landed_to=system.ship_landed_to,
        record=system.min_distance_record, steps=step, elapsed=timer.elapsed,
    )


def _run_single_wrapper(args: Tuple[float, float, float, float, float, Mission]) -> TransferResult:
    """
    Module-level wrapper for a single transfer.

    Required because multiprocessing Pool cannot pickle instance methods.
    """
    speed, days, angle, dt, ft, mission = args
    return run_transfer(speed, days, angle, dt=dt, ft=ft, mission=mission)


# ========== SEARCH ==========
@dataclass
class SearchResult:
    """
    Reduction of a search.

    Attributes:
        mission: Mission searched
        reached: every transfer that landed on the target, in grid order
        best: closest transfer among those that did not land on the target
        evaluated: number of transfers folded in
    """
    mission: Mission
    reached: List[TransferResult] = field(default_factory=list)
    best: Optional[TransferResult] = None
    evaluated: int = 0

    def add(self, transfer: TransferResult) -> bool:
        """
        Fold a transfer into the result.

        Returns:
            True if the transfer was kept
        """
        self.evaluated += 1
        if transfer.reached:
            self.reached.append(transfer)
            return True
        if self.best is None or transfer.distance < self.best.distance:
            self.best = transfer
            return True
        return False

    def reports(self) -> List[TransferResult]:
        """Transfers worth reporting: every arrival, then the closest miss."""
        kept = list(self.reached)
        if self.best is not None:
            kept.append(self.best)
        return kept

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([t.to_record() for t in self.reports()])


class TrajectorySearch:
    """
    Grid search of launch windows.

    Transfers are independent, so they may run on a multiprocessing Pool.
    Results are folded into the SearchResult by the calling process only,
    in grid order.

    Parameters:
        grid: SearchGrid (default: SearchGrid.default())
        dt: integration step [s]
        ft: flight time budget per transfer [s]
        mission: Mission to search for
        workers: worker processes (default: config.SEARCH_WORKERS), 1 runs serially
    """

    def __init__(self, grid: Optional[SearchGrid] = None, dt: float = DEFAULT_DT,
                 ft: float = DEFAULT_FLIGHT_TIME, mission: Mission = Mission.TO_MARS,
                 workers: Optional[int] = None):
        if dt <= 0:
            raise ValueError(f"Time step must be positive, got {dt}")
        if ft < 0:
            raise ValueError(f"Flight time must be non-negative, got {ft}")
        self.grid = grid if grid is not None else SearchGrid.default()
        self.dt = dt
        self.ft = ft
        self.mission = mission
        self.workers = workers if workers is not None else config.SEARCH_WORKERS

    def run(self) -> SearchResult:
        args_list = [(speed, days, angle, self.dt, self.ft, self.mission)
                     for speed, days, angle in self.grid.combinations()]
        total = len(args_list)
        result = SearchResult(self.mission)
        logger.info("Starting launch window search: %d transfers on %d workers",
                    total, self.workers)

        if self.workers <= 1:
            self._collect(result, map(_run_single_wrapper, args_list), total)
        else:
            with Pool(processes=self.workers) as pool:
                self._collect(result, pool.imap(_run_single_wrapper, args_list), total)

        logger.info("Search complete: %d of %d transfers reached %s",
                    len(result.reached), total, self.mission.target.name)
        return result

    @staticmethod
    def _collect(result: SearchResult, transfers, total: int):
        for transfer in transfers:
            kept = result.add(transfer)
            if transfer.reached:
                logger.info("[REACHED] - Ship landed on %s (speed=%s, days=%s, angle=%s)",
                            transfer.landed_to.name, transfer.speed,
                            transfer.days_to_launch, transfer.angle)
            elif kept:
                logger.debug("New closest approach %.3e m (speed=%s, days=%s, angle=%s)",
                             transfer.distance, transfer.speed,
                             transfer.days_to_launch, transfer.angle)
            logger.info("Progress: %d / %d", result.evaluated, total)
