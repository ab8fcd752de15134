'''Numerical integration package for classical mechanics
Trajectory class definition'''

import math
import numpy as np
import pandas as pd
import plotly.graph_objects as go
from typing import Iterable, Iterator, List, Optional, Tuple
from .config import config
from .particle import IdAllocator, Particle, ParticleType
from .defaults import SOLAR_SYSTEM_LENGTH, SOLAR_SYSTEM_WIDTH
from .vector import Vector2D


class Trajectory:
    """
    Ordered snapshots of a simulation.

    Each frame is (step, time, particles), where particles is the tuple handed
    out by the system at that instant. Particles are immutable, so frames stay
    valid whatever the system does afterwards.

    Attributes:
        name: label used in plots
    """
    # ========== CONSTRUCTION ==========
    def __init__(self, name: Optional[str] = None):
        self._name = name
        self._steps: List[int] = []
        self._times: List[float] = []
        self._frames: List[Tuple[Particle, ...]] = []

    def record(self, step: int, time: float, particles: Iterable[Particle]):
        """Append a snapshot. Times must not decrease."""
        if self._times and time < self._times[-1]:
            raise ValueError(
                f"Snapshot time {time} is before the last recorded time {self._times[-1]}")
        self._steps.append(int(step))
        self._times.append(float(time))
        self._frames.append(tuple(particles))

    # ========== PROPERTY ACCESS ==========
    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def steps(self) -> np.ndarray:
        return np.array(self._steps, dtype=int)

    @property
    def times(self) -> np.ndarray:
        return np.array(self._times, dtype=float)

    @property
    def frames(self) -> Tuple[Tuple[Particle, ...], ...]:
        return tuple(self._frames)

    @property
    def t0(self) -> float:
        self._require_frames()
        return self._times[0]

    @property
    def tf(self) -> float:
        self._require_frames()
        return self._times[-1]

    @property
    def duration(self):
        """Trajectory duration."""
        return self.tf - self.t0

    @property
    def final_particles(self) -> Tuple[Particle, ...]:
        self._require_frames()
        return self._frames[-1]

    @property
    def particle_ids(self) -> List[int]:
        """Ids of every particle seen, in order of first appearance."""
        seen = {}
        for frame in self._frames:
            for particle in frame:
                seen.setdefault(particle.id, None)
        return list(seen)

    def _require_frames(self):
        if not self._frames:
            raise ValueError("Trajectory has no recorded frames")

    # ========== UTILITY METHODS ==========
    def positions(self, particle_id: int) -> np.ndarray:
        """
        Positions of one particle over the frames where it exists.

        Returns:
            Array of shape (n_frames, 2)
        """
        rows = [p.position.to_numpy() for frame in self._frames
                for p in frame if p.id == particle_id]
        if not rows:
            raise KeyError(f"Particle {particle_id} not found in trajectory")
        return np.vstack(rows)

    def particle_history(self, particle_id: int) -> pd.DataFrame:
        """DataFrame of a single particle, one row per frame."""
        df = self.to_dataframe()
        history = df[df['id'] == particle_id].reset_index(drop=True)
        if history.empty:
            raise KeyError(f"Particle {particle_id} not found in trajectory")
        return history

    def to_dataframe(self) -> pd.DataFrame:
        """
        Export trajectory to pandas DataFrame.

        Returns:
            DataFrame with one row per particle per frame, columns 'step',
            'time' followed by the fields of Particle.to_record()
        """
        records = []
        for step, time, frame in zip(self._steps, self._times, self._frames):
            for particle in frame:
                record = {'step': step, 'time': time}
                record.update(particle.to_record())
                records.append(record)
        columns = ['step', 'time', 'id', 'type', 'x', 'y', 'vx', 'vy',
                   'fx', 'fy', 'mass', 'radius', 'age_in_days']
        return pd.DataFrame.from_records(records, columns=columns)

    # ========== SPECIAL METHODS ==========
    def __len__(self):
        return len(self._frames)

    def __iter__(self) -> Iterator[Tuple[int, float, Tuple[Particle, ...]]]:
        return iter(zip(self._steps, self._times, self._frames))

    def __repr__(self):
        if not self._frames:
            return f"Trajectory(name={self._name!r}, frames=0)"
        return (f"Trajectory(name={self._name!r}, frames={len(self)}, "
                f"t0={self.t0}, tf={self.tf})")

    # ========== PLOTTING ==========
    def _sampled(self, n_points: Optional[int]) -> pd.DataFrame:
        """DataFrame restricted to at most n_points frames, last frame kept."""
        if n_points is None:
            n_points = config.DEFAULT_PLOT_POINTS
        if n_points < 2:
            raise ValueError("n_points must be at least 2")
        df = self.to_dataframe()
        stride = max(1, math.ceil(len(self) / n_points))
        keep = set(self._steps[::stride])
        keep.add(self._steps[-1])
        return df[df['step'].isin(keep)]

    def plot(self, n_points: Optional[int] = None,
             traj_color: Optional[str] = None) -> go.Figure:
        """
        Create a plot of the trajectory.

        Single particle trajectories (oscillator runs) are drawn as x(t);
        anything else as the x-y path of every body, colored by type.

        Parameters:
            n_points: maximum number of frames drawn (default: config.DEFAULT_PLOT_POINTS)
            traj_color: color of a single particle line (default: config.DEFAULT_TRAJ_COLOR)

        Returns:
            Plotly Figure object
        """
        self._require_frames()
        df = self._sampled(n_points)
        fig = go.Figure()

        if len(self.particle_ids) == 1:
            fig.add_trace(go.Scatter(
                x=df['time'], y=df['x'],
                mode='lines',
                line=dict(color=traj_color or config.DEFAULT_TRAJ_COLOR, width=2),
                name=self._name or 'Trajectory',
                hovertemplate='t: %{x:.4f}<br>x: %{y:.6f}<extra></extra>'
            ))
            fig.update_layout(xaxis_title='t [s]', yaxis_title='x [m]',
                              title=self._name or 'Oscillator', showlegend=True)
            return fig

        for particle_id, body in df.groupby('id', sort=False):
            type_name = body['type'].iloc[0]
            if type_name == ParticleType.EDGE.name:
                continue
            fig.add_trace(go.Scatter(
                x=body['x'], y=body['y'],
                mode='lines',
                line=dict(color=config.BODY_COLORS.get(type_name, config.DEFAULT_TRAJ_COLOR),
                          width=2),
                name=f"{type_name.capitalize()} ({particle_id})",
                hovertemplate='x: %{x:.3e}<br>y: %{y:.3e}<extra></extra>'
            ))
        fig.update_layout(
            xaxis_title='X [m]', yaxis_title='Y [m]',
            yaxis=dict(scaleanchor='x', scaleratio=1),
            title=self._name or 'Orbital Trajectories',
            showlegend=True
        )
        return fig

    def add_to_plot(self, fig: go.Figure, particle_id: Optional[int] = None,
                    n_points: Optional[int] = None, color: Optional[str] = None,
                    name: Optional[str] = None, **kwargs) -> go.Figure:
        """
        Add one particle of this trajectory to an existing Plotly figure.

        Parameters:
            fig: Existing Plotly Figure object
            particle_id: particle to draw (default: the first one recorded)
            n_points: maximum number of frames drawn
            color: line color (default: config.DEFAULT_TRAJ_COLOR_ADD)
            name: legend name (default: 'Trajectory N')
            **kwargs: Additional arguments passed to Scatter

        Returns:
            Updated Plotly Figure object (same object, modified in place)
        """
        self._require_frames()
        if particle_id is None:
            particle_id = self.particle_ids[0]
        df = self._sampled(n_points)
        df = df[df['id'] == particle_id]
        if df.empty:
            raise KeyError(f"Particle {particle_id} not found in trajectory")

        if name is None:
            n_existing = sum(1 for trace in fig.data if isinstance(trace, go.Scatter))
            name = f'Trajectory {n_existing + 1}'

        single = len(self.particle_ids) == 1
        fig.add_trace(go.Scatter(
            x=df['time'] if single else df['x'],
            y=df['x'] if single else df['y'],
            mode='lines',
            line=dict(color=color or config.DEFAULT_TRAJ_COLOR_ADD, width=2),
            name=name,
            **kwargs
        ))
        return fig


def edge_markers(width: float = SOLAR_SYSTEM_WIDTH, length: float = SOLAR_SYSTEM_LENGTH,
                 ids: Optional[IdAllocator] = None) -> Tuple[Particle, ...]:
    """
    Four massless EDGE particles at (+-width/2, +-length/2).

    The default area is the 1e12 m square drawn around the Sun, Earth and Mars.

    They only bound the drawing area of output layers and never take part in
    the physics.
    """
    if width <= 0 or length <= 0:
        raise ValueError(f"Area must be positive, got {width} x {length}")
    if ids is None:
        ids = IdAllocator()
    corners = [(-1, -1), (-1, 1), (1, -1), (1, 1)]
    return tuple(
        Particle(id=ids.next_id(),
                 position=Vector2D(sx * width / 2, sy * length / 2),
                 mass=0.0,
                 type=ParticleType.EDGE)
        for sx, sy in corners
    )
