"""
Global Configuration for Kinesis Package
========================================

This module provides package-wide configuration settings that users can modify
to control numerical tolerances, validation behavior, output sampling and
default plotting options.

Examples
--------
View current configuration:

>>> import kinesis
>>> print(kinesis.config)

Modify settings:

>>> kinesis.config.OUTPUT_INTERVAL = 100  # Record every 100th step
>>> kinesis.config.SEARCH_WORKERS = 4  # Parallel launch window search

Reset to defaults:

>>> kinesis.config.reset()

Temporarily modify settings:

>>> with kinesis.temp_config(STRICT_VALIDATION=False):
...     # Invalid oscillator parameters only warn in this block
...     params = kinesis.OscillatorParams(mass=-1, r=1, k=1, gamma=0, dt=1e-3, tf=1)

Notes
-----
These settings affect package-wide behavior. Modifying them will impact
all subsequent operations until changed again or reset.
"""

from dataclasses import dataclass, field
from contextlib import contextmanager
from typing import Dict


def _default_body_colors() -> Dict[str, str]:
    return {
        'SUN': 'gold',
        'EARTH': 'royalblue',
        'MARS': 'firebrick',
        'SHIP': 'black',
        'COMMON': 'green',
        'EDGE': 'lightgray',
    }


@dataclass
class KinesisConfig:
    """
    Global configuration for Kinesis package.

    Attributes
    ----------
    EQUALITY_RTOL : float
        Relative tolerance for floating-point equality comparisons.
        Default: 1e-12
    EQUALITY_ATOL : float
        Absolute tolerance for floating-point equality comparisons.
        Default: 1e-14
    STRICT_VALIDATION : bool
        If True, validation failures raise exceptions.
        If False, validation failures issue warnings.
        Default: True
    OUTPUT_INTERVAL : int
        Number of integration steps between two recorded snapshots.
        Default: 10
    SEARCH_WORKERS : int
        Number of worker processes used by the launch window search.
        1 runs every transfer in the calling process.
        Default: 1
    DEFAULT_PLOT_POINTS : int
        Maximum number of frames drawn per body in trajectory plots.
        Default: 1000
    DEFAULT_TRAJ_COLOR : str
        Default color for trajectory lines in plots.
        Default: 'red'
    BODY_COLORS : dict
        Line color per particle type name.
    """

    # Numerical tolerance for equality comparisons
    EQUALITY_RTOL: float = 1e-12
    EQUALITY_ATOL: float = 1e-14

    # Validation behavior
    STRICT_VALIDATION: bool = True

    # Simulation defaults
    OUTPUT_INTERVAL: int = 10
    SEARCH_WORKERS: int = 1

    # Plotting defaults
    DEFAULT_PLOT_POINTS: int = 1000
    DEFAULT_TRAJ_COLOR: str = 'red'
    DEFAULT_TRAJ_COLOR_ADD: str = 'blue'
    BODY_COLORS: Dict[str, str] = field(default_factory=_default_body_colors)

    def reset(self):
        """
        Reset all configuration values to package defaults.

        Examples
        --------
        >>> import kinesis
        >>> kinesis.config.OUTPUT_INTERVAL = 1  # Modify
        >>> kinesis.config.reset()  # Back to defaults
        >>> kinesis.config.OUTPUT_INTERVAL
        10
        """
        defaults = KinesisConfig()
        for key in self.__dataclass_fields__:
            setattr(self, key, getattr(defaults, key))

    def __repr__(self):
        """Return formatted string showing all configuration values."""
        lines = ["KinesisConfig:"]
        lines.append("  Numerical Tolerances:")
        lines.append(f"    EQUALITY_RTOL = {self.EQUALITY_RTOL}")
        lines.append(f"    EQUALITY_ATOL = {self.EQUALITY_ATOL}")
        lines.append("  Behavior:")
        lines.append(f"    STRICT_VALIDATION = {self.STRICT_VALIDATION}")
        lines.append("  Simulation:")
        lines.append(f"    OUTPUT_INTERVAL = {self.OUTPUT_INTERVAL}")
        lines.append(f"    SEARCH_WORKERS = {self.SEARCH_WORKERS}")
        lines.append("  Plotting:")
        lines.append(f"    DEFAULT_PLOT_POINTS = {self.DEFAULT_PLOT_POINTS}")
        lines.append(f"    DEFAULT_TRAJ_COLOR = '{self.DEFAULT_TRAJ_COLOR}'")
        lines.append(f"    DEFAULT_TRAJ_COLOR_ADD = '{self.DEFAULT_TRAJ_COLOR_ADD}'")
        lines.append(f"    BODY_COLORS = {self.BODY_COLORS}")
        return "\n".join(lines)


# Global configuration instance
config = KinesisConfig()


@contextmanager
def temp_config(**kwargs):
    """
    Context manager for temporarily modifying configuration values.

    Configuration is automatically restored when the context exits,
    even if an exception occurs.

    Parameters
    ----------
    **kwargs
        Configuration attributes to temporarily modify.

    Examples
    --------
    >>> import kinesis
    >>> with kinesis.temp_config(OUTPUT_INTERVAL=1, SEARCH_WORKERS=2):
    ...     result = kinesis.TrajectorySearch(grid).run()
    >>> # Original config restored here
    >>> kinesis.config.OUTPUT_INTERVAL
    10

    Raises
    ------
    AttributeError
        If an invalid configuration attribute is specified.
    """
    old_values = {}
    for key, value in kwargs.items():
        if not hasattr(config, key):
            raise AttributeError(
                f"KinesisConfig has no attribute '{key}'. "
                f"Valid attributes: {list(config.__dataclass_fields__.keys())}"
            )
        old_values[key] = getattr(config, key)
        setattr(config, key, value)

    try:
        yield config
    finally:
        for key, value in old_values.items():
            setattr(config, key, value)
