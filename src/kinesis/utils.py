"""
Timing and validation helpers shared by the simulation modules.
"""

from time import perf_counter
import logging
import warnings
from typing import Type
from .config import config

logger = logging.getLogger(__name__)


class Timer:
    """
    Wall clock timer for a block of simulation work.

    ``elapsed`` holds the duration in seconds once the block exits. With
    ``verbose`` the duration is also logged at ``level``, which is how a
    search reports slow transfer runs.
    """

    def __init__(self, name: str = "Operation", verbose: bool = True,
                 level: int = logging.INFO):
        self.name = name
        self.verbose = verbose
        self.level = level
        self.elapsed = None

    def __enter__(self):
        self.start = perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed = perf_counter() - self.start
        if self.verbose:
            logger.log(self.level, "%s: %.6f s", self.name, self.elapsed)

    def __repr__(self):
        if self.elapsed is None:
            return f"Timer({self.name!r}, running)"
        return f"Timer({self.name!r}, elapsed={self.elapsed:.6f}s)"


def validation_error(message: str, error_class: Type[Exception] = ValueError):
    """
    Reject invalid simulation input.

    Raises ``error_class`` while ``config.STRICT_VALIDATION`` is set, which
    is the default. In lenient mode a UserWarning is issued instead and the
    caller carries on with the value it was given.
    """
    if config.STRICT_VALIDATION:
        raise error_class(message)
    warnings.warn(message, UserWarning, stacklevel=2)
