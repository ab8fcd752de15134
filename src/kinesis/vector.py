'''Numerical integration package for classical mechanics
Vector2D class definition'''

import math
import numpy as np
from dataclasses import dataclass
from typing import Optional
from .config import config


@dataclass(frozen=True)
class Vector2D:
    """
    Immutable planar vector.

    Attributes:
        x: first component
        y: second component
    """
    x: float = 0.0
    y: float = 0.0

    # ========== ARITHMETIC ==========
    def __add__(self, other: "Vector2D") -> "Vector2D":
        if not isinstance(other, Vector2D):
            return NotImplemented
        return Vector2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2D") -> "Vector2D":
        if not isinstance(other, Vector2D):
            return NotImplemented
        return Vector2D(self.x - other.x, self.y - other.y)

    def __neg__(self) -> "Vector2D":
        return Vector2D(-self.x, -self.y)

    def __mul__(self, scalar: float) -> "Vector2D":
        if isinstance(scalar, Vector2D):
            return NotImplemented
        return Vector2D(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Vector2D":
        if isinstance(scalar, Vector2D):
            return NotImplemented
        return Vector2D(self.x / scalar, self.y / scalar)

    # ========== GEOMETRY ==========
    def norm(self) -> float:
        """Euclidean length."""
        return math.hypot(self.x, self.y)

    def dot(self, other: "Vector2D") -> float:
        return self.x * other.x + self.y * other.y

    def distance_to(self, other: "Vector2D") -> float:
        return (self - other).norm()

    def normalized(self) -> "Vector2D":
        """
        Unit vector with the same direction.

        Raises:
            ValueError: If the vector has zero length
        """
        length = self.norm()
        if length == 0:
            raise ValueError("Cannot normalize a zero-length vector")
        return Vector2D(self.x / length, self.y / length)

    def perpendicular(self) -> "Vector2D":
        """Vector rotated 90 degrees counter-clockwise."""
        return Vector2D(-self.y, self.x)

    def isclose(self, other: "Vector2D", rtol: Optional[float] = None,
                atol: Optional[float] = None) -> bool:
        """
        Component-wise approximate equality.

        Tolerances default to config.EQUALITY_RTOL and config.EQUALITY_ATOL.
        """
        if rtol is None:
            rtol = config.EQUALITY_RTOL
        if atol is None:
            atol = config.EQUALITY_ATOL
        return bool(np.allclose(self.to_numpy(), other.to_numpy(), rtol=rtol, atol=atol))

    # ========== CONVERSION ==========
    def to_numpy(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)

    @classmethod
    def from_numpy(cls, array) -> "Vector2D":
        array = np.asarray(array, dtype=float)
        if array.shape != (2,):
            raise ValueError(f"Expected array of shape (2,), got {array.shape}")
        return cls(float(array[0]), float(array[1]))

    def __iter__(self):
        yield self.x
        yield self.y

    def __repr__(self):
        return f"Vector2D({self.x!r}, {self.y!r})"


ZERO = Vector2D(0.0, 0.0)
