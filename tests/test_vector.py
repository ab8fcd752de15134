"""
Test suite for Vector2D.

Tests cover:
- Arithmetic operators
- Norm, normalization and rotation
- Value semantics
"""

import math
import pytest
import numpy as np
from kinesis import Vector2D
from kinesis.vector import ZERO


class TestArithmetic:
    """Test vector algebra."""

    def test_add_and_sub(self):
        """Addition and subtraction are componentwise."""
        a = Vector2D(1.0, 2.0)
        b = Vector2D(0.5, -4.0)
        assert a + b == Vector2D(1.5, -2.0)
        assert a - b == Vector2D(0.5, 6.0)

    def test_scalar_multiplication_both_sides(self):
        """Scalars multiply from either side."""
        v = Vector2D(1.5, -2.0)
        assert v * 2 == Vector2D(3.0, -4.0)
        assert 2 * v == Vector2D(3.0, -4.0)

    def test_division_and_negation(self):
        v = Vector2D(3.0, -6.0)
        assert v / 3 == Vector2D(1.0, -2.0)
        assert -v == Vector2D(-3.0, 6.0)

    def test_adding_non_vector_fails(self):
        """Adding a scalar is not defined."""
        with pytest.raises(TypeError):
            Vector2D(1.0, 1.0) + 1.0


class TestGeometry:
    """Test norm, dot product and directions."""

    def test_norm(self):
        assert Vector2D(3.0, 4.0).norm() == 5.0
        assert ZERO.norm() == 0.0

    def test_dot_and_distance(self):
        a = Vector2D(1.0, 2.0)
        b = Vector2D(4.0, 6.0)
        assert a.dot(b) == 16.0
        assert a.distance_to(b) == 5.0

    def test_normalized_has_unit_length(self):
        """Normalized vector keeps direction with length one."""
        v = Vector2D(-3.0, 4.0).normalized()
        assert v.norm() == pytest.approx(1.0)
        assert v == Vector2D(-0.6, 0.8)

    def test_normalizing_zero_vector_raises(self):
        """Zero vector has no direction."""
        with pytest.raises(ValueError, match="zero-length"):
            ZERO.normalized()

    def test_perpendicular_rotates_counter_clockwise(self):
        """perpendicular() is a +90 degree rotation."""
        v = Vector2D(1.0, 0.0)
        assert v.perpendicular() == Vector2D(-0.0, 1.0)
        assert Vector2D(2.0, 3.0).perpendicular().dot(Vector2D(2.0, 3.0)) == 0.0


class TestValueSemantics:
    """Vectors are immutable values."""

    def test_equality_and_hash(self):
        assert Vector2D(1.0, 2.0) == Vector2D(1.0, 2.0)
        assert hash(Vector2D(1.0, 2.0)) == hash(Vector2D(1.0, 2.0))

    def test_immutable(self):
        v = Vector2D(1.0, 2.0)
        with pytest.raises(AttributeError):
            v.x = 5.0

    def test_numpy_conversion(self):
        """Conversion to and from numpy arrays."""
        v = Vector2D(1.25, -7.5)
        array = v.to_numpy()
        assert isinstance(array, np.ndarray)
        assert Vector2D.from_numpy(array) == v

    def test_from_numpy_rejects_wrong_shape(self):
        with pytest.raises(ValueError, match="shape"):
            Vector2D.from_numpy([1.0, 2.0, 3.0])

    def test_unpacking(self):
        x, y = Vector2D(math.pi, 1.0)
        assert x == math.pi
        assert y == 1.0

    def test_isclose(self):
        """Approximate equality uses the configured tolerances."""
        a = Vector2D(0.1 + 0.2, 1.0)
        assert a != Vector2D(0.3, 1.0)
        assert a.isclose(Vector2D(0.3, 1.0))
        assert not a.isclose(Vector2D(0.3001, 1.0))
        assert a.isclose(Vector2D(0.3001, 1.0), atol=1e-3)
