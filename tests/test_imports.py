"""Smoke tests to verify package imports work."""

def test_package_imports():
    """Test that all main classes can be imported."""
    from kinesis import (Vector2D, Particle, SolarSystem, Trajectory,
                         OscillatorParams, GearPredictorCorrector, TrajectorySearch)
    assert Vector2D is not None
    assert Particle is not None
    assert SolarSystem is not None
    assert Trajectory is not None
    assert OscillatorParams is not None
    assert GearPredictorCorrector is not None
    assert TrajectorySearch is not None

def test_version_exists():
    """Test that version is defined."""
    import kinesis
    assert hasattr(kinesis, '__version__')
    assert kinesis.__version__ == "0.1.0"

def test_can_create_oscillator():
    """Test basic oscillator creation."""
    from kinesis import OscillatorParams, make_oscillator
    params = OscillatorParams(mass=70, r=1, k=1e4, gamma=100, dt=1e-3, tf=1)
    system = make_oscillator(params, 'verlet')
    assert system.particle.x == 1

def test_can_create_solar_system():
    """Test basic SolarSystem creation."""
    from kinesis import SolarSystem
    system = SolarSystem(dt=100)
    assert len(system.particles) == 3

def test_package_logger_is_silent_by_default():
    """The package logger carries a NullHandler."""
    import logging
    import kinesis
    handlers = logging.getLogger('kinesis').handlers
    assert any(isinstance(h, logging.NullHandler) for h in handlers)
