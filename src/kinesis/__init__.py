"""
Kinesis: Fixed-Step Integration of Classical Mechanics

A Python package for integrating damped harmonic oscillators with Euler,
Verlet, Beeman and Gear predictor-corrector methods, and for searching
Earth-Mars transfer windows with an N-body Sun, Earth and Mars model.
"""

import logging

# Core classes
from .vector import Vector2D
from .particle import Particle, ParticleType, IdAllocator
from .integrators import (IntegrationMethod, EulerIntegration, VerletIntegration,
                          BeemanIntegration, AnalyticIntegration, get_method)
from .gear import GearSystemData, Gear5SystemData, GearPredictorCorrector
from .oscillator import (OscillatorParams, DampedOscillator, GearOscillator,
                         make_oscillator, run_oscillator)
from .solar import SolarSystem, MinDistanceRecord, gravitational_force
from .trajectory import Trajectory, Trajectory as Traj, edge_markers
from .search import (Mission, ParameterRange, SearchGrid, SearchResult,
                     TrajectorySearch, TransferResult, run_transfer, take_off_direction)

# Configuration
from .config import config, temp_config

# Package metadata
__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Define what gets imported with "from kinesis import *"
__all__ = [
    # Classes
    "Vector2D",
    "Particle",
    "ParticleType",
    "IdAllocator",
    "IntegrationMethod",
    "EulerIntegration",
    "VerletIntegration",
    "BeemanIntegration",
    "AnalyticIntegration",
    "GearSystemData",
    "Gear5SystemData",
    "GearPredictorCorrector",
    "OscillatorParams",
    "DampedOscillator",
    "GearOscillator",
    "SolarSystem",
    "MinDistanceRecord",
    "Trajectory",
    "Mission",
    "ParameterRange",
    "SearchGrid",
    "SearchResult",
    "TrajectorySearch",
    "TransferResult",
    # Functions
    "get_method",
    "make_oscillator",
    "run_oscillator",
    "gravitational_force",
    "edge_markers",
    "run_transfer",
    "take_off_direction",
    # Abbreviations
    "Traj",
    # Configuration
    "config",
    "temp_config",
]
