"""
Continuous-time plant models with fixed-step integration.

Each plant owns its randomized parameters and true state, propagates the
state with an explicit Runge-Kutta scheme and returns noisy measurements.
"""

from .errors import (InvalidConfigurationError, SimulationError,
                     SingularDynamicsError, NonFiniteStateError)
from .parameters import RandomizedParameterSet, spawn_generators
from .integrator import Scheme, integrate
from .linalg import solve_small
from .config import PlantConfig, load_config
from .base import PlantSimulator
from .pendulum import CartPendulum
from .satellite import Satellite

__all__ = [
    'InvalidConfigurationError',
    'SimulationError',
    'SingularDynamicsError',
    'NonFiniteStateError',
    'RandomizedParameterSet',
    'spawn_generators',
    'Scheme',
    'integrate',
    'solve_small',
    'PlantConfig',
    'load_config',
    'PlantSimulator',
    'CartPendulum',
    'Satellite',
]
