"""
Feedback controllers driving the plant simulators.

All controllers implement a standard interface via the Controller base class.
"""

from .base import Controller, ZeroController, reference_value, saturate
from .pid import PIDController
from .lqr import LQRController

__all__ = [
    'Controller',
    'ZeroController',
    'saturate',
    'reference_value',
    'PIDController',
    'LQRController',
]
