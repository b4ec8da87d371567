"""
Exceptions raised by plant construction and propagation.

InvalidConfigurationError is raised before any stepping occurs.
SingularDynamicsError and NonFiniteStateError are fatal numerical
failures: they carry the plant name, the update index and the simulated
time at which they occurred.
"""

from typing import Optional


class InvalidConfigurationError(ValueError):
    """Nominal parameters or initial state are missing or malformed."""


class SimulationError(RuntimeError):
    """
    Base class for unrecoverable numerical failures during an update.

    Attributes:
        plant: Name of the plant that failed (None until annotated)
        step: Index of the failing update call
        time: Simulated time at the start of the failing step
    """

    def __init__(self, message: str, plant: Optional[str] = None,
                 step: Optional[int] = None, time: Optional[float] = None):
        super().__init__(message)
        self.message = message
        self.plant = plant
        self.step = step
        self.time = time

    def annotate(self, plant: str, step: int, time: float) -> 'SimulationError':
        """Attach plant/step context and return self for re-raising."""
        self.plant = plant
        self.step = step
        self.time = time
        return self

    def __str__(self) -> str:
        if self.plant is None:
            return self.message
        return (f"{self.plant}: {self.message} "
                f"(step {self.step}, t={self.time:.4f} s)")


class SingularDynamicsError(SimulationError):
    """Mass/inertia matrix is numerically singular during the linear solve."""


class NonFiniteStateError(SimulationError):
    """Integration produced NaN or Inf in the next state."""
