"""
Base controller interface.

All controllers implement update(reference, y) -> u, where y is either the
true state or the measured outputs of the plant, depending on how the
simulation loop is wired.
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Optional


def saturate(u: np.ndarray, limit: float) -> np.ndarray:
    """Clip each input channel to [-limit, limit]."""
    return np.clip(u, -limit, limit)


def reference_value(reference, channel: int) -> float:
    """
    Reference for one channel.

    A scalar (or one-element) reference applies to whichever channel is
    tracked; a vector reference holds one entry per feedback channel.
    """
    r = np.asarray(reference, dtype=float).reshape(-1)
    if r.size == 1:
        return float(r[0])
    if not 0 <= channel < r.size:
        raise ValueError(f"Reference of length {r.size} has no entry for channel {channel}")
    return float(r[channel])


class Controller(ABC):
    """
    Abstract base class for all controllers.

    Attributes:
        name: Human-readable controller name
        limit: Symmetric input saturation (inf for none)
    """

    def __init__(self, name: str = "BaseController", limit: float = np.inf):
        """
        Initialize controller.

        Args:
            name: Controller identifier for logging/plotting
            limit: Input saturation magnitude
        """
        self.name = name
        self.limit = limit

    @abstractmethod
    def update(self, reference, y: np.ndarray) -> np.ndarray:
        """
        Compute the next input.

        Args:
            reference: Scalar reference, or one entry per feedback channel
            y: Plant state or measurement vector

        Returns:
            u: Finite input vector of the plant's input dimension
        """
        pass

    def reset(self) -> None:
        """Reset controller memory (integrators, filters)."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"


class ZeroController(Controller):
    """Open loop: always returns zero input."""

    def __init__(self, n_inputs: int = 1, name: str = "Open loop"):
        super().__init__(name)
        self.n_inputs = n_inputs

    def update(self, reference, y: Optional[np.ndarray] = None) -> np.ndarray:
        return np.zeros(self.n_inputs)
