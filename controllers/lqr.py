"""
Linear Quadratic Regulator (LQR) with reference tracking.

Optimal state-feedback controller for the continuous-time linearization
xdot = A x + B u, minimizing:
    J = ∫ (x'Qx + u'Ru) dt

The gain K = R⁻¹B'P comes from the continuous algebraic Riccati equation
    A'P + PA - PBR⁻¹B'P + Q = 0

A feedforward gain kr makes one output channel track a constant
reference r with zero steady-state error:
    u = u_eq - K (x - x_eq) + kr r,    kr = -1 / (c (A - BK)⁻¹ B)
"""

import numpy as np
from scipy import linalg
from typing import Optional
from .base import Controller, reference_value, saturate


class LQRController(Controller):
    """
    Continuous-time LQR on full state, single tracked channel.

    Uses scipy.linalg.solve_continuous_are for the Riccati solution.
    Requires the true state (or a state estimate), not raw measurements.
    """

    def __init__(self,
                 Q: Optional[np.ndarray] = None,
                 R: Optional[np.ndarray] = None,
                 channel: int = 0,
                 limit: float = np.inf,
                 name: str = "LQR"):
        """
        Initialize LQR controller.

        Args:
            Q: State cost matrix (positive semi-definite)
            R: Input cost matrix (positive definite)
            channel: State index that tracks the reference
            limit: Input saturation
            name: Controller name
        """
        super().__init__(name, limit)
        self._Q = Q
        self._R = R
        self.channel = channel
        self._K = None
        self._P = None
        self._kr = None
        self._x_eq = None
        self._u_eq = None

    def design(self, A: np.ndarray, B: np.ndarray,
               x_eq: Optional[np.ndarray] = None,
               u_eq: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Design LQR for a linear system.

        Args:
            A: State matrix (n x n)
            B: Input matrix (n x m)
            x_eq: Operating state the model was linearized around
            u_eq: Operating input

        Returns:
            K: Optimal feedback gain (m x n)
        """
        n = A.shape[0]
        m = B.shape[1]
        Q = self._Q if self._Q is not None else np.eye(n)
        R = self._R if self._R is not None else np.eye(m)
        self._Q = Q
        self._R = R

        try:
            P = linalg.solve_continuous_are(A, B, Q, R)
        except (np.linalg.LinAlgError, ValueError) as e:
            raise ValueError(f"CARE solution failed, system may not be stabilizable: {e}") from e

        self._P = P
        self._K = np.linalg.solve(R, B.T @ P)

        # Feedforward gain for the tracked channel
        c = np.zeros((1, n))
        c[0, self.channel] = 1.0
        dc_gain = c @ np.linalg.solve(A - B @ self._K, B)
        self._kr = -1.0 / dc_gain[0, 0]

        self._x_eq = np.zeros(n) if x_eq is None else np.asarray(x_eq, dtype=float)
        self._u_eq = np.zeros(m) if u_eq is None else np.atleast_1d(np.asarray(u_eq, dtype=float))

        return self._K

    def design_for_plant(self, plant, x_eq: Optional[np.ndarray] = None,
                         u_eq: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Design LQR on a plant's numerical linearization.

        Args:
            plant: PlantSimulator instance
            x_eq: Equilibrium state (default: zeros)
            u_eq: Equilibrium input (default: zeros)

        Returns:
            K: Optimal gain matrix
        """
        A, B = plant.linearize(x_eq, u_eq)
        return self.design(A, B, x_eq, u_eq)

    def update(self, reference, y: np.ndarray) -> np.ndarray:
        """
        Compute LQR control action.

        Args:
            reference: Reference for the tracked channel
            y: Full state vector

        Returns:
            u: Saturated input
        """
        if self._K is None:
            raise ValueError("Controller not designed. Call design() first.")

        x = np.asarray(y, dtype=float)
        r = reference_value(reference, self.channel)
        u = self._u_eq - self._K @ (x - self._x_eq) + self._kr * r
        return saturate(u, self.limit)

    @property
    def K(self) -> Optional[np.ndarray]:
        """LQR gain matrix."""
        return self._K

    @property
    def kr(self) -> Optional[float]:
        """Reference feedforward gain."""
        return self._kr

    @property
    def P(self) -> Optional[np.ndarray]:
        """CARE solution."""
        return self._P
