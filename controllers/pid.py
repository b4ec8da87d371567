"""
PID controller for sampled plants.

Implements discrete PID on a single output channel:
    u = kp*e + ki*∫e + kd*ė_filtered

The integral uses the trapezoidal rule, the derivative uses a dirty
derivative with bandwidth 1/sigma:
    ẏ[k] = (2σ - Ts)/(2σ + Ts) ẏ[k-1] + 2/(2σ + Ts) (y[k] - y[k-1])

Derivative action is applied on the output, not the error, to avoid
kicks on reference steps. When the output saturates the integrator is
backed off (anti-windup).
"""

import numpy as np
from typing import Optional
from .base import Controller, reference_value, saturate


class PIDController(Controller):
    """
    Single-channel PID controller with dirty derivative and anti-windup.

    Works on measurements (noisy outputs only) or on full state; when a
    rate channel is given the derivative is read directly from y.
    """

    def __init__(self,
                 kp: float = 1.0,
                 ki: float = 0.0,
                 kd: float = 0.0,
                 Ts: float = 0.01,
                 channel: int = 0,
                 rate_channel: Optional[int] = None,
                 sigma: float = 0.05,
                 limit: float = np.inf,
                 name: str = "PID"):
        """
        Initialize PID controller.

        Args:
            kp: Proportional gain
            ki: Integral gain
            kd: Derivative gain
            Ts: Sample period of update() calls
            channel: Index of the controlled channel in y
            rate_channel: Index of its rate in y (None to differentiate)
            sigma: Dirty-derivative time constant
            limit: Output saturation
            name: Controller name
        """
        super().__init__(name, limit)
        self.kp = kp
        self.ki = ki
        self.kd = kd
        self.Ts = Ts
        self.channel = channel
        self.rate_channel = rate_channel
        self.sigma = sigma

        self._beta = (2.0 * sigma - Ts) / (2.0 * sigma + Ts)
        self.reset()

    def reset(self) -> None:
        """Reset integrator and differentiator state."""
        self._integrator = 0.0
        self._error_prev = 0.0
        self._ydot = 0.0
        self._y_prev = None

    def update(self, reference, y: np.ndarray) -> np.ndarray:
        """
        Compute PID control action.

        Args:
            reference: Reference for the controlled channel
            y: State or measurement vector

        Returns:
            u: Saturated input, shape (1,)
        """
        y = np.atleast_1d(np.asarray(y, dtype=float))
        r = reference_value(reference, self.channel)
        value = y[self.channel]
        error = r - value

        # Trapezoidal integration of the error
        self._integrator += self.Ts / 2.0 * (error + self._error_prev)

        # Derivative of the output
        if self.rate_channel is not None:
            self._ydot = y[self.rate_channel]
        elif self._y_prev is not None:
            self._ydot = (self._beta * self._ydot
                          + (1.0 - self._beta) / self.Ts * (value - self._y_prev))

        u_unsat = self.kp * error + self.ki * self._integrator - self.kd * self._ydot
        u = float(saturate(u_unsat, self.limit))

        # Anti-windup
        if self.ki != 0.0:
            self._integrator += self.Ts / self.ki * (u - u_unsat)

        self._error_prev = error
        self._y_prev = value
        return np.array([u])
