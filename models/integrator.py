"""
Fixed-step explicit Runge-Kutta integration.

Advances x' = f(x, u) by exactly one step Ts with the input held
constant over the step:

    RK1:  x+ = x + Ts * F1
    RK2:  x+ = x + Ts/6 * (F1 + F2)
    RK4:  x+ = x + Ts/6 * (F1 + 2 F2 + 2 F3 + F4)

with F1 = f(x, u), F2 = f(x + Ts/2 F1, u), F3 = f(x + Ts/2 F2, u),
F4 = f(x + Ts F3, u).

Note: the RK2 weighting Ts/6 * (F1 + F2) is kept deliberately. It is
not the midpoint rule (x + Ts * F2): as Ts -> 0 it follows x' = f/3
rather than x' = f.
"""

from enum import Enum
from typing import Callable, Union

import numpy as np

Derivative = Callable[[np.ndarray, np.ndarray], np.ndarray]


class Scheme(Enum):
    """Closed set of supported fixed-step schemes."""
    RK1 = 'RK1'
    RK2 = 'RK2'
    RK4 = 'RK4'

    @classmethod
    def parse(cls, value: Union['Scheme', str]) -> 'Scheme':
        """Accept a Scheme or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            valid = ', '.join(s.value for s in cls)
            raise ValueError(f"Unknown integration scheme {value!r} (expected one of {valid})") from None


def rk1_step(f: Derivative, x: np.ndarray, u: np.ndarray, Ts: float) -> np.ndarray:
    """Explicit Euler."""
    return x + Ts * f(x, u)


def rk2_step(f: Derivative, x: np.ndarray, u: np.ndarray, Ts: float) -> np.ndarray:
    """Two-stage update with Ts/6 * (F1 + F2) weighting."""
    F1 = f(x, u)
    F2 = f(x + Ts / 2 * F1, u)
    return x + Ts / 6 * (F1 + F2)


def rk4_step(f: Derivative, x: np.ndarray, u: np.ndarray, Ts: float) -> np.ndarray:
    """Classical four-stage Runge-Kutta."""
    F1 = f(x, u)
    F2 = f(x + Ts / 2 * F1, u)
    F3 = f(x + Ts / 2 * F2, u)
    F4 = f(x + Ts * F3, u)
    return x + Ts / 6 * (F1 + 2 * F2 + 2 * F3 + F4)


_STEPS = {
    Scheme.RK1: rk1_step,
    Scheme.RK2: rk2_step,
    Scheme.RK4: rk4_step,
}


def integrate(scheme: Union[Scheme, str], x: np.ndarray, u: np.ndarray,
              f: Derivative, Ts: float) -> np.ndarray:
    """
    Advance the state by one step of size Ts.

    Args:
        scheme: Integration scheme
        x: Current state
        u: Input held constant over the step
        f: Derivative function f(x, u) -> xdot
        Ts: Step size (seconds)

    Returns:
        x_next: State after one step (new array, x is not modified)
    """
    step = _STEPS[Scheme.parse(scheme)]
    x = np.asarray(x, dtype=float)
    u = np.atleast_1d(np.asarray(u, dtype=float))
    return step(f, x, u, Ts)
