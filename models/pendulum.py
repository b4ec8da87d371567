"""
Inverted pendulum on a cart.

A thin rod of mass m1 and length ell hinged to a cart of mass m2 that
slides with viscous friction b under a horizontal force F:

    [m1+m2,              m1 ell/2 cos θ] [z̈]   [m1 ell/2 θ̇² sin θ + F - b ż]
    [m1 ell/2 cos θ,     m1 ell²/3     ] [θ̈] = [m1 g ell/2 sin θ           ]

θ is measured from the upright position.

Parameters: m1=0.25 kg, m2=1.0 kg, ell=0.5 m, b=0.05 Ns/m, g=9.8 m/s²
"""

import numpy as np

from .base import PlantSimulator
from .linalg import solve_small


def equations_of_motion(x: np.ndarray, u: np.ndarray, p) -> np.ndarray:
    """
    Cart-pendulum dynamics.

    Args:
        x: State [z, θ, ż, θ̇]
        u: Input [F]
        p: Parameters with m1, m2, ell, b, g

    Returns:
        xdot: [ż, θ̇, z̈, θ̈]
    """
    z, theta, zdot, thetadot = x
    F = u[0]

    s, c = np.sin(theta), np.cos(theta)
    half = p.m1 * p.ell / 2.0

    M = np.array([[p.m1 + p.m2, half * c],
                  [half * c, p.m1 * p.ell**2 / 3.0]])
    C = np.array([half * thetadot**2 * s + F - p.b * zdot,
                  half * p.g * s])

    zddot, thetaddot = solve_small(M, C)
    return np.array([zdot, thetadot, zddot, thetaddot])


def outputs(x: np.ndarray) -> np.ndarray:
    """Cart position and rod angle."""
    return x[:2].copy()


class CartPendulum(PlantSimulator):
    """
    Cart-pendulum plant.

    State: x = [z, θ, ż, θ̇]
    Input: u = [F] (force on cart, N)
    Output: y = [z, θ] with noise std [0.01 m, 0.001 rad]
    """

    name = 'cart_pendulum'
    n_states = 4
    n_inputs = 1
    n_outputs = 2
    nominal = {'m1': 0.25, 'm2': 1.0, 'ell': 0.5, 'b': 0.05, 'g': 9.8}
    exempt = ('g',)
    noise_std = (0.01, 0.001)
    state_labels = ('z (m)', 'theta (rad)', 'zdot (m/s)', 'thetadot (rad/s)')
    input_labels = ('F (N)',)

    equations_of_motion = staticmethod(equations_of_motion)
    outputs = staticmethod(outputs)

    def energy(self, x=None) -> float:
        """Total mechanical energy, zero potential at the hinge."""
        x = self._state if x is None else np.asarray(x, dtype=float)
        _, theta, zdot, thetadot = x
        p = self.params
        # Rod center of mass velocity
        vx = zdot + p.ell / 2.0 * thetadot * np.cos(theta)
        vy = -p.ell / 2.0 * thetadot * np.sin(theta)
        kinetic = (0.5 * p.m2 * zdot**2
                   + 0.5 * p.m1 * (vx**2 + vy**2)
                   + 0.5 * (p.m1 * p.ell**2 / 12.0) * thetadot**2)
        potential = p.m1 * p.g * p.ell / 2.0 * np.cos(theta)
        return float(kinetic + potential)
