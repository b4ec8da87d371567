"""
Satellite with a flexible solar panel.

The rigid body (inertia Js) is driven by a torque τ from its thrusters;
the panel (inertia Jp) is attached through a torsional spring k and
damper b:

    Js θ̈ = τ - b(θ̇ - φ̇) - k(θ - φ)
    Jp φ̈ =   - b(φ̇ - θ̇) - k(φ - θ)

Parameters: Js=5.0 kg m², Jp=1.0 kg m², k=0.15 N m, b=0.05 N m s
"""

import numpy as np

from .base import PlantSimulator
from .linalg import solve_small


def equations_of_motion(x: np.ndarray, u: np.ndarray, p) -> np.ndarray:
    """
    Satellite attitude dynamics.

    Args:
        x: State [θ, φ, θ̇, φ̇]
        u: Input [τ]
        p: Parameters with Js, Jp, k, b

    Returns:
        xdot: [θ̇, φ̇, θ̈, φ̈]
    """
    theta, phi, thetadot, phidot = x
    tau = u[0]

    M = np.array([[p.Js, 0.0],
                  [0.0, p.Jp]])
    C = np.array([tau - p.b * (thetadot - phidot) - p.k * (theta - phi),
                  -p.b * (phidot - thetadot) - p.k * (phi - theta)])

    thetaddot, phiddot = solve_small(M, C)
    return np.array([thetadot, phidot, thetaddot, phiddot])


def outputs(x: np.ndarray) -> np.ndarray:
    """Body and panel angles."""
    return x[:2].copy()


class Satellite(PlantSimulator):
    """
    Satellite attitude plant.

    State: x = [θ, φ, θ̇, φ̇]
    Input: u = [τ] (torque on body, N m)
    Output: y = [θ, φ] with noise std [0.001 rad, 0.001 rad]
    """

    name = 'satellite'
    n_states = 4
    n_inputs = 1
    n_outputs = 2
    nominal = {'Js': 5.0, 'Jp': 1.0, 'k': 0.15, 'b': 0.05}
    noise_std = (0.001, 0.001)
    state_labels = ('theta (rad)', 'phi (rad)', 'thetadot (rad/s)', 'phidot (rad/s)')
    input_labels = ('tau (N m)',)

    equations_of_motion = staticmethod(equations_of_motion)
    outputs = staticmethod(outputs)

    def angular_momentum(self, x=None) -> float:
        """Total angular momentum Js θ̇ + Jp φ̇ (conserved for τ = 0)."""
        x = self._state if x is None else np.asarray(x, dtype=float)
        return float(self.params.Js * x[2] + self.params.Jp * x[3])
