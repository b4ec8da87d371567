"""
Base class for continuous-time plant simulators.

Provides the standard interface for all plants driven by an external
controller: the true state is propagated with a fixed-step Runge-Kutta
scheme and only noisy measurements are returned to the caller.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

import numpy as np

from .config import PlantConfig
from .errors import NonFiniteStateError, SimulationError
from .integrator import integrate
from .parameters import RandomizedParameterSet

logger = logging.getLogger(__name__)


class PlantSimulator(ABC):
    """
    Abstract base class for plant simulators.

    All plants integrate the continuous-time dynamics

        xdot = f(x, u; p)
        y    = h(x) + v,    v ~ N(0, diag(noise_std^2))

    where p is drawn once at construction from the nominal parameters.

    Class attributes set by subclasses:
        name: Plant identifier used in log and error messages
        n_states, n_inputs, n_outputs: Dimensions
        nominal: Default nominal parameter values
        exempt: Parameters that are never perturbed
        noise_std: Measurement noise standard deviation per output
        state_labels, input_labels: Labels for plotting

    Attributes:
        params: Realized parameters (RandomizedParameterSet)
        Ts: Sample period (seconds)
        scheme: Integration scheme
        steps: Number of completed update() calls
    """

    name: str = 'plant'
    n_states: int
    n_inputs: int
    n_outputs: int
    nominal: Dict[str, float] = {}
    exempt: Tuple[str, ...] = ()
    noise_std: Tuple[float, ...] = ()
    state_labels: Tuple[str, ...] = ()
    input_labels: Tuple[str, ...] = ()

    def __init__(self, config: Optional[PlantConfig] = None,
                 rng: Optional[np.random.Generator] = None,
                 seed: Optional[int] = None):
        """
        Initialize plant.

        Args:
            config: Nominal configuration (defaults to default_config())
            rng: Random number generator used for parameter draws and noise
            seed: Seed for a new generator (ignored if rng is given)
        """
        if config is None:
            config = self.default_config()
        config.require(tuple(self.nominal), self.n_states, plant=self.name)

        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.Ts = config.Ts
        self.scheme = config.scheme
        self.params = RandomizedParameterSet(
            {k: config.params[k] for k in self.nominal},
            alpha=config.uncertainty_alpha,
            exempt=self.exempt,
            rng=self.rng)

        self._state = np.array(config.initial_state, dtype=float)
        self.steps = 0

        logger.debug("Constructed %s: Ts=%g, scheme=%s, params=%r",
                     self.name, self.Ts, self.scheme.value, self.params)

    @classmethod
    def default_config(cls, **overrides) -> PlantConfig:
        """
        Textbook configuration of this plant.

        Args:
            **overrides: Nominal parameters or PlantConfig fields to replace
                (e.g. m1=0.3, Ts=0.005, scheme='RK1', uncertainty_alpha=0.0)
        """
        config = PlantConfig(params=dict(cls.nominal),
                             initial_state=(0.0,) * cls.n_states,
                             name=cls.name)
        return config.with_overrides(**overrides)

    @staticmethod
    @abstractmethod
    def equations_of_motion(x: np.ndarray, u: np.ndarray,
                            p: RandomizedParameterSet) -> np.ndarray:
        """
        Continuous-time dynamics xdot = f(x, u; p).

        Args:
            x: State vector
            u: Input vector
            p: Physical parameters

        Returns:
            xdot: State derivative, same ordering as x
        """

    @staticmethod
    @abstractmethod
    def outputs(x: np.ndarray) -> np.ndarray:
        """Noise-free measured channels of x."""

    def f(self, x: np.ndarray, u: np.ndarray) -> np.ndarray:
        """Dynamics evaluated at this instance's realized parameters."""
        return self.equations_of_motion(x, u, self.params)

    def h(self, x: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Noisy measurement of x (current state by default).

        Every call makes a fresh, independent noise draw.
        """
        if x is None:
            x = self._state
        y = np.asarray(self.outputs(np.asarray(x, dtype=float)), dtype=float)
        return y + self.rng.normal(0.0, self.noise_std)

    def update(self, u) -> np.ndarray:
        """
        Propagate the dynamics by one sample period.

        The state is only replaced once the step completed with a finite
        result; on failure it stays at its last good value.

        Args:
            u: Input held over the step

        Returns:
            y: Noisy measurement of the new state

        Raises:
            ValueError: input does not have n_inputs entries
            SingularDynamicsError: mass matrix singular during a stage
            NonFiniteStateError: integration produced NaN or Inf
        """
        u = np.atleast_1d(np.asarray(u, dtype=float))
        if u.shape != (self.n_inputs,):
            raise ValueError(f"{self.name}: expected input of shape ({self.n_inputs},), "
                             f"got {u.shape}")
        try:
            x_next = integrate(self.scheme, self._state, u, self.f, self.Ts)
            if not np.all(np.isfinite(x_next)):
                raise NonFiniteStateError(f"non-finite state {x_next} for input {u}")
        except SimulationError as e:
            e.annotate(self.name, self.steps, self.time)
            logger.debug("Step rejected: %s", e)
            raise

        self._state = x_next
        self.steps += 1
        return self.h()

    @property
    def state(self) -> np.ndarray:
        """Copy of the true state."""
        return self._state.copy()

    @property
    def time(self) -> float:
        """Simulated time since construction."""
        return self.steps * self.Ts

    def linearize(self, x_eq: Optional[np.ndarray] = None,
                  u_eq: Optional[np.ndarray] = None,
                  eps: float = 1e-6) -> Tuple[np.ndarray, np.ndarray]:
        """
        Jacobians of the continuous dynamics around an operating point.

            xdot ~ A @ (x - x_eq) + B @ (u - u_eq) + f(x_eq, u_eq)

        Uses forward differences at the realized parameters.

        Args:
            x_eq: Operating state (default: zeros)
            u_eq: Operating input (default: zeros)
            eps: Finite-difference step

        Returns:
            A: State matrix (n_states x n_states)
            B: Input matrix (n_states x n_inputs)
        """
        x_eq = np.zeros(self.n_states) if x_eq is None else np.asarray(x_eq, dtype=float)
        u_eq = np.zeros(self.n_inputs) if u_eq is None else np.atleast_1d(np.asarray(u_eq, dtype=float))

        A = np.zeros((self.n_states, self.n_states))
        B = np.zeros((self.n_states, self.n_inputs))
        f0 = self.f(x_eq, u_eq)

        # df/dx
        for i in range(self.n_states):
            x_plus = x_eq.copy()
            x_plus[i] += eps
            A[:, i] = (self.f(x_plus, u_eq) - f0) / eps

        # df/du
        for i in range(self.n_inputs):
            u_plus = u_eq.copy()
            u_plus[i] += eps
            B[:, i] = (self.f(x_eq, u_plus) - f0) / eps

        return A, B

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(Ts={self.Ts}, scheme={self.scheme.value}, "
                f"params={self.params!r})")
