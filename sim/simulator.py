"""
Closed-loop simulation engine.

Alternates controller and plant updates at the plant's sample period and
logs one (time, reference, state, input) row per plot interval.
"""

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Callable, Union

from tqdm.auto import tqdm

from models.errors import SimulationError
from models.parameters import spawn_generators

logger = logging.getLogger(__name__)

Signal = Callable[[float], Any]


@dataclass
class SimulationResult:
    """
    Container for simulation results.

    Attributes:
        time: Time vector (T,)
        reference: Reference values (T,), or (T x k) for vector references
        states: True state trajectory (T x n_states)
        inputs: Control inputs applied over the preceding interval (T x n_inputs)
        measurements: Noisy outputs at each logged time (T x n_outputs)
        metadata: Additional simulation information
    """
    time: np.ndarray
    reference: np.ndarray
    states: np.ndarray
    inputs: np.ndarray
    measurements: np.ndarray
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def final_state(self) -> np.ndarray:
        return self.states[-1].copy()

    def reference_for(self, channel: int = 0) -> np.ndarray:
        """Reference trace of one state channel."""
        if self.reference.ndim == 1:
            return self.reference
        if self.reference.shape[1] == 1:
            return self.reference[:, 0]
        if not 0 <= channel < self.reference.shape[1]:
            raise ValueError(f"Reference has {self.reference.shape[1]} columns, "
                             f"none for channel {channel}")
        return self.reference[:, channel]

    def tracking_error(self, channel: int = 0) -> np.ndarray:
        """Reference minus the tracked state channel."""
        return self.reference_for(channel) - self.states[:, channel]

    def compute_metrics(self, channel: int = 0) -> Dict[str, float]:
        """
        Compute performance metrics.

        Args:
            channel: State index that tracks the reference

        Returns:
            Dictionary with tracking error and input statistics
        """
        errors = self.tracking_error(channel)
        metrics = {
            'final_error': float(errors[-1]),
            'max_error': float(np.max(np.abs(errors))),
            'rms_error': float(np.sqrt(np.mean(errors**2))),
            'max_input': float(np.max(np.abs(self.inputs))),
        }
        if len(self.time) > 1:
            metrics['input_energy'] = float(np.sum(self.inputs**2) * (self.time[1] - self.time[0]))
        return metrics


class Simulator:
    """
    Sampled-data simulation loop.

    Each Ts step the controller sees either the true state or the latest
    noisy measurement, and the plant receives the control plus any
    disturbance.
    """

    def __init__(self, plant, controller, reference: Signal,
                 disturbance: Union[float, Signal] = 0.0,
                 feedback: str = 'state'):
        """
        Initialize simulator.

        Args:
            plant: PlantSimulator instance
            controller: Controller instance
            reference: Function t -> scalar reference or one entry per channel
            disturbance: Constant or function t -> input disturbance
            feedback: 'state' (true state) or 'measurement' (noisy outputs)
        """
        if feedback not in ('state', 'measurement'):
            raise ValueError(f"feedback must be 'state' or 'measurement', got {feedback!r}")

        self.plant = plant
        self.controller = controller
        self.reference = reference
        self.feedback = feedback
        if callable(disturbance):
            self._disturbance = disturbance
        else:
            self._disturbance = lambda t, d=float(disturbance): d

    def run(self, t_end: float, t_plot: Optional[float] = None,
            t_start: float = 0.0) -> SimulationResult:
        """
        Run closed-loop simulation.

        Args:
            t_end: Final time (seconds)
            t_plot: Logging interval (default: every Ts step)
            t_start: Initial time

        Returns:
            SimulationResult with one row per logging interval plus the
            initial condition
        """
        Ts = self.plant.Ts
        if t_plot is None:
            t_plot = Ts
        # Step counts instead of accumulated floats to avoid drift
        n_inner = max(1, int(round(t_plot / Ts)))
        n_outer = int(np.ceil((t_end - t_start) / (n_inner * Ts) - 1e-9))

        self.controller.reset()
        y = self.plant.h()

        time = [t_start]
        reference = [self.reference(t_start)]
        states = [self.plant.state]
        inputs = [np.zeros(self.plant.n_inputs)]
        measurements = [y.copy()]

        logger.info("Simulating %s with %s for %.2f s (%d steps)",
                    self.plant.name, self.controller.name,
                    t_end - t_start, n_outer * n_inner)

        t = t_start
        k = 0
        u = inputs[0]
        try:
            for _ in range(n_outer):
                r = self.reference(t)
                for _ in range(n_inner):
                    feedback = self.plant.state if self.feedback == 'state' else y
                    u = np.atleast_1d(self.controller.update(r, feedback))
                    y = self.plant.update(u + self._disturbance(t))
                    k += 1
                    t = t_start + k * Ts

                time.append(t)
                reference.append(r)
                states.append(self.plant.state)
                inputs.append(np.array(u, dtype=float))
                measurements.append(y.copy())
        except SimulationError as e:
            logger.error("Simulation of %s halted at t=%.4f s: %s", self.plant.name, t, e)
            raise

        metadata = {
            'plant': self.plant.name,
            'controller': self.controller.name,
            'Ts': Ts,
            'scheme': self.plant.scheme.value,
            'feedback': self.feedback,
            'params': dict(self.plant.params),
            'state_labels': self.plant.state_labels,
            'input_labels': self.plant.input_labels,
        }

        return SimulationResult(
            time=np.array(time),
            reference=np.array(reference, dtype=float),
            states=np.array(states),
            inputs=np.array(inputs),
            measurements=np.array(measurements),
            metadata=metadata
        )


def run_batch(plant_factory: Callable[[np.random.Generator], Any],
              controller_factory: Callable[[Any], Any],
              reference: Signal,
              n_runs: int,
              t_end: float,
              t_plot: Optional[float] = None,
              seed: Optional[int] = None,
              disturbance: Union[float, Signal] = 0.0,
              feedback: str = 'state',
              progress: bool = True) -> List[SimulationResult]:
    """
    Monte-Carlo simulation over parameter draws.

    Each run builds a fresh plant from its own spawned generator, so runs
    are independent and reproducible from a single seed.

    Args:
        plant_factory: rng -> PlantSimulator
        controller_factory: plant -> Controller (designed for that plant)
        reference: Function t -> scalar reference or one entry per channel
        n_runs: Number of runs
        t_end: Final time of each run
        t_plot: Logging interval
        seed: Root seed
        disturbance: Constant or function t -> input disturbance
        feedback: 'state' or 'measurement'
        progress: Show a progress bar

    Returns:
        List of SimulationResult objects
    """
    results = []
    rngs = spawn_generators(seed, n_runs)
    for rng in tqdm(rngs, desc="Runs", disable=not progress):
        plant = plant_factory(rng)
        controller = controller_factory(plant)
        sim = Simulator(plant, controller, reference, disturbance, feedback)
        results.append(sim.run(t_end, t_plot))
    logger.info("Completed %d runs", len(results))
    return results
