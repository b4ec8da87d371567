"""
Plant configuration records.

A PlantConfig bundles the nominal physical parameters, the initial state,
the sample period and the integration scheme. It can be built directly,
from a plain dict, or from a JSON file:

    {
        "params": {"m1": 0.25, "m2": 1.0, "ell": 0.5, "b": 0.05, "g": 9.8},
        "initial_state": [0.0, 0.0, 0.0, 0.0],
        "Ts": 0.01,
        "scheme": "RK4",
        "uncertainty_alpha": 0.2
    }
"""

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import InvalidConfigurationError
from .integrator import Scheme
from .parameters import DEFAULT_ALPHA


@dataclass(frozen=True)
class PlantConfig:
    """
    Nominal configuration of a plant instance.

    Attributes:
        params: Nominal parameter values by name
        initial_state: Initial state vector
        Ts: Fixed integration step (seconds)
        scheme: Integration scheme
        uncertainty_alpha: Fraction by which non-exempt parameters are perturbed
        name: Plant name used in error messages
    """
    params: Mapping[str, float]
    initial_state: Tuple[float, ...]
    Ts: float = 0.01
    scheme: Scheme = Scheme.RK4
    uncertainty_alpha: float = DEFAULT_ALPHA
    name: str = field(default='plant', compare=False)

    def __post_init__(self):
        try:
            params = {str(k): float(v) for k, v in dict(self.params).items()}
            initial_state = tuple(float(v) for v in self.initial_state)
            Ts = float(self.Ts)
            alpha = float(self.uncertainty_alpha)
        except (TypeError, ValueError) as e:
            raise InvalidConfigurationError(f"Malformed configuration: {e}") from e

        try:
            scheme = Scheme.parse(self.scheme)
        except ValueError as e:
            raise InvalidConfigurationError(str(e)) from e

        bad = [k for k, v in params.items() if not np.isfinite(v)]
        if bad:
            raise InvalidConfigurationError(f"Non-finite nominal parameters: {bad}")
        if not initial_state:
            raise InvalidConfigurationError("Initial state is empty")
        if not np.all(np.isfinite(initial_state)):
            raise InvalidConfigurationError(f"Non-finite initial state: {initial_state}")
        if not (np.isfinite(Ts) and Ts > 0):
            raise InvalidConfigurationError(f"Sample period must be positive, got Ts={Ts}")
        if not 0.0 <= alpha < 1.0:
            raise InvalidConfigurationError(
                f"uncertainty_alpha must lie in [0, 1), got {alpha}")

        object.__setattr__(self, 'params', params)
        object.__setattr__(self, 'initial_state', initial_state)
        object.__setattr__(self, 'Ts', Ts)
        object.__setattr__(self, 'scheme', scheme)
        object.__setattr__(self, 'uncertainty_alpha', alpha)

    def __hash__(self) -> int:
        # params is a dict copy owned by this record; hash its items
        return hash((tuple(sorted(self.params.items())), self.initial_state,
                     self.Ts, self.scheme, self.uncertainty_alpha))

    def require(self, names: Sequence[str], n_states: int,
                plant: Optional[str] = None) -> None:
        """
        Check that the configuration fits a plant.

        Args:
            names: Required nominal parameter names
            n_states: Expected state dimension
            plant: Name reported in errors (default: the config name)

        Raises:
            InvalidConfigurationError: on missing parameters or wrong dimension
        """
        plant = plant or self.name
        missing = [n for n in names if n not in self.params]
        if missing:
            raise InvalidConfigurationError(
                f"{plant}: missing nominal parameters {missing}")
        if len(self.initial_state) != n_states:
            raise InvalidConfigurationError(
                f"{plant}: initial state has dimension {len(self.initial_state)}, "
                f"expected {n_states}")

    def with_overrides(self, **changes) -> 'PlantConfig':
        """Copy with top-level fields and/or nominal parameters replaced."""
        params = dict(self.params)
        for key in list(changes):
            if key in params:
                params[key] = changes.pop(key)
        try:
            return replace(self, params=params, **changes)
        except TypeError as e:
            raise InvalidConfigurationError(f"{self.name}: {e}") from e

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'PlantConfig':
        """Build a configuration from a plain dict."""
        if 'params' not in data or 'initial_state' not in data:
            raise InvalidConfigurationError(
                "Configuration requires 'params' and 'initial_state'")
        known = {'params', 'initial_state', 'Ts', 'scheme', 'uncertainty_alpha', 'name'}
        unknown = set(data) - known
        if unknown:
            raise InvalidConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'params': dict(self.params),
            'initial_state': list(self.initial_state),
            'Ts': self.Ts,
            'scheme': self.scheme.value,
            'uncertainty_alpha': self.uncertainty_alpha,
        }


def load_config(config_path: Union[str, Path]) -> PlantConfig:
    """
    Load a plant configuration from a JSON file.

    Args:
        config_path: Path to the JSON file
    """
    path = Path(config_path)
    with path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidConfigurationError(f"{path}: {e}") from e
    return PlantConfig.from_dict(data)
