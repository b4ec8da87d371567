"""
Randomized physical parameters.

The parameters of a physical system are never known exactly, so each
plant instance perturbs its nominal values by a uniform random fraction:

    p = p_nominal * (1 + u),    u ~ U[-alpha, alpha]

One draw per parameter per instance. Exempt parameters (gravity, the
sample period) pass through unchanged.
"""

import logging
from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, Optional

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_ALPHA = 0.2


class RandomizedParameterSet(Mapping):
    """
    Immutable mapping of realized parameter values.

    Attributes:
        nominal: Nominal values the draw was made from
        alpha: Uncertainty fraction
        exempt: Names that were not perturbed
    """

    def __init__(self, nominal: Mapping[str, float],
                 alpha: float = DEFAULT_ALPHA,
                 exempt: Iterable[str] = (),
                 rng: Optional[np.random.Generator] = None):
        """
        Draw realized values.

        Args:
            nominal: Nominal parameter values, drawn in iteration order
            alpha: Uncertainty fraction, realized values lie in
                nominal * [1 - alpha, 1 + alpha]
            exempt: Parameters passed through unchanged
            rng: Random number generator
        """
        if rng is None:
            rng = np.random.default_rng()

        self.alpha = float(alpha)
        self.exempt = frozenset(exempt)
        self._nominal = {name: float(value) for name, value in nominal.items()}

        realized: Dict[str, float] = {}
        for name, value in self._nominal.items():
            if name in self.exempt:
                realized[name] = value
            else:
                realized[name] = value * (1.0 + rng.uniform(-self.alpha, self.alpha))
        self._values = realized

        logger.debug("Realized parameters (alpha=%.3f): %s", self.alpha, realized)

    def __getitem__(self, name: str) -> float:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __getattr__(self, name: str) -> float:
        # Attribute access for readability in equations of motion (p.m1)
        try:
            return self.__dict__['_values'][name]
        except KeyError:
            raise AttributeError(name) from None

    def __setattr__(self, name: str, value) -> None:
        if '_values' in self.__dict__:
            raise AttributeError("RandomizedParameterSet is immutable")
        super().__setattr__(name, value)

    def __delattr__(self, name: str) -> None:
        raise AttributeError("RandomizedParameterSet is immutable")

    @property
    def nominal(self) -> Dict[str, float]:
        """Copy of the nominal values the draw was made from."""
        return dict(self._nominal)

    def perturbation(self) -> Dict[str, float]:
        """Relative deviation of each realized value from its nominal."""
        return {name: (self._values[name] / nom - 1.0) if nom != 0.0 else 0.0
                for name, nom in self._nominal.items()}

    def __repr__(self) -> str:
        items = ', '.join(f"{k}={v:.6g}" for k, v in self._values.items())
        return f"{self.__class__.__name__}({items})"


def spawn_generators(seed: Optional[int], n: int) -> list:
    """
    Independent generators for n plants simulated side by side.

    numpy Generators are not safe to share across threads, so each plant
    gets its own stream derived from one SeedSequence.

    Args:
        seed: Root seed (None for OS entropy)
        n: Number of generators

    Returns:
        List of np.random.Generator
    """
    children = np.random.SeedSequence(seed).spawn(n)
    return [np.random.default_rng(s) for s in children]
