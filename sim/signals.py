"""
Reference signal generators.

Time-indexed waveforms used as references and disturbances in the
simulation loop.
"""

import numpy as np
from typing import Optional


class SignalGenerator:
    """
    Periodic and random reference signals.

    All waveforms are offset by y_offset and have period 1/frequency.
    """

    def __init__(self, amplitude: float = 1.0, frequency: float = 1.0,
                 y_offset: float = 0.0,
                 rng: Optional[np.random.Generator] = None):
        """
        Initialize generator.

        Args:
            amplitude: Peak deviation from the offset
            frequency: Frequency (Hz)
            y_offset: Constant offset
            rng: Random number generator for random()
        """
        self.amplitude = amplitude
        self.frequency = frequency
        self.y_offset = y_offset
        self.rng = rng if rng is not None else np.random.default_rng()

    def square(self, t: float) -> float:
        """+amplitude for the first half of each period, -amplitude after."""
        if (t % (1.0 / self.frequency)) <= 0.5 / self.frequency:
            return self.amplitude + self.y_offset
        return -self.amplitude + self.y_offset

    def sawtooth(self, t: float) -> float:
        """Ramp from -amplitude to +amplitude, repeating every half period."""
        tmp = t % (0.5 / self.frequency)
        return 4.0 * self.amplitude * self.frequency * tmp - self.amplitude + self.y_offset

    def step(self, t: float) -> float:
        """amplitude for t >= 0."""
        if t >= 0.0:
            return self.amplitude + self.y_offset
        return self.y_offset

    def random(self, t: float) -> float:
        """Gaussian sample with std amplitude."""
        return float(self.rng.normal(self.y_offset, self.amplitude))

    def sin(self, t: float) -> float:
        return self.amplitude * np.sin(2.0 * np.pi * self.frequency * t) + self.y_offset

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(amplitude={self.amplitude}, "
                f"frequency={self.frequency}, y_offset={self.y_offset})")
