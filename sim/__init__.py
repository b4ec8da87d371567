"""
Simulation loop, reference signals and plotting utilities.

Provides the sampled-data loop that couples a plant with a controller,
Monte-Carlo batches over parameter draws, and time-history plots.
"""

from .signals import SignalGenerator
from .simulator import Simulator, SimulationResult, run_batch
from .plotting import plot_data, plot_batch, save_figure

__all__ = [
    'SignalGenerator',
    'Simulator',
    'SimulationResult',
    'run_batch',
    'plot_data',
    'plot_batch',
    'save_figure',
]
