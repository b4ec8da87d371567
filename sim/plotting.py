"""
Plotting utilities for simulation results.

Provides time-history plots of reference, states and inputs, and overlays
for Monte-Carlo batches.
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import Optional, List, Tuple
import os


def plot_data(result, state_labels: Optional[List[str]] = None,
              input_labels: Optional[List[str]] = None,
              channel: int = 0,
              title: Optional[str] = None) -> Tuple[plt.Figure, np.ndarray]:
    """
    Plot state and input trajectories over time.

    The reference is drawn on the tracked channel.

    Args:
        result: SimulationResult
        state_labels: Labels for state variables
        input_labels: Labels for input variables
        channel: State index that tracks the reference
        title: Overall figure title

    Returns:
        Figure and axes array
    """
    n_states = result.states.shape[1]
    n_inputs = result.inputs.shape[1]

    fig, axes = plt.subplots(n_states + n_inputs, 1,
                             figsize=(10, 2 * (n_states + n_inputs)),
                             sharex=True)
    axes = np.atleast_1d(axes)

    if state_labels is None:
        state_labels = result.metadata.get('state_labels') or \
            [f'$x_{i+1}$' for i in range(n_states)]
    if input_labels is None:
        input_labels = result.metadata.get('input_labels') or \
            [f'$u_{i+1}$' for i in range(n_inputs)]

    # States
    for i in range(n_states):
        axes[i].plot(result.time, result.states[:, i], 'b-', linewidth=1.5,
                     label='State')
        if i == channel:
            axes[i].plot(result.time, result.reference_for(i), 'r--', linewidth=1.0,
                         label='Reference')
            axes[i].legend()
        axes[i].set_ylabel(state_labels[i])
        axes[i].grid(True, alpha=0.3)

    # Inputs
    for i in range(n_inputs):
        ax = axes[n_states + i]
        ax.plot(result.time, result.inputs[:, i], 'g-', linewidth=1.5)
        ax.set_ylabel(input_labels[i])
        ax.grid(True, alpha=0.3)

    axes[-1].set_xlabel('Time (s)')

    if title:
        fig.suptitle(title)

    fig.tight_layout()
    return fig, axes


def plot_batch(results: List, channel: int = 0,
               title: Optional[str] = None) -> Tuple[plt.Figure, plt.Axes]:
    """
    Overlay the tracked channel of several runs.

    Args:
        results: List of SimulationResult objects
        channel: State index to plot
        title: Plot title

    Returns:
        Figure and axes
    """
    fig, ax = plt.subplots(figsize=(10, 5))

    for result in results:
        ax.plot(result.time, result.states[:, channel], '-',
                color='tab:blue', alpha=0.3, linewidth=1.0)

    if results:
        ax.plot(results[0].time, results[0].reference_for(channel), 'r--',
                linewidth=1.5, label='Reference')
        labels = results[0].metadata.get('state_labels')
        ax.set_ylabel(labels[channel] if labels else f'$x_{channel+1}$')

    ax.set_xlabel('Time (s)')
    ax.grid(True, alpha=0.3)
    ax.legend()

    if title:
        ax.set_title(title)

    return fig, ax


def save_figure(fig: plt.Figure, filename: str,
                output_dir: str = 'report/figures',
                formats: List[str] = ['png', 'pdf']) -> None:
    """
    Save figure to multiple formats.

    Args:
        fig: Matplotlib figure
        filename: Base filename (without extension)
        output_dir: Output directory
        formats: List of file formats
    """
    os.makedirs(output_dir, exist_ok=True)

    for fmt in formats:
        path = os.path.join(output_dir, f'{filename}.{fmt}')
        fig.savefig(path, dpi=150, bbox_inches='tight')
