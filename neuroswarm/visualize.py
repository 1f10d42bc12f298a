"""
NeuroSwarm Diagnostics Plots
=============================
Debugging instruments for the decision core:

- Spike raster of the diagnostic network
- STDP learning window
- Coordination telemetry (cohesion, arousal, activity, value estimate)
"""

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from typing import List, Optional, TYPE_CHECKING
import logging

from .config import STDPConfig
from .stdp import stdp_window

if TYPE_CHECKING:
    from .simulation import SimulationResults

logger = logging.getLogger("NeuroSwarm.Visualize")


def _finish(fig, output_path: Optional[str]):
    fig.tight_layout()
    if output_path:
        fig.savefig(output_path)
        logger.info(f"Saved figure to {output_path}")
        plt.close(fig)
    return fig


def plot_spike_raster(spike_history: List[List[int]],
                      dt_ms: float = 1.0,
                      output_path: Optional[str] = None):
    """Raster plot: one dot per (step, unit id) spike"""
    fig, ax = plt.subplots(figsize=(10, 4))
    times = [step * dt_ms for step, ids in enumerate(spike_history) for _ in ids]
    units = [uid for ids in spike_history for uid in ids]
    ax.scatter(times, units, s=4, marker="|", color="black")
    ax.set_xlabel("Time (ms)")
    ax.set_ylabel("Unit id")
    ax.set_title(f"Spike raster ({len(units)} spikes)")
    return _finish(fig, output_path)


def plot_stdp_window(config: Optional[STDPConfig] = None,
                     output_path: Optional[str] = None):
    """Plot the unit-amplitude STDP kernel over both windows"""
    config = config if config is not None else STDPConfig()
    span = 1.5 * max(config.positive_window_ms, config.negative_window_ms)
    dts = np.linspace(-span, span, 301)
    values = [stdp_window(dt, config) for dt in dts]

    fig, ax = plt.subplots(figsize=(6, 4))
    ax.plot(dts, values, color="tab:blue")
    ax.axhline(0.0, color="grey", linewidth=0.5)
    ax.axvline(0.0, color="grey", linewidth=0.5)
    ax.set_xlabel("t_post - t_pre (ms)")
    ax.set_ylabel("Relative weight change")
    ax.set_title("STDP window")
    return _finish(fig, output_path)


def plot_coordination(results: "SimulationResults", output_path: Optional[str] = None):
    """Telemetry over ticks"""
    ticks = np.arange(len(results.ticks))
    fig, axes = plt.subplots(2, 2, figsize=(12, 8))

    axes[0, 0].plot(ticks, results.cohesion)
    axes[0, 0].set_ylim(0.0, 1.05)
    axes[0, 0].set_title("Group cohesion")

    axes[0, 1].plot(ticks, results.arousal, color="tab:orange")
    axes[0, 1].set_title("Average arousal")

    axes[1, 0].bar(ticks, results.network_spikes, color="tab:green")
    axes[1, 0].set_title("Network spikes per tick")

    axes[1, 1].plot(ticks, results.value_estimates, color="tab:red")
    axes[1, 1].set_title("Mean value estimate")

    for ax in axes.flat:
        ax.set_xlabel("Tick")

    return _finish(fig, output_path)
