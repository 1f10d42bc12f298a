"""
NeuroSwarm Plasticity
======================
Spike-timing-dependent plasticity (STDP).

Two-sided exponential kernel, dt = t_post - t_pre:
    0 < dt < W+      ->  +eta * exp(-dt / tau)     (potentiation)
    0 < -dt < W-     ->  -eta * exp(-|dt| / tau)   (depression)
    otherwise        ->  0

The online variant works from per-link eligibility traces instead of
absolute spike times: a post spike potentiates by eta * trace_pre, a pre
spike depresses by eta * trace_post.
"""

import math
from typing import Optional
import logging

from .config import STDPConfig
from .contracts import require_positive
from .synapse import SynapticLink, clamp_weight

logger = logging.getLogger("NeuroSwarm.STDP")


class STDPRule:
    """STDP learning rule"""

    def __init__(self, config: Optional[STDPConfig] = None):
        self.config = config if config is not None else STDPConfig()
        require_positive("STDP time_constant_ms", self.config.time_constant_ms)
        self.total_updates = 0

    def compute_weight_change(self, dt_ms: float) -> float:
        """
        Weight change for one pre/post pair.

        Args:
            dt_ms: t_post - t_pre (positive when post fires after pre)
        """
        params = self.config
        if dt_ms > 0.0:
            if dt_ms < params.positive_window_ms:
                return params.learning_rate * math.exp(-dt_ms / params.time_constant_ms)
            return 0.0
        if dt_ms < 0.0:
            if -dt_ms < params.negative_window_ms:
                return -params.learning_rate * math.exp(dt_ms / params.time_constant_ms)
            return 0.0
        return 0.0

    def update_weight(self, current_weight: float, t_pre_ms: float, t_post_ms: float) -> float:
        """New weight given spike timings, clamped to [-1, 1]"""
        dw = self.compute_weight_change(t_post_ms - t_pre_ms)
        return clamp_weight(current_weight + dw)

    def apply(self, link: SynapticLink, t_pre_ms: float, t_post_ms: float) -> float:
        """Update a link in place from a single spike pair"""
        old = link.weight
        link.weight = self.update_weight(link.weight, t_pre_ms, t_post_ms)
        self.total_updates += 1
        logger.debug(f"Link {link.id}: {old:.4f} -> {link.weight:.4f}")
        return link.weight

    def trace_update(self, link: SynapticLink, pre_spiked: bool, post_spiked: bool) -> float:
        """
        Online STDP from eligibility traces.

        Call after traces have decayed for this step and before marking the
        new spikes, so a pair of simultaneous spikes cancels out.
        """
        eta = self.config.learning_rate
        delta = 0.0
        if post_spiked:
            delta += eta * link.trace_pre
        if pre_spiked:
            delta -= eta * link.trace_post
        if delta != 0.0:
            link.apply_weight_change(delta)
            self.total_updates += 1
        return delta


def stdp_window(dt_ms: float, config: STDPConfig) -> float:
    """Unit-amplitude STDP kernel (for plotting/diagnostics)"""
    require_positive("STDP time_constant_ms", config.time_constant_ms)
    if 0.0 < dt_ms < config.positive_window_ms:
        return math.exp(-dt_ms / config.time_constant_ms)
    if dt_ms < 0.0 and -dt_ms < config.negative_window_ms:
        return -math.exp(dt_ms / config.time_constant_ms)
    return 0.0
