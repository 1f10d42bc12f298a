"""
NeuroSwarm Spiking Units
=========================
Leaky integrate-and-fire (LIF) units and Poisson stimulus generators.

Membrane dynamics (Euler, dt in milliseconds):
    dV/dt = (-g_leak * (V - V_rest) + I) / C

- Spike when V > threshold, then V <- V_rest
- Inside the refractory period V is held just below rest
- Each unit keeps its own elapsed time; there is no global clock
"""

import numpy as np
from typing import Dict, Any, Optional
from dataclasses import dataclass
import math

from .config import NeuronConfig
from .contracts import ValidationError, require_positive


@dataclass
class SpikingUnit:
    """Single leaky integrate-and-fire unit"""
    id: int
    membrane_potential: float = -0.7  # Normalized volts
    threshold: float = 0.2
    rest_potential: float = -0.7
    leak_conductance: float = 0.1
    time_constant_ms: float = 20.0
    refractory_period_ms: float = 2.0
    last_spike_time_ms: float = -math.inf

    # Integration constants
    capacitance: float = 20.0
    refractory_hyperpolarization: float = 0.05

    # Own elapsed time, advanced by every integrate() call
    time_ms: float = 0.0
    spike_count: int = 0

    def __post_init__(self):
        require_positive("capacitance", self.capacitance)

    @classmethod
    def from_config(cls, unit_id: int, config: NeuronConfig) -> "SpikingUnit":
        return cls(
            id=unit_id,
            membrane_potential=config.rest_potential,
            threshold=config.threshold,
            rest_potential=config.rest_potential,
            leak_conductance=config.leak_conductance,
            time_constant_ms=config.time_constant_ms,
            refractory_period_ms=config.refractory_period_ms,
            capacitance=config.capacitance,
            refractory_hyperpolarization=config.refractory_hyperpolarization,
        )

    def integrate(self, input_current: float, dt_ms: float) -> bool:
        """
        Advance the unit by dt_ms under a constant input current.

        Args:
            input_current: Injected current for this step
            dt_ms: Elapsed milliseconds since the previous call

        Returns:
            True if the unit spiked during this step
        """
        require_positive("dt_ms", dt_ms)
        self.time_ms += dt_ms
        now_ms = self.time_ms

        if self.in_refractory(now_ms):
            self.membrane_potential = self.rest_potential - self.refractory_hyperpolarization
            return False

        leak_current = self.leak_conductance * (self.membrane_potential - self.rest_potential)
        dv_dt = (-leak_current + input_current) / self.capacitance
        self.membrane_potential += dv_dt * dt_ms

        if self.membrane_potential > self.threshold:
            self.membrane_potential = self.rest_potential
            self.last_spike_time_ms = now_ms
            self.spike_count += 1
            return True

        return False

    def in_refractory(self, current_time_ms: float) -> bool:
        """Is the unit still refractory at current_time_ms?"""
        return (current_time_ms - self.last_spike_time_ms) < self.refractory_period_ms

    def reset(self):
        """Return to resting state and rewind the local clock"""
        self.membrane_potential = self.rest_potential
        self.last_spike_time_ms = -math.inf
        self.time_ms = 0.0
        self.spike_count = 0

    @property
    def has_spiked(self) -> bool:
        return math.isfinite(self.last_spike_time_ms)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "membrane_potential": float(self.membrane_potential),
            "threshold": self.threshold,
            "rest_potential": self.rest_potential,
            "last_spike_time_ms": (
                float(self.last_spike_time_ms) if self.has_spiked else None
            ),
            "time_ms": self.time_ms,
            "spike_count": self.spike_count,
        }


class PoissonGenerator:
    """
    Poisson spike source for stimulus generation.

    Spike probability per step is rate_hz / 1000 * dt_ms, drawn from an
    explicitly passed generator so stimulus is reproducible.
    """

    def __init__(self, rate_hz: float, rng: np.random.Generator):
        if rate_hz < 0:
            raise ValidationError(f"rate_hz must be non-negative, got {rate_hz}")
        self.rate_hz = rate_hz
        self.rng = rng
        self.last_spike_ms: Optional[float] = None
        self.time_ms = 0.0

    def spike(self, dt_ms: float) -> bool:
        """Draw one step"""
        self.time_ms += dt_ms
        prob = self.rate_hz / 1000.0 * dt_ms
        fired = bool(self.rng.random() < prob)
        if fired:
            self.last_spike_ms = self.time_ms
        return fired

    def spike_train(self, n_steps: int, dt_ms: float = 1.0) -> np.ndarray:
        """Boolean spike train of length n_steps"""
        return np.array([self.spike(dt_ms) for _ in range(n_steps)], dtype=bool)
