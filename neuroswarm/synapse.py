"""
NeuroSwarm Synaptic Links
==========================
Weighted, delayed connections between spiking units.

- Weight is signed and always clamped to [-1, 1]
- Polarity (excitatory/inhibitory) is structural: transmit() returns
  +weight or -weight by polarity, whatever the sign of the weight itself
- Pre/post eligibility traces decay exponentially and reset to 1 on a spike
- A DelayLine releases queued currents in FIFO order once their delivery
  time has arrived
"""

from typing import Dict, Any, Deque, Optional, Tuple
from dataclasses import dataclass, field
from collections import deque
import math

import numpy as np

WEIGHT_MIN = -1.0
WEIGHT_MAX = 1.0


def clamp_weight(weight: float) -> float:
    return float(np.clip(weight, WEIGHT_MIN, WEIGHT_MAX))


@dataclass
class SynapticLink:
    """Connection from source unit id to target unit id"""
    id: int
    source_id: int
    target_id: int
    weight: float = 0.5
    delay_ms: float = 1.0
    excitatory: bool = True
    trace_pre: float = 0.0
    trace_post: float = 0.0

    def __post_init__(self):
        self.weight = clamp_weight(self.weight)

    def transmit(self) -> float:
        """Current delivered to the target for one presynaptic spike"""
        sign = 1.0 if self.excitatory else -1.0
        return sign * self.weight

    def decay_traces(self, dt_ms: float, tau_ms: float) -> bool:
        """
        Decay both traces by exp(-dt/tau).

        Returns False without touching the traces when tau is not positive.
        """
        if tau_ms <= 0:
            return False
        decay = math.exp(-dt_ms / tau_ms)
        self.trace_pre *= decay
        self.trace_post *= decay
        return True

    def mark_pre_spike(self):
        self.trace_pre = 1.0

    def mark_post_spike(self):
        self.trace_post = 1.0

    def clip_weight(self):
        self.weight = clamp_weight(self.weight)

    def apply_weight_change(self, delta: float) -> float:
        """Add delta and re-clamp. Returns the new weight."""
        self.weight = clamp_weight(self.weight + delta)
        return self.weight

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source_id": self.source_id,
            "target_id": self.target_id,
            "weight": self.weight,
            "delay_ms": self.delay_ms,
            "excitatory": self.excitatory,
            "trace_pre": self.trace_pre,
            "trace_post": self.trace_post,
        }


@dataclass
class DelayLine:
    """Event queue of (delivery_time_ms, current) for one link"""
    delay_ms: float
    current_time_ms: float = 0.0
    events: Deque[Tuple[float, float]] = field(default_factory=deque)

    def enqueue(self, current: float, now_ms: Optional[float] = None):
        """Queue a current for delivery at now + delay"""
        if now_ms is not None:
            self.current_time_ms = now_ms
        self.events.append((self.current_time_ms + self.delay_ms, current))

    def deliver(self, current_time_ms: float) -> float:
        """Release every queued current whose time has arrived, FIFO"""
        self.current_time_ms = current_time_ms
        total_current = 0.0

        while self.events and self.events[0][0] <= current_time_ms:
            _, current = self.events.popleft()
            total_current += current

        return total_current

    @property
    def pending(self) -> int:
        return len(self.events)

    def clear(self):
        self.events.clear()
