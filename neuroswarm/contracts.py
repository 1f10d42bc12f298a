"""
NeuroSwarm Contracts
=====================
Error taxonomy and plain telemetry records shared across components.

Only malformed input is a hard failure (ValidationError). Everything else
the decision core runs into during a tick is absorbed locally and surfaced
through DiagnosticCounters:

- EMPTY_COLLECTIVE: aggregation requested with zero agents
- UNKNOWN_AGENT: reward/allocation/snapshot addressed to an unregistered id
- INVALID_LAYER_INDEX: layer connection outside network bounds
- DIVISION_GUARD: a divisor near zero short-circuited to a default
"""

from typing import TypedDict, Dict, List, Iterable, Optional
from dataclasses import dataclass
import logging
import math
import numbers

logger = logging.getLogger("NeuroSwarm.Contracts")


# =============================================================================
# ERRORS
# =============================================================================

class NeuroSwarmError(Exception):
    """Base class for NeuroSwarm errors."""
    pass


class ValidationError(NeuroSwarmError, ValueError):
    """Raised when malformed input would corrupt aggregate state."""
    pass


EMPTY_COLLECTIVE = "empty_collective"
UNKNOWN_AGENT = "unknown_agent"
INVALID_LAYER_INDEX = "invalid_layer_index"
DIVISION_GUARD = "division_guard"

ABSORBED_CONDITIONS = (
    EMPTY_COLLECTIVE,
    UNKNOWN_AGENT,
    INVALID_LAYER_INDEX,
    DIVISION_GUARD,
)


@dataclass
class DiagnosticCounters:
    """Counts of absorbed, non-fatal conditions"""
    empty_collective: int = 0
    unknown_agent: int = 0
    invalid_layer_index: int = 0
    division_guard: int = 0

    def record(self, condition: str, detail: str = "") -> None:
        if condition not in ABSORBED_CONDITIONS:
            raise ValidationError(f"Unknown diagnostic condition: {condition}")
        setattr(self, condition, getattr(self, condition) + 1)
        logger.warning(f"Absorbed {condition}{': ' + detail if detail else ''}")

    def merge(self, other: "DiagnosticCounters") -> "DiagnosticCounters":
        """Return a new counter set summing both"""
        return DiagnosticCounters(**{
            name: getattr(self, name) + getattr(other, name)
            for name in ABSORBED_CONDITIONS
        })

    def total(self) -> int:
        return sum(getattr(self, name) for name in ABSORBED_CONDITIONS)

    def as_dict(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in ABSORBED_CONDITIONS}

    def reset(self) -> None:
        for name in ABSORBED_CONDITIONS:
            setattr(self, name, 0)


# =============================================================================
# VALIDATION GUARDS
# =============================================================================

def require_finite(name: str, values: Iterable[float]) -> None:
    """Fail fast on NaN or infinite coordinates."""
    values = tuple(values)
    for v in values:
        if not isinstance(v, numbers.Real) or not math.isfinite(v):
            raise ValidationError(f"{name} must contain finite numbers, got {values}")


def require_positive(name: str, value: float) -> None:
    if not (isinstance(value, numbers.Real) and math.isfinite(value) and value > 0):
        raise ValidationError(f"{name} must be positive, got {value}")


def require_unit_interval(name: str, value: float) -> None:
    if not (isinstance(value, numbers.Real) and 0.0 <= value <= 1.0):
        raise ValidationError(f"{name} must be in [0, 1], got {value}")


# =============================================================================
# TELEMETRY RECORDS - plain structures for logging / persistence layers
# =============================================================================

class CoordinationTelemetry(TypedDict):
    """Swarm-level observability snapshot"""
    swarm_id: int
    n_agents: int
    centroid_lat: float
    centroid_lon: float
    average_arousal: float
    group_cohesion: float
    time_since_decision_s: float
    consensus: str


class AgentRecord(TypedDict):
    """Serialized agent"""
    id: int
    kind: str
    position: List[float]
    velocity: List[float]
    heading: float
    state: str
    sensors: Dict[str, float]
    decision: Dict[str, float]


class TickRecord(TypedDict):
    """Everything one tick hands back to the external loop"""
    tick: int
    actions: Dict[int, str]
    mission_actions: Dict[int, str]
    consensus: str
    telemetry: CoordinationTelemetry
    network_spikes: int
    replanned: bool
    allocation: Dict[int, Optional[int]]
