"""
NeuroSwarm Agents
==================
One swarm entity (aerial drone, ground unit, or static sensor) with its
own sensed environment and neuromorphic decision state.

The decision function is a simplified spiking computation: sensor inputs
are summed into a decision potential, which becomes the task priority
(clamped to [0, 1]) and a recent-spike count proportional to its size.
Decision state is overwritten every tick, except arousal, which carries
over so repeated cold readings keep damping it.
"""

from typing import Dict, Tuple, Optional, Any, Mapping
from dataclasses import dataclass, asdict, astuple, replace
import logging
import math

from .config import AgentConfig, AgentKind, BehaviorState, AgentAction
from .contracts import AgentRecord, ValidationError, require_finite

logger = logging.getLogger("NeuroSwarm.Agent")

Vector3 = Tuple[float, float, float]


@dataclass
class SensorReadings:
    """Locally sensed environment"""
    soil_moisture_percent: float = 20.0
    soil_ph: float = 7.2
    temperature_c: float = 25.0
    light_level: float = 0.5  # 0-1
    co2_ppm: float = 400.0
    threats_detected: int = 0  # Wildfire, etc.

    def __post_init__(self):
        require_finite("sensor readings", astuple(self))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SensorReadings":
        """Build from a collaborator snapshot, ignoring unknown keys"""
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        readings = cls(**known)
        readings.threats_detected = int(readings.threats_detected)
        return readings

    def to_record(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class DecisionState:
    """Neuromorphic decision state, overwritten every tick"""
    decision_confidence: float = 0.5  # 0-1
    task_priority: float = 0.3  # 0 = idle, 1 = urgent
    arousal_level: float = 0.7  # 0-1
    social_influence: float = 0.5  # 0-1
    recent_spikes: int = 0

    def to_record(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class DecisionUpdate:
    """Result of one decision computation, applied in a separate pass"""
    agent_id: int
    decision: DecisionState
    action: AgentAction


class SwarmAgent:
    """
    Swarm agent with integrated decision-making.

    Capability comes from the kind: aerial and ground agents move at their
    configured speeds, sensor agents are stationary.
    """

    def __init__(self, agent_id: int, kind: AgentKind = AgentKind.AERIAL,
                 position: Vector3 = (0.0, 0.0, 0.0),
                 velocity: Vector3 = (0.0, 0.0, 0.0),
                 heading: float = 0.0,
                 config: Optional[AgentConfig] = None):
        self.id = agent_id
        self.kind = kind
        self.config = config if config is not None else AgentConfig()
        self.position = position
        self.velocity = velocity
        self.heading = float(heading)
        self.state = BehaviorState.IDLE
        self.sensors = SensorReadings()
        self.decision = DecisionState()
        self.last_action = AgentAction.IDLE

    def __repr__(self) -> str:
        return (f"SwarmAgent(id={self.id}, kind={self.kind.value}, "
                f"position={self.position}, state={self.state.value})")

    @property
    def position(self) -> Vector3:
        """(lat, lon, altitude or depth)"""
        return self._position

    @position.setter
    def position(self, value: Vector3):
        value = tuple(float(v) for v in value)
        if len(value) != 3:
            raise ValidationError(f"position needs 3 components, got {value}")
        require_finite(f"agent {self.id} position", value)
        self._position = value

    @property
    def velocity(self) -> Vector3:
        """(north, east, vertical) in m/s"""
        return self._velocity

    @velocity.setter
    def velocity(self, value: Vector3):
        value = tuple(float(v) for v in value)
        if len(value) != 3:
            raise ValidationError(f"velocity needs 3 components, got {value}")
        require_finite(f"agent {self.id} velocity", value)
        self._velocity = value

    def sense(self, readings):
        """Replace the sensor snapshot (SensorReadings or a mapping)"""
        if not isinstance(readings, SensorReadings):
            readings = SensorReadings.from_mapping(readings)
        self.sensors = readings

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    def compute_decision(self) -> DecisionUpdate:
        """Compute the next decision state without mutating the agent"""
        cfg = self.config
        sensors = self.sensors
        arousal = self.decision.arousal_level

        potential = 0.0
        # Wet soil means less irrigation work
        potential -= (sensors.soil_moisture_percent / 100.0) * cfg.moisture_weight
        # Acidic soil means amendment work
        potential += ((cfg.ph_reference - sensors.soil_ph) / cfg.ph_reference) * cfg.ph_weight

        if sensors.threats_detected > 0:
            potential -= cfg.threat_penalty
            arousal = cfg.threat_arousal

        if sensors.temperature_c < cfg.cold_threshold_c:
            potential -= cfg.cold_penalty
            arousal *= cfg.cold_arousal_damping

        task_priority = min(max(potential, 0.0), 1.0)
        decision = replace(
            self.decision,
            task_priority=task_priority,
            arousal_level=arousal,
            decision_confidence=min(abs(potential), 1.0),
            recent_spikes=int(abs(potential) * cfg.spikes_per_unit_potential),
        )
        return DecisionUpdate(self.id, decision, self._priority_to_action(task_priority))

    def apply_decision(self, update: DecisionUpdate) -> AgentAction:
        self.decision = update.decision
        self.last_action = update.action
        return update.action

    def decide(self) -> AgentAction:
        """Make a decision from the current sensor snapshot"""
        return self.apply_decision(self.compute_decision())

    def _priority_to_action(self, priority: float) -> AgentAction:
        cfg = self.config
        if priority > cfg.execute_threshold:
            return AgentAction.EXECUTE_TASK
        if priority > cfg.explore_threshold:
            return AgentAction.EXPLORE
        if priority > cfg.monitor_threshold:
            return AgentAction.MONITOR
        return AgentAction.RETURN_HOME

    # ------------------------------------------------------------------
    # Motion
    # ------------------------------------------------------------------

    def move(self, dt_seconds: float):
        """Advance position by velocity (lat/lon converted from metres)"""
        if not self.kind.is_mobile:
            return
        m_per_deg = self.config.meters_per_degree
        lat, lon, alt = self.position
        v_n, v_e, v_z = self.velocity
        self.position = (
            lat + v_n * dt_seconds / m_per_deg,
            lon + v_e * dt_seconds / m_per_deg,
            alt + v_z * dt_seconds,
        )

    def move_toward(self, target_lat: float, target_lon: float):
        """Point heading at a target and set velocity, or stop on arrival"""
        require_finite("target", (target_lat, target_lon))
        lat, lon, _ = self.position
        dlat = target_lat - lat
        dlon = target_lon - lon
        self.heading = math.degrees(math.atan2(dlon, dlat))

        distance_m = math.hypot(dlat, dlon) * self.config.meters_per_degree
        speed = self.kind.max_speed(self.config)

        if distance_m > self.config.arrival_distance_m and speed > 0:
            heading_rad = math.radians(self.heading)
            self.velocity = (math.cos(heading_rad) * speed,
                             math.sin(heading_rad) * speed,
                             0.0)
            self.state = BehaviorState.EXPLORING
        else:
            self.velocity = (0.0, 0.0, 0.0)
            self.state = BehaviorState.EXECUTING
            logger.debug(f"Agent {self.id} holding at ({lat:.5f}, {lon:.5f})")

    def to_record(self) -> AgentRecord:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "position": list(self.position),
            "velocity": list(self.velocity),
            "heading": self.heading,
            "state": self.state.value,
            "sensors": self.sensors.to_record(),
            "decision": self.decision.to_record(),
        }
