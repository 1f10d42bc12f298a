"""
NeuroSwarm Collective
======================
Swarm-level aggregation built on individual agent decision states.

- Centroid: arithmetic mean of agent lat/lon and arousal
- Cohesion: exp(-scale * mean distance to centroid), clamped to [0, 1]
- Consensus: majority vote over task-priority buckets with a fixed
  tie-break order (explore, concentrate, retreat)
- Flocking: alignment and separation, computed against a snapshot of the
  swarm and applied in a second pass

Agents are kept in insertion order so every aggregate is reproducible.
"""

import numpy as np
from typing import Dict, List, Tuple, Optional, Mapping, Any, Iterator
from dataclasses import dataclass, asdict
from concurrent.futures import ThreadPoolExecutor
import logging
import math

from .config import CollectiveConfig, ConsensusDecision, AgentAction
from .contracts import (
    CoordinationTelemetry, DiagnosticCounters, EMPTY_COLLECTIVE, UNKNOWN_AGENT,
    require_positive,
)
from .agent import SwarmAgent, SensorReadings, DecisionUpdate

logger = logging.getLogger("NeuroSwarm.Collective")

# Evaluation order doubles as the tie-break order
CONSENSUS_ORDER = (
    ConsensusDecision.EXPLORE,
    ConsensusDecision.CONCENTRATE,
    ConsensusDecision.RETREAT,
)


@dataclass
class CoordinationState:
    """Aggregate coordination state of the swarm"""
    centroid_lat: float = 0.0
    centroid_lon: float = 0.0
    average_arousal: float = 0.5
    group_cohesion: float = 0.5  # 0-1
    time_since_decision_s: float = 0.0


@dataclass(frozen=True)
class _AgentSnapshot:
    id: int
    lat: float
    lon: float
    heading: float


class SwarmCollective:
    """
    Collective of swarm agents.

    Owns its agents exclusively. Aggregation over an empty collective is a
    no-op recorded in the diagnostic counters.
    """

    def __init__(self, swarm_id: int = 0, config: Optional[CollectiveConfig] = None):
        self.swarm_id = swarm_id
        self.config = config if config is not None else CollectiveConfig()
        self.agents: Dict[int, SwarmAgent] = {}
        self.consensus_decision = ConsensusDecision.EXPLORE
        self.coordination_state = CoordinationState()
        self.last_vote_counts: Dict[ConsensusDecision, int] = {d: 0 for d in CONSENSUS_ORDER}
        self.counters = DiagnosticCounters()

    def __len__(self) -> int:
        return len(self.agents)

    def __iter__(self) -> Iterator[SwarmAgent]:
        return iter(self.agents.values())

    def __contains__(self, agent_id: int) -> bool:
        return agent_id in self.agents

    def agent_ids(self) -> List[int]:
        return list(self.agents.keys())

    def add_agent(self, agent: SwarmAgent):
        """Add agent; an existing agent with the same id is replaced"""
        self.agents[agent.id] = agent

    def remove_agent(self, agent_id: int) -> Optional[SwarmAgent]:
        agent = self.agents.pop(agent_id, None)
        if agent is None:
            self.counters.record(UNKNOWN_AGENT, f"remove agent {agent_id}")
        return agent

    def _is_empty(self, operation: str) -> bool:
        if self.agents:
            return False
        self.counters.record(EMPTY_COLLECTIVE, f"swarm {self.swarm_id} {operation}")
        return True

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def update_centroid(self):
        """Mean position and arousal; unchanged for an empty collective"""
        if self._is_empty("centroid"):
            return

        coords = np.array([(a.position[0], a.position[1], a.decision.arousal_level)
                           for a in self.agents.values()])
        mean = coords.mean(axis=0)
        self.coordination_state.centroid_lat = float(mean[0])
        self.coordination_state.centroid_lon = float(mean[1])
        self.coordination_state.average_arousal = float(mean[2])

    def calculate_cohesion(self):
        """Closer to the centroid means higher cohesion"""
        if self._is_empty("cohesion"):
            self.coordination_state.group_cohesion = 0.0
            return

        state = self.coordination_state
        offsets = np.array([(a.position[0] - state.centroid_lat,
                             a.position[1] - state.centroid_lon)
                            for a in self.agents.values()])
        avg_distance = float(np.linalg.norm(offsets, axis=1).mean())
        cohesion = math.exp(-avg_distance * self.config.cohesion_scale)
        state.group_cohesion = float(np.clip(cohesion, 0.0, 1.0))

    def vote_counts(self) -> Dict[ConsensusDecision, int]:
        """Bucket every agent by task priority"""
        counts = {d: 0 for d in CONSENSUS_ORDER}
        high = self.config.concentrate_threshold
        low = self.config.retreat_threshold
        for agent in self.agents.values():
            p = agent.decision.task_priority
            if p > high:
                counts[ConsensusDecision.CONCENTRATE] += 1
            elif p < low:
                counts[ConsensusDecision.RETREAT] += 1
            else:
                counts[ConsensusDecision.EXPLORE] += 1
        return counts

    def consensus_majority(self) -> ConsensusDecision:
        """Majority vote; ties resolve to the earliest in CONSENSUS_ORDER"""
        if self._is_empty("consensus"):
            return self.consensus_decision

        counts = self.vote_counts()
        best = max(counts.values())
        winner = next(d for d in CONSENSUS_ORDER if counts[d] == best)

        if winner != self.consensus_decision:
            logger.info(f"Swarm {self.swarm_id} consensus "
                        f"{self.consensus_decision.value} -> {winner.value} "
                        f"(votes {[counts[d] for d in CONSENSUS_ORDER]})")
            self.coordination_state.time_since_decision_s = 0.0

        self.last_vote_counts = counts
        self.consensus_decision = winner
        return winner

    # ------------------------------------------------------------------
    # Flocking (two-phase: compute from snapshot, then apply)
    # ------------------------------------------------------------------

    def _snapshot(self) -> List[_AgentSnapshot]:
        return [_AgentSnapshot(a.id, a.position[0], a.position[1], a.heading)
                for a in self.agents.values()]

    def _distance_km(self, a: _AgentSnapshot, b: _AgentSnapshot) -> float:
        return math.hypot(b.lat - a.lat, b.lon - a.lon) * self.config.km_per_degree

    def local_alignment(self, neighbor_radius_km: Optional[float] = None) -> Dict[int, float]:
        """
        Blend each heading with its neighbourhood average (self included).

        Returns:
            New heading per agent that had at least one neighbour
        """
        radius = neighbor_radius_km if neighbor_radius_km is not None else self.config.neighbor_radius_km
        snapshot = self._snapshot()
        blend = self.config.alignment_blend

        new_headings: Dict[int, float] = {}
        for me in snapshot:
            heading_sum = me.heading
            neighbor_count = 0
            for other in snapshot:
                if other.id == me.id:
                    continue
                if self._distance_km(me, other) < radius:
                    heading_sum += other.heading
                    neighbor_count += 1

            if neighbor_count > 0:
                avg_heading = heading_sum / (neighbor_count + 1)
                new_headings[me.id] = blend * me.heading + (1.0 - blend) * avg_heading

        for agent_id, heading in new_headings.items():
            self.agents[agent_id].heading = heading
        return new_headings

    def local_separation(self, min_distance_km: Optional[float] = None) -> Dict[int, Tuple[float, float]]:
        """
        Push apart agents closer than min_distance_km (inverse-square).

        Returns:
            Velocity correction (north, east) per agent
        """
        min_km = min_distance_km if min_distance_km is not None else self.config.min_separation_km
        snapshot = self._snapshot()
        gain = self.config.separation_gain
        floor = self.config.min_pair_distance_km

        corrections: Dict[int, Tuple[float, float]] = {}
        for me in snapshot:
            repulsion_lat = 0.0
            repulsion_lon = 0.0
            for other in snapshot:
                if other.id == me.id:
                    continue
                dist_km = self._distance_km(me, other)
                if floor < dist_km < min_km:
                    repulsion_lat += (me.lat - other.lat) / (dist_km * dist_km)
                    repulsion_lon += (me.lon - other.lon) / (dist_km * dist_km)
            corrections[me.id] = (repulsion_lat * gain, repulsion_lon * gain)

        for agent_id, (d_n, d_e) in corrections.items():
            agent = self.agents[agent_id]
            v_n, v_e, v_z = agent.velocity
            agent.velocity = (v_n + d_n, v_e + d_e, v_z)
        return corrections

    # ------------------------------------------------------------------
    # Per-agent phase
    # ------------------------------------------------------------------

    def update_agents(self, snapshots: Optional[Mapping[int, Any]] = None,
                      workers: Optional[int] = None) -> Dict[int, AgentAction]:
        """
        Sense and decide for every agent.

        Decisions are computed into a private scratch map (in parallel when
        workers > 1) and merged only after every agent has finished.

        Args:
            snapshots: Sensor readings keyed by agent id
            workers: Thread count for the decision phase (None/0/1 = sequential)

        Returns:
            Action per agent id, in collective order
        """
        if snapshots:
            # Parse every snapshot first so malformed readings change nothing
            parsed: Dict[int, SensorReadings] = {}
            for agent_id, readings in snapshots.items():
                if agent_id not in self.agents:
                    self.counters.record(UNKNOWN_AGENT, f"snapshot for agent {agent_id}")
                    continue
                if not isinstance(readings, SensorReadings):
                    readings = SensorReadings.from_mapping(readings)
                parsed[agent_id] = readings
            for agent_id, readings in parsed.items():
                self.agents[agent_id].sense(readings)

        agents = list(self.agents.values())
        if workers and workers > 1 and len(agents) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                updates: List[DecisionUpdate] = list(pool.map(SwarmAgent.compute_decision, agents))
        else:
            updates = [agent.compute_decision() for agent in agents]

        return {u.agent_id: self.agents[u.agent_id].apply_decision(u) for u in updates}

    def step(self, dt_seconds: float):
        """Move every agent, then aggregate and vote"""
        require_positive("dt_seconds", dt_seconds)
        for agent in self.agents.values():
            agent.move(dt_seconds)

        self.update_centroid()
        self.calculate_cohesion()
        self.consensus_majority()

        self.coordination_state.time_since_decision_s += dt_seconds

    def telemetry(self) -> CoordinationTelemetry:
        state = asdict(self.coordination_state)
        return {
            "swarm_id": self.swarm_id,
            "n_agents": len(self.agents),
            "centroid_lat": state["centroid_lat"],
            "centroid_lon": state["centroid_lon"],
            "average_arousal": state["average_arousal"],
            "group_cohesion": state["group_cohesion"],
            "time_since_decision_s": state["time_since_decision_s"],
            "consensus": self.consensus_decision.value,
        }
