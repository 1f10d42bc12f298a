"""
NeuroSwarm Simulation Driver
=============================
Fixed-timestep loop over the decision core.

Each tick runs, strictly in order:
  (a) per-agent sensing, decision and movement
  (b) collective aggregation (centroid, cohesion, consensus)
  (c) replanning and allocation of agents to mission objectives

Sensor snapshots, objectives and rewards come from the caller; a seeded
generator can stand in for them when no collaborator is attached.
"""

import numpy as np
from typing import Dict, List, Optional, Any, Callable, Mapping
from dataclasses import dataclass, field
import logging
import time

from .config import (
    SimulationConfig, AgentKind, AgentAction, ObjectiveKind, create_default_config
)
from .contracts import DiagnosticCounters, TickRecord, CoordinationTelemetry
from .agent import SwarmAgent, SensorReadings
from .collective import SwarmCollective
from .decision import SwarmDecisionSystem, MissionObjective, Allocation
from .reward import SwarmRewardPool, RewardInput
from .network import SpikingNetwork, build_feedforward_network
from .stdp import STDPRule

logger = logging.getLogger("NeuroSwarm.Simulation")

# Network input channels, one per sensor field
SENSOR_CHANNELS = (
    "soil_moisture_percent", "soil_ph", "temperature_c",
    "light_level", "co2_ppm", "threats_detected",
)


@dataclass
class TickResult:
    """Outputs of one tick, handed back to the external loop"""
    tick: int
    actions: Dict[int, AgentAction]
    mission_actions: Dict[int, Any]
    consensus: str
    telemetry: CoordinationTelemetry
    network_spikes: int
    replanned: bool
    allocation: Allocation

    def to_record(self) -> TickRecord:
        return {
            "tick": self.tick,
            "actions": {aid: a.value for aid, a in self.actions.items()},
            "mission_actions": {aid: a.value for aid, a in self.mission_actions.items()},
            "consensus": self.consensus,
            "telemetry": dict(self.telemetry),
            "network_spikes": self.network_spikes,
            "replanned": self.replanned,
            "allocation": self.allocation.to_record(),
        }


@dataclass
class SimulationResults:
    """History of a run"""
    ticks: List[TickResult] = field(default_factory=list)
    cohesion: List[float] = field(default_factory=list)
    arousal: List[float] = field(default_factory=list)
    network_spikes: List[int] = field(default_factory=list)
    value_estimates: List[float] = field(default_factory=list)
    spike_raster: List[List[int]] = field(default_factory=list)
    counters: Dict[str, int] = field(default_factory=dict)
    wall_time_s: float = 0.0

    def summary(self) -> Dict[str, Any]:
        final = self.ticks[-1] if self.ticks else None
        return {
            "n_ticks": len(self.ticks),
            "final_consensus": final.consensus if final else None,
            "final_telemetry": dict(final.telemetry) if final else None,
            "mean_cohesion": float(np.mean(self.cohesion)) if self.cohesion else 0.0,
            "total_network_spikes": int(np.sum(self.network_spikes)) if self.network_spikes else 0,
            "final_value_estimate": self.value_estimates[-1] if self.value_estimates else None,
            "replans": sum(1 for t in self.ticks if t.replanned),
            "counters": dict(self.counters),
            "wall_time_s": self.wall_time_s,
        }

    def to_record(self) -> Dict[str, Any]:
        return {
            "summary": self.summary(),
            "ticks": [t.to_record() for t in self.ticks],
        }


RewardFn = Callable[["SwarmSimulation", TickResult], Mapping[int, RewardInput]]


class SwarmSimulation:
    """
    One swarm, its reward pool, decision system and diagnostic network.

    All randomness (spawn positions, network wiring, synthetic sensor
    snapshots) comes from self.rng.
    """

    def __init__(self, config: Optional[SimulationConfig] = None,
                 rng: Optional[np.random.Generator] = None,
                 objectives: Optional[List[MissionObjective]] = None):
        self.config = config if config is not None else create_default_config()
        self.config.validate()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

        self.collective = SwarmCollective(0, self.config.collective)
        self._spawn_agents()

        self.reward_pool = SwarmRewardPool(0, self.config.reward)
        for agent_id in self.collective.agent_ids():
            self.reward_pool.ensure_learner(agent_id)

        self.decision_system = SwarmDecisionSystem(self.config.decision)
        if objectives:
            self.decision_system.set_objectives(objectives)

        self.network: Optional[SpikingNetwork] = None
        if self.config.use_network:
            self.network = build_feedforward_network(
                self.config.layer_sizes, self.rng,
                neuron_config=self.config.neuron,
                synapse_config=self.config.synapse,
                stdp=STDPRule(self.config.stdp),
            )

        self.tick_count = 0
        self.last_spike_history: List[List[int]] = []
        logger.info(f"Simulation '{self.config.scenario_name}' ready: "
                    f"{len(self.collective)} agents, "
                    f"network={'on' if self.network else 'off'}")

    def _spawn_agents(self):
        cfg = self.config
        n_aerial = int(round(cfg.n_agents * cfg.aerial_fraction))
        home_lat, home_lon = cfg.home_location

        for i in range(cfg.n_agents):
            kind = AgentKind.AERIAL if i < n_aerial else AgentKind.GROUND
            offset = self.rng.normal(0.0, cfg.spawn_spread_deg, size=2)
            altitude = 100.0 if kind is AgentKind.AERIAL else 0.0
            agent = SwarmAgent(
                i, kind,
                position=(home_lat + offset[0], home_lon + offset[1], altitude),
                heading=float(self.rng.uniform(0.0, 360.0)),
                config=cfg.agent,
            )
            self.collective.add_agent(agent)

    # ------------------------------------------------------------------
    # Collaborator stand-ins
    # ------------------------------------------------------------------

    def synthetic_snapshots(self) -> Dict[int, SensorReadings]:
        """Draw one sensor snapshot per agent from the seeded generator"""
        scenario = self.config.scenario_name
        moisture_high = 15.0 if scenario == "drought" else 60.0
        threat_rate = 0.2 if scenario == "wildfire" else 0.02

        snapshots = {}
        for agent_id in self.collective.agent_ids():
            snapshots[agent_id] = SensorReadings(
                soil_moisture_percent=float(self.rng.uniform(0.0, moisture_high)),
                soil_ph=float(self.rng.normal(6.5, 0.6)),
                temperature_c=float(self.rng.normal(24.0, 6.0)),
                light_level=float(self.rng.uniform(0.0, 1.0)),
                co2_ppm=float(self.rng.normal(410.0, 15.0)),
                threats_detected=int(self.rng.poisson(threat_rate)),
            )
        return snapshots

    def default_objectives(self) -> List[MissionObjective]:
        """A small fixed mission for runs without a planning collaborator"""
        n = len(self.collective)
        return [
            MissionObjective(1, ObjectiveKind.SURVEY, 100, 0.6, max(1, n // 4), 3600),
            MissionObjective(2, ObjectiveKind.WATER_DELIVERY, 101, 0.8, max(1, n // 4), 1800),
            MissionObjective(3, ObjectiveKind.WILDLIFE_MONITORING, 102, 0.3, max(1, n // 5), 7200),
            MissionObjective(4, ObjectiveKind.FIRE_SUPPRESSION_PREP, 103, 0.45, max(1, n // 5), 600),
        ]

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def _sensor_currents(self) -> Dict[int, float]:
        """Encode the swarm's mean sensor state as input-layer currents"""
        agents = list(self.collective)
        if not agents or self.network is None or not self.network.layers:
            return {}
        s = [a.sensors for a in agents]
        channels = np.array([
            np.mean([r.soil_moisture_percent for r in s]) / 100.0,
            np.mean([r.soil_ph for r in s]) / 14.0,
            (np.mean([r.temperature_c for r in s]) + 10.0) / 50.0,
            np.mean([r.light_level for r in s]),
            np.mean([r.co2_ppm for r in s]) / 1000.0,
            min(np.mean([r.threats_detected for r in s]), 1.0),
        ])
        channels = np.clip(channels, 0.0, 1.0) * self.config.input_current_scale
        input_ids = self.network.layers[0].unit_ids()
        return {uid: float(channels[i % len(SENSOR_CHANNELS)]) for i, uid in enumerate(input_ids)}

    def _run_network(self) -> List[List[int]]:
        """Drive the diagnostic network for one tick; spike ids per step"""
        if self.network is None:
            return []
        return self.network.run(self.config.network_steps_per_tick,
                                self.config.network_dt_ms,
                                input_currents=self._sensor_currents())

    def tick(self, snapshots: Optional[Mapping[int, Any]] = None,
             objectives: Optional[List[MissionObjective]] = None) -> TickResult:
        """
        Advance the swarm by one tick.

        Args:
            snapshots: Sensor readings keyed by agent id
            objectives: Replacement objective list from the planner

        Returns:
            TickResult with per-agent actions, consensus and telemetry
        """
        cfg = self.config
        if objectives is not None:
            self.decision_system.set_objectives(objectives)

        # (a) per-agent decisions, then movement
        actions = self.collective.update_agents(snapshots, workers=cfg.workers)
        home_lat, home_lon = cfg.home_location
        for agent_id, action in actions.items():
            if action is AgentAction.RETURN_HOME:
                self.collective.agents[agent_id].move_toward(home_lat, home_lon)
        self.collective.local_alignment()
        self.collective.local_separation()

        # (b) aggregation and consensus
        self.collective.step(cfg.dt_seconds)

        # (c) replanning and allocation
        replanned = self.decision_system.replan_if_needed(self.collective)
        allocation = self.decision_system.allocate_agents(self.collective)
        mission_actions = {
            agent.id: self.decision_system.next_action_for_agent(agent, allocation)
            for agent in self.collective
        }

        self.last_spike_history = self._run_network()

        result = TickResult(
            tick=self.tick_count,
            actions=actions,
            mission_actions=mission_actions,
            consensus=self.collective.consensus_decision.value,
            telemetry=self.collective.telemetry(),
            network_spikes=sum(len(step) for step in self.last_spike_history),
            replanned=replanned,
            allocation=allocation,
        )
        self.tick_count += 1
        return result

    def apply_rewards(self, individual: Optional[Mapping[int, RewardInput]] = None,
                      shared: Optional[RewardInput] = None):
        """Feed externally computed rewards into the pool"""
        if individual:
            for agent_id, signal in individual.items():
                self.reward_pool.reward_agent(agent_id, signal)
        if shared is not None:
            self.reward_pool.distribute_shared_reward(shared)

    def counters(self) -> DiagnosticCounters:
        """Absorbed-condition counts across every component"""
        total = self.collective.counters.merge(self.reward_pool.counters)
        total = total.merge(self.decision_system.counters)
        if self.network is not None:
            total = total.merge(self.network.counters)
        return total

    def run(self, n_ticks: int, reward_fn: Optional[RewardFn] = None,
            use_default_objectives: bool = True) -> SimulationResults:
        """
        Run n_ticks with synthetic snapshots.

        Args:
            n_ticks: Number of ticks
            reward_fn: Maps (simulation, tick result) to per-agent rewards
            use_default_objectives: Seed the planner with a fixed mission
                when it has no objectives

        Returns:
            SimulationResults
        """
        if use_default_objectives and not self.decision_system.objectives:
            self.decision_system.set_objectives(self.default_objectives())

        results = SimulationResults()
        start = time.time()
        logger.info(f"Starting simulation: {n_ticks} ticks")

        for _ in range(n_ticks):
            result = self.tick(self.synthetic_snapshots())

            if reward_fn is not None:
                self.apply_rewards(reward_fn(self, result))

            state = self.collective.coordination_state
            results.ticks.append(result)
            results.cohesion.append(state.group_cohesion)
            results.arousal.append(state.average_arousal)
            results.network_spikes.append(result.network_spikes)
            results.value_estimates.append(self.reward_pool.average_value_estimate())
            results.spike_raster.extend(self.last_spike_history)

        results.counters = self.counters().as_dict()
        results.wall_time_s = time.time() - start
        logger.info(f"Simulation complete: consensus={self.collective.consensus_decision.value}, "
                    f"cohesion={self.collective.coordination_state.group_cohesion:.3f}")
        return results
