"""
NeuroSwarm Mission Decisions
=============================
Mission objectives, prioritization and agent allocation.

- Objectives ranked by descending urgency (stable: ties keep input order)
- Greedy allocation: each ranked objective takes up to its required count
  from the collective's agents in enumeration order
- Feasibility: 0.4 * min(n / required, 1) + 0.3 * cohesion + 0.3 * arousal
- Replanning halves the urgency of non-urgent objectives whenever the swarm
  loses cohesion, arousal drops, or any agent reports a threat
"""

from typing import Dict, List, Optional, Iterable, Any
from dataclasses import dataclass
from types import MappingProxyType
import logging
import numbers

from .config import DecisionConfig, ObjectiveKind, SwarmAction
from .contracts import (
    DiagnosticCounters, UNKNOWN_AGENT, ValidationError, require_unit_interval
)
from .agent import SwarmAgent
from .collective import SwarmCollective

logger = logging.getLogger("NeuroSwarm.Decision")


OBJECTIVE_ACTIONS = {
    ObjectiveKind.SURVEY: SwarmAction.SURVEY,
    ObjectiveKind.WATER_DELIVERY: SwarmAction.DELIVER,
    ObjectiveKind.SOIL_AMENDMENT: SwarmAction.AMEND,
    ObjectiveKind.WILDLIFE_MONITORING: SwarmAction.MONITOR,
    ObjectiveKind.FIRE_SUPPRESSION_PREP: SwarmAction.RETREAT,
}


@dataclass
class MissionObjective:
    """Objective supplied by the planning collaborator"""
    objective_id: int
    objective_type: ObjectiveKind
    target_zone_id: int
    urgency: float  # 0-1
    resources_required: int  # Agents needed
    deadline_seconds: int

    def __post_init__(self):
        require_unit_interval(f"objective {self.objective_id} urgency", self.urgency)
        if (not isinstance(self.resources_required, numbers.Integral)
                or isinstance(self.resources_required, bool)
                or self.resources_required <= 0):
            raise ValidationError(
                f"objective {self.objective_id} requires a whole number of agents > 0, "
                f"got {self.resources_required}"
            )
        if self.deadline_seconds < 0:
            raise ValidationError(
                f"objective {self.objective_id} deadline must be non-negative"
            )

    def to_record(self) -> Dict[str, Any]:
        return {
            "objective_id": self.objective_id,
            "objective_type": self.objective_type.value,
            "target_zone_id": self.target_zone_id,
            "urgency": self.urgency,
            "resources_required": self.resources_required,
            "deadline_seconds": self.deadline_seconds,
        }


class Allocation:
    """
    Agent id -> objective for one planning cycle.

    Read-only; a new planning cycle produces a new Allocation.
    """

    def __init__(self, assignments: Optional[Dict[int, MissionObjective]] = None):
        self._assignments = MappingProxyType(dict(assignments or {}))

    def __len__(self) -> int:
        return len(self._assignments)

    def __contains__(self, agent_id: int) -> bool:
        return agent_id in self._assignments

    def __iter__(self):
        return iter(self._assignments)

    def get(self, agent_id: int) -> Optional[MissionObjective]:
        return self._assignments.get(agent_id)

    def items(self):
        return self._assignments.items()

    def assigned_to(self, objective_id: int) -> List[int]:
        return [aid for aid, obj in self._assignments.items()
                if obj.objective_id == objective_id]

    def unassigned(self, agent_ids: Iterable[int]) -> List[int]:
        return [aid for aid in agent_ids if aid not in self._assignments]

    def to_record(self) -> Dict[int, int]:
        return {aid: obj.objective_id for aid, obj in self._assignments.items()}


class SwarmDecisionSystem:
    """Decision-making system for swarm missions"""

    def __init__(self, config: Optional[DecisionConfig] = None):
        self.config = config if config is not None else DecisionConfig()
        self.objectives: List[MissionObjective] = []
        self.allocation = Allocation()
        self.replan_count = 0
        self.counters = DiagnosticCounters()

    def add_objective(self, objective: MissionObjective):
        self.objectives.append(objective)

    def set_objectives(self, objectives: Iterable[MissionObjective]):
        """Replace the objective list with a fresh supply from the planner"""
        self.objectives = list(objectives)

    def prioritize_objectives(self) -> List[MissionObjective]:
        """Objectives by descending urgency, stable for ties"""
        return sorted(self.objectives, key=lambda o: -o.urgency)

    def allocate_agents(self, collective: SwarmCollective) -> Allocation:
        """
        Greedy allocation of agents to ranked objectives.

        No objective receives more than its required count and no agent is
        assigned twice. Agents left over stay unassigned.
        """
        assignments: Dict[int, MissionObjective] = {}
        agent_ids = collective.agent_ids()
        agent_idx = 0

        for objective in self.prioritize_objectives():
            for _ in range(objective.resources_required):
                if agent_idx >= len(agent_ids):
                    break
                assignments[agent_ids[agent_idx]] = objective
                agent_idx += 1

        self.allocation = Allocation(assignments)
        logger.debug(f"Allocated {len(assignments)}/{len(agent_ids)} agents "
                     f"to {len(self.objectives)} objectives")
        return self.allocation

    def mission_feasibility(self, collective: SwarmCollective,
                            objective: MissionObjective) -> float:
        """Estimated probability of mission success"""
        if len(collective) == 0:
            return 0.0

        cfg = self.config
        state = collective.coordination_state
        resources_factor = min(len(collective) / objective.resources_required, 1.0)

        feasibility = (resources_factor * cfg.resources_weight
                       + state.group_cohesion * cfg.cohesion_weight
                       + state.average_arousal * cfg.arousal_weight)
        return min(feasibility, 1.0)

    def needs_replanning(self, collective: SwarmCollective) -> bool:
        cfg = self.config
        state = collective.coordination_state
        low_cohesion = state.group_cohesion < cfg.low_cohesion_threshold
        low_arousal = state.average_arousal < cfg.low_arousal_threshold
        threats = any(a.sensors.threats_detected > 0 for a in collective)
        return low_cohesion or low_arousal or threats

    def replan_if_needed(self, collective: SwarmCollective) -> bool:
        """
        Decay non-urgent objectives when the swarm is stressed.

        Repeated triggers compound the decay.

        Returns:
            True if replanning was triggered
        """
        if not self.needs_replanning(collective):
            return False

        cfg = self.config
        decayed = 0
        for objective in self.objectives:
            if objective.urgency < cfg.non_urgent_threshold:
                objective.urgency *= cfg.urgency_decay
                decayed += 1

        self.replan_count += 1
        logger.info(f"Replanning triggered for swarm {collective.swarm_id}: "
                    f"{decayed} objectives deprioritized")
        return True

    def next_action_for_agent(self, agent: SwarmAgent,
                              allocation: Optional[Allocation] = None) -> SwarmAction:
        """Mission action for an agent under an allocation"""
        allocation = allocation if allocation is not None else self.allocation
        objective = allocation.get(agent.id)
        if objective is None:
            return SwarmAction.EXPLORE
        return OBJECTIVE_ACTIONS[objective.objective_type]

    def action_for_agent_id(self, collective: SwarmCollective, agent_id: int) -> Optional[SwarmAction]:
        agent = collective.agents.get(agent_id)
        if agent is None:
            self.counters.record(UNKNOWN_AGENT, f"action for agent {agent_id}")
            return None
        return self.next_action_for_agent(agent)

    def plan(self, collective: SwarmCollective) -> Dict[int, SwarmAction]:
        """Replan if needed, allocate, and map every agent to an action"""
        self.replan_if_needed(collective)
        allocation = self.allocate_agents(collective)
        return {agent.id: self.next_action_for_agent(agent, allocation)
                for agent in collective}
