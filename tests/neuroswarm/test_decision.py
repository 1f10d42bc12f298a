"""
Unit tests for neuroswarm/decision.py

Tests objective prioritization, allocation and replanning.
"""

import pytest
from neuroswarm.decision import MissionObjective, Allocation, SwarmDecisionSystem
from neuroswarm.collective import SwarmCollective
from neuroswarm.agent import SwarmAgent, SensorReadings
from neuroswarm.config import ObjectiveKind, SwarmAction
from neuroswarm.contracts import ValidationError


def objective(oid, urgency, required=1, kind=ObjectiveKind.SURVEY):
    return MissionObjective(oid, kind, 100 + oid, urgency, required, 3600)


@pytest.fixture
def collective():
    c = SwarmCollective()
    for i in range(5):
        c.add_agent(SwarmAgent(i))
    return c


class TestMissionObjective:
    """Objective validation"""

    def test_urgency_range(self):
        with pytest.raises(ValidationError):
            objective(1, 1.5)

    def test_requires_agents(self):
        with pytest.raises(ValidationError):
            objective(1, 0.5, required=0)

    @pytest.mark.parametrize("required", [2.5, True, "3"])
    def test_requires_whole_agent_count(self, required):
        with pytest.raises(ValidationError):
            objective(1, 0.5, required=required)

    def test_deadline(self):
        with pytest.raises(ValidationError):
            MissionObjective(1, ObjectiveKind.SURVEY, 100, 0.5, 1, -1)


class TestPrioritization:
    """Tests for objective ranking"""

    def test_descending_urgency(self):
        system = SwarmDecisionSystem()
        system.add_objective(objective(1, 0.3))
        system.add_objective(objective(2, 0.9))
        ranked = system.prioritize_objectives()
        assert [o.objective_id for o in ranked] == [2, 1]

    def test_ties_keep_input_order(self):
        system = SwarmDecisionSystem()
        system.set_objectives([objective(i, 0.5) for i in range(4)])
        assert [o.objective_id for o in system.prioritize_objectives()] == [0, 1, 2, 3]


class TestAllocation:
    """Tests for greedy allocation"""

    def test_greedy_by_urgency(self, collective):
        system = SwarmDecisionSystem()
        system.set_objectives([objective(1, 0.9, 2), objective(2, 0.3, 2), objective(3, 0.5, 4)])
        allocation = system.allocate_agents(collective)
        assert allocation.assigned_to(1) == [0, 1]
        assert allocation.assigned_to(3) == [2, 3, 4]
        assert allocation.assigned_to(2) == []

    def test_never_over_assigns(self, collective):
        system = SwarmDecisionSystem()
        objectives = [objective(1, 0.9, 1), objective(2, 0.8, 2)]
        system.set_objectives(objectives)
        allocation = system.allocate_agents(collective)
        for obj in objectives:
            assert len(allocation.assigned_to(obj.objective_id)) <= obj.resources_required
        assert allocation.unassigned(collective.agent_ids()) == [3, 4]
        assert len(allocation) == 3

    def test_each_agent_at_most_once(self, collective):
        system = SwarmDecisionSystem()
        system.set_objectives([objective(i, 0.1 * i, 3) for i in range(1, 5)])
        allocation = system.allocate_agents(collective)
        assigned = [aid for aid in allocation]
        assert len(assigned) == len(set(assigned)) == 5

    def test_new_cycle_new_allocation(self, collective):
        system = SwarmDecisionSystem()
        system.set_objectives([objective(1, 0.9, 5)])
        first = system.allocate_agents(collective)
        system.set_objectives([])
        second = system.allocate_agents(collective)
        assert len(first) == 5
        assert len(second) == 0

    def test_empty_allocation(self):
        allocation = Allocation()
        assert allocation.get(1) is None
        assert allocation.to_record() == {}


class TestActions:
    """Tests for mission actions"""

    def test_allocated_action(self, collective):
        system = SwarmDecisionSystem()
        system.set_objectives([objective(1, 0.9, 1, ObjectiveKind.WATER_DELIVERY)])
        system.allocate_agents(collective)
        assert system.next_action_for_agent(collective.agents[0]) is SwarmAction.DELIVER
        assert system.next_action_for_agent(collective.agents[1]) is SwarmAction.EXPLORE

    def test_unknown_agent_id(self, collective):
        system = SwarmDecisionSystem()
        assert system.action_for_agent_id(collective, 99) is None
        assert system.counters.unknown_agent == 1

    def test_plan_covers_every_agent(self, collective):
        system = SwarmDecisionSystem()
        system.set_objectives([objective(1, 0.9, 2, ObjectiveKind.SOIL_AMENDMENT)])
        actions = system.plan(collective)
        assert set(actions) == set(collective.agent_ids())
        assert list(actions.values()).count(SwarmAction.AMEND) == 2


class TestFeasibilityAndReplanning:
    """Tests for feasibility and replanning"""

    def test_feasibility(self, collective):
        collective.coordination_state.group_cohesion = 0.5
        collective.coordination_state.average_arousal = 0.5
        system = SwarmDecisionSystem()
        # 5 agents for 10 required -> resources factor 0.5
        assert system.mission_feasibility(collective, objective(1, 0.5, 10)) == pytest.approx(0.5)

    def test_feasibility_capped(self, collective):
        collective.coordination_state.group_cohesion = 1.0
        collective.coordination_state.average_arousal = 1.0
        system = SwarmDecisionSystem()
        assert system.mission_feasibility(collective, objective(1, 0.5, 1)) == pytest.approx(1.0)

    def test_feasibility_empty(self):
        assert SwarmDecisionSystem().mission_feasibility(SwarmCollective(), objective(1, 0.5)) == 0.0

    def test_no_replan_when_calm(self, collective):
        system = SwarmDecisionSystem()
        system.set_objectives([objective(1, 0.3)])
        assert not system.replan_if_needed(collective)
        assert system.objectives[0].urgency == 0.3

    def test_replan_on_low_cohesion(self, collective):
        collective.coordination_state.group_cohesion = 0.1
        system = SwarmDecisionSystem()
        system.set_objectives([objective(1, 0.3), objective(2, 0.9)])
        assert system.replan_if_needed(collective)
        assert system.objectives[0].urgency == pytest.approx(0.15)
        assert system.objectives[1].urgency == pytest.approx(0.9)
        assert system.replan_count == 1

    def test_replan_compounds(self, collective):
        collective.coordination_state.average_arousal = 0.1
        system = SwarmDecisionSystem()
        system.set_objectives([objective(1, 0.4)])
        system.replan_if_needed(collective)
        system.replan_if_needed(collective)
        assert system.objectives[0].urgency == pytest.approx(0.1)

    def test_replan_on_threat(self, collective):
        collective.agents[2].sense(SensorReadings(threats_detected=1))
        assert SwarmDecisionSystem().needs_replanning(collective)
