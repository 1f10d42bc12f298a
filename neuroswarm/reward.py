"""
NeuroSwarm Reward Learning
===========================
Per-agent and pooled temporal-difference value learning driven by
ecological outcome signals.

Value update (single-state approximation, the same estimate serves as
current and successor value):
    V <- V + alpha * (r + gamma * V - V)
"""

from typing import Dict, List, Union, Any, Optional
from dataclasses import dataclass, field
from enum import Enum
import logging

import numpy as np

from .config import RewardConfig
from .contracts import DiagnosticCounters, UNKNOWN_AGENT, DIVISION_GUARD

logger = logging.getLogger("NeuroSwarm.Reward")


class RewardKind(Enum):
    """Reward signal categories"""
    TREE_GROWTH = "tree_growth"
    SOIL_HEALTH_IMPROVEMENT = "soil_health_improvement"
    WILDLIFE_RETURN = "wildlife_return"
    WATER_CONSERVATION = "water_conservation"
    FIRE_RISK_REDUCTION = "fire_risk_reduction"
    PENALTY = "penalty"  # Failed task; magnitude is negated


@dataclass(frozen=True)
class RewardSignal:
    """Tagged reward from the ecological outcome collaborator"""
    kind: RewardKind
    magnitude: float

    def value(self) -> float:
        if self.kind is RewardKind.PENALTY:
            return -self.magnitude
        return self.magnitude


RewardInput = Union[RewardSignal, float]


def reward_value(signal: RewardInput) -> float:
    if isinstance(signal, RewardSignal):
        return signal.value()
    return float(signal)


@dataclass
class RewardLearner:
    """Reward-driven learning state for one agent"""
    agent_id: int
    cumulative_reward: float = 0.0
    episode_rewards: List[float] = field(default_factory=list)
    value_estimate: float = 0.5  # V(s)
    learning_rate: float = 0.1  # alpha
    discount_factor: float = 0.99  # gamma
    episode_count: int = 0

    @classmethod
    def from_config(cls, agent_id: int, config: RewardConfig) -> "RewardLearner":
        return cls(
            agent_id=agent_id,
            value_estimate=config.initial_value,
            learning_rate=config.learning_rate,
            discount_factor=config.discount_factor,
        )

    def receive_reward(self, signal: RewardInput) -> float:
        """
        Record a reward and update the value estimate.

        Returns:
            The TD error of this update
        """
        r = reward_value(signal)
        self.cumulative_reward += r
        self.episode_rewards.append(r)

        td_error = r + self.discount_factor * self.value_estimate - self.value_estimate
        self.value_estimate += self.learning_rate * td_error

        logger.debug(f"Agent {self.agent_id}: reward={r:.3f} "
                     f"value_estimate={self.value_estimate:.4f}")
        return td_error

    def advantage(self, action_value: float) -> float:
        """A(s, a) = Q(s, a) - V(s)"""
        return action_value - self.value_estimate

    def average_episode_reward(self) -> float:
        if not self.episode_rewards:
            return 0.0
        return float(np.mean(self.episode_rewards))

    def start_new_episode(self):
        """Clear the current episode; cumulative reward and V persist"""
        self.episode_rewards.clear()
        self.episode_count += 1

    def to_record(self) -> Dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "cumulative_reward": self.cumulative_reward,
            "episode_rewards": list(self.episode_rewards),
            "value_estimate": self.value_estimate,
            "learning_rate": self.learning_rate,
            "discount_factor": self.discount_factor,
            "episode_count": self.episode_count,
        }


class SwarmRewardPool:
    """
    Reward aggregation across the swarm.

    The pool owns its learners exclusively. Shared rewards are split evenly
    across registered learners; individual rewards to unregistered agent
    ids are absorbed.
    """

    def __init__(self, pool_id: int = 0, config: Optional[RewardConfig] = None):
        self.pool_id = pool_id
        self.config = config if config is not None else RewardConfig()
        self.individual_learners: Dict[int, RewardLearner] = {}
        self.collective_reward = 0.0
        self.counters = DiagnosticCounters()

    def __len__(self) -> int:
        return len(self.individual_learners)

    def __contains__(self, agent_id: int) -> bool:
        return agent_id in self.individual_learners

    def register_learner(self, learner: RewardLearner):
        self.individual_learners[learner.agent_id] = learner

    def ensure_learner(self, agent_id: int,
                       config: Optional[RewardConfig] = None) -> RewardLearner:
        """Get the learner for agent_id, creating one from config if needed"""
        learner = self.individual_learners.get(agent_id)
        if learner is None:
            learner = RewardLearner.from_config(agent_id, config or self.config)
            self.register_learner(learner)
        return learner

    def distribute_shared_reward(self, signal: RewardInput):
        """Split a collective reward equally across all learners"""
        r = reward_value(signal)
        self.collective_reward += r

        n = len(self.individual_learners)
        if n == 0:
            self.counters.record(DIVISION_GUARD, f"pool {self.pool_id} has no learners")
            return

        share = r / n
        for learner in self.individual_learners.values():
            learner.receive_reward(share)

        logger.debug(f"Pool {self.pool_id}: shared reward {r:.3f} over {n} learners")

    def reward_agent(self, agent_id: int, signal: RewardInput) -> bool:
        """Individual reward. Returns False for an unregistered agent."""
        learner = self.individual_learners.get(agent_id)
        if learner is None:
            self.counters.record(UNKNOWN_AGENT, f"reward for agent {agent_id}")
            return False
        learner.receive_reward(signal)
        return True

    def start_new_episode(self):
        for learner in self.individual_learners.values():
            learner.start_new_episode()

    def average_value_estimate(self) -> float:
        if not self.individual_learners:
            return 0.0
        return float(np.mean([l.value_estimate for l in self.individual_learners.values()]))

    def to_record(self) -> Dict[str, Any]:
        return {
            "pool_id": self.pool_id,
            "collective_reward": self.collective_reward,
            "average_value_estimate": self.average_value_estimate(),
            "learners": {aid: l.to_record() for aid, l in self.individual_learners.items()},
        }
