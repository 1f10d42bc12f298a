"""
NeuroSwarm
==========
Neuromorphic swarm decision engine for ecosystem restoration.

Aerial, ground and sensor agents decide where to act through a
lightweight spiking-neuron-inspired cognition layer; the swarm aggregates
their decision states into a consensus and allocates agents to mission
objectives.

Modules:
--------
- config: Configuration dataclasses, enums and scenario presets
- contracts: Error taxonomy, diagnostic counters, telemetry records
- neuron: Leaky integrate-and-fire units and Poisson generators
- synapse: Synaptic links with eligibility traces, delay lines
- network: Layers and multi-layer spiking networks
- stdp: Spike-timing-dependent plasticity
- reward: Temporal-difference reward learners and the swarm reward pool
- agent: Unified swarm agent (aerial / ground / sensor)
- collective: Centroid, cohesion, flocking and majority consensus
- decision: Mission objectives, prioritization and allocation
- simulation: Fixed-timestep tick driver
- visualize: matplotlib diagnostics
- main: CLI

Example Usage:
--------------
>>> from neuroswarm import SwarmSimulation, create_small_test_config
>>> sim = SwarmSimulation(create_small_test_config())
>>> result = sim.tick(sim.synthetic_snapshots())
>>> sorted(result.actions) == sim.collective.agent_ids()
True
"""

__version__ = "0.1.0"

from .config import (
    SimulationConfig,
    NeuronConfig,
    SynapseConfig,
    STDPConfig,
    RewardConfig,
    AgentConfig,
    CollectiveConfig,
    DecisionConfig,
    create_default_config,
    create_small_test_config,
    create_benchmark_config,
    AgentKind,
    BehaviorState,
    AgentAction,
    ConsensusDecision,
    ObjectiveKind,
    SwarmAction,
)

from .contracts import (
    NeuroSwarmError,
    ValidationError,
    DiagnosticCounters,
)

from .neuron import SpikingUnit, PoissonGenerator
from .synapse import SynapticLink, DelayLine
from .network import NeuralLayer, SpikingNetwork, build_feedforward_network
from .stdp import STDPRule, stdp_window
from .reward import RewardKind, RewardSignal, RewardLearner, SwarmRewardPool
from .agent import SwarmAgent, SensorReadings, DecisionState
from .collective import SwarmCollective, CoordinationState
from .decision import MissionObjective, Allocation, SwarmDecisionSystem
from .simulation import SwarmSimulation, TickResult, SimulationResults

__all__ = [
    "__version__",

    # Configuration
    "SimulationConfig",
    "NeuronConfig",
    "SynapseConfig",
    "STDPConfig",
    "RewardConfig",
    "AgentConfig",
    "CollectiveConfig",
    "DecisionConfig",
    "create_default_config",
    "create_small_test_config",
    "create_benchmark_config",
    "AgentKind",
    "BehaviorState",
    "AgentAction",
    "ConsensusDecision",
    "ObjectiveKind",
    "SwarmAction",

    # Contracts
    "NeuroSwarmError",
    "ValidationError",
    "DiagnosticCounters",

    # Spiking substrate
    "SpikingUnit",
    "PoissonGenerator",
    "SynapticLink",
    "DelayLine",
    "NeuralLayer",
    "SpikingNetwork",
    "build_feedforward_network",
    "STDPRule",
    "stdp_window",

    # Reward
    "RewardKind",
    "RewardSignal",
    "RewardLearner",
    "SwarmRewardPool",

    # Swarm
    "SwarmAgent",
    "SensorReadings",
    "DecisionState",
    "SwarmCollective",
    "CoordinationState",
    "MissionObjective",
    "Allocation",
    "SwarmDecisionSystem",

    # Simulation
    "SwarmSimulation",
    "TickResult",
    "SimulationResults",
]
