"""
Pytest configuration and shared fixtures for NeuroSwarm tests.
"""

import pytest
import numpy as np
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests"""
    return np.random.default_rng(42)


@pytest.fixture
def neuron_config():
    """Default neuron configuration"""
    from neuroswarm.config import NeuronConfig
    return NeuronConfig()


@pytest.fixture
def synapse_config():
    """Default synapse configuration"""
    from neuroswarm.config import SynapseConfig
    return SynapseConfig()


@pytest.fixture
def stdp_config():
    """Default STDP configuration"""
    from neuroswarm.config import STDPConfig
    return STDPConfig()


@pytest.fixture
def reward_config():
    """Default reward configuration"""
    from neuroswarm.config import RewardConfig
    return RewardConfig()


@pytest.fixture
def small_config():
    """Small simulation configuration for fast tests"""
    from neuroswarm.config import create_small_test_config
    return create_small_test_config()


@pytest.fixture
def unit(neuron_config):
    """A single resting LIF unit"""
    from neuroswarm.neuron import SpikingUnit
    return SpikingUnit.from_config(0, neuron_config)


@pytest.fixture
def two_agent_collective():
    """Collective with agents at (33.0, -112.0) and (33.1, -112.1)"""
    from neuroswarm.agent import SwarmAgent
    from neuroswarm.collective import SwarmCollective
    from neuroswarm.config import AgentKind

    collective = SwarmCollective(swarm_id=1)
    collective.add_agent(SwarmAgent(1, AgentKind.AERIAL, position=(33.0, -112.0, 100.0)))
    collective.add_agent(SwarmAgent(2, AgentKind.GROUND, position=(33.1, -112.1, 0.0)))
    return collective


@pytest.fixture
def make_agent():
    """Factory for agents with a given task priority"""
    from neuroswarm.agent import SwarmAgent
    from neuroswarm.config import AgentKind

    def _make(agent_id, priority=0.3, position=(33.0, -112.0, 0.0), kind=AgentKind.GROUND):
        agent = SwarmAgent(agent_id, kind, position=position)
        agent.decision.task_priority = priority
        return agent

    return _make


@pytest.fixture
def small_network(rng):
    """Fully connected, all-excitatory 3-2 network strong enough to relay spikes"""
    from neuroswarm.config import SynapseConfig
    from neuroswarm.network import build_feedforward_network

    synapse_config = SynapseConfig(connection_probability=1.0, excitatory_fraction=1.0,
                                   transmission_gain=20.0)
    return build_feedforward_network([3, 2], rng, synapse_config=synapse_config)
