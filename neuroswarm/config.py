"""
NeuroSwarm Configuration
=========================
Configuration system for the neuromorphic swarm decision engine.
All constants for neurons, synapses, plasticity, reward learning,
agents, the collective and mission planning live here.
"""

from dataclasses import dataclass, field
from typing import List, Tuple
from enum import Enum
import math

from .contracts import ValidationError


class AgentKind(Enum):
    """Swarm entity variants, selected by capability"""
    AERIAL = "aerial"
    GROUND = "ground"
    SENSOR = "sensor"

    @property
    def is_mobile(self) -> bool:
        return self is not AgentKind.SENSOR

    def max_speed(self, config: "AgentConfig") -> float:
        """Cruise speed in m/s for this kind"""
        if self is AgentKind.AERIAL:
            return config.aerial_speed
        if self is AgentKind.GROUND:
            return config.ground_speed
        return 0.0


class BehaviorState(Enum):
    """Discrete behavioral state of an agent"""
    IDLE = "idle"
    EXPLORING = "exploring"
    EXECUTING = "executing"
    RETURNING = "returning"
    COMMUNICATING = "communicating"
    ERROR = "error"


class AgentAction(Enum):
    """Per-agent action emitted by the local decision function"""
    EXECUTE_TASK = "execute_task"
    EXPLORE = "explore"
    MONITOR = "monitor"
    RETURN_HOME = "return_home"
    IDLE = "idle"


class ConsensusDecision(Enum):
    """Swarm-level behavior mode"""
    EXPLORE = "explore"
    CONCENTRATE = "concentrate"
    RETREAT = "retreat"
    WAIT = "wait"


class ObjectiveKind(Enum):
    """Mission objective categories"""
    SURVEY = "survey"
    WATER_DELIVERY = "water_delivery"
    SOIL_AMENDMENT = "soil_amendment"
    WILDLIFE_MONITORING = "wildlife_monitoring"
    FIRE_SUPPRESSION_PREP = "fire_suppression_prep"


class SwarmAction(Enum):
    """Mission-level action once an agent is allocated"""
    SURVEY = "survey"
    DELIVER = "deliver"
    AMEND = "amend"
    MONITOR = "monitor"
    RETREAT = "retreat"
    EXPLORE = "explore"


@dataclass
class NeuronConfig:
    """Leaky integrate-and-fire unit parameters (normalized volts, ms)"""
    threshold: float = 0.2  # 20 mV
    rest_potential: float = -0.7  # -70 mV
    leak_conductance: float = 0.1
    time_constant_ms: float = 20.0
    refractory_period_ms: float = 2.0
    capacitance: float = 20.0  # Nominal C in dV/dt = (-g(V - V_rest) + I) / C
    refractory_hyperpolarization: float = 0.05  # V forced to rest - this


@dataclass
class SynapseConfig:
    """Synaptic link and wiring parameters"""
    default_weight: float = 0.5
    inhibitory_weight: float = -0.3
    delay_ms: float = 1.0
    trace_tau_ms: float = 20.0  # Eligibility trace decay

    # Probabilistic wiring
    connection_probability: float = 0.5
    excitatory_fraction: float = 0.5

    # Current delivered per unit of transmitted weight
    transmission_gain: float = 1.0


@dataclass
class STDPConfig:
    """Spike-timing-dependent plasticity kernel"""
    learning_rate: float = 0.01  # η
    positive_window_ms: float = 20.0  # Pre before post
    negative_window_ms: float = 20.0  # Post before pre
    time_constant_ms: float = 20.0  # τ

    # Online trace-based updates inside the network
    enabled: bool = False


@dataclass
class RewardConfig:
    """Temporal-difference value learning"""
    initial_value: float = 0.5
    learning_rate: float = 0.1  # α
    discount_factor: float = 0.99  # γ


@dataclass
class AgentConfig:
    """Agent sensing, decision and motion parameters"""
    # Decision potential weights
    moisture_weight: float = 0.3  # High moisture -> less irrigation work
    ph_reference: float = 7.5  # Low pH -> amendment work
    ph_weight: float = 0.2
    threat_penalty: float = 0.8
    threat_arousal: float = 0.95
    cold_threshold_c: float = 10.0
    cold_penalty: float = 0.2
    cold_arousal_damping: float = 0.7
    spikes_per_unit_potential: float = 100.0

    # Action thresholds on task priority
    execute_threshold: float = 0.8
    explore_threshold: float = 0.5
    monitor_threshold: float = 0.2

    # Motion
    aerial_speed: float = 12.0  # m/s
    ground_speed: float = 0.1  # m/s
    meters_per_degree: float = 111000.0
    arrival_distance_m: float = 1.0


@dataclass
class CollectiveConfig:
    """Aggregation, flocking and consensus parameters"""
    neighbor_radius_km: float = 1.0
    min_separation_km: float = 0.5
    separation_gain: float = 0.1
    min_pair_distance_km: float = 0.001  # Below this the pair is ignored
    km_per_degree: float = 111.0

    cohesion_scale: float = 10.0  # cohesion = exp(-scale * avg_distance)
    alignment_blend: float = 0.8  # Weight kept on own heading

    concentrate_threshold: float = 0.7
    retreat_threshold: float = 0.3


@dataclass
class DecisionConfig:
    """Mission feasibility and replanning parameters"""
    resources_weight: float = 0.4
    cohesion_weight: float = 0.3
    arousal_weight: float = 0.3

    low_cohesion_threshold: float = 0.3
    low_arousal_threshold: float = 0.2
    non_urgent_threshold: float = 0.5
    urgency_decay: float = 0.5


@dataclass
class SimulationConfig:
    """Master configuration combining all subsystems"""
    # Swarm
    n_agents: int = 10
    aerial_fraction: float = 0.5
    home_location: Tuple[float, float] = (33.45, -112.07)
    spawn_spread_deg: float = 0.005

    # Time
    dt_seconds: float = 1.0  # Swarm tick
    network_dt_ms: float = 1.0  # SNN integration step
    network_steps_per_tick: int = 10

    # Diagnostic network (input, hidden, output)
    use_network: bool = True
    layer_sizes: List[int] = field(default_factory=lambda: [6, 12, 4])
    input_current_scale: float = 2.0

    # Parallel per-agent phase (0 = sequential)
    workers: int = 0

    seed: int = 42

    neuron: NeuronConfig = field(default_factory=NeuronConfig)
    synapse: SynapseConfig = field(default_factory=SynapseConfig)
    stdp: STDPConfig = field(default_factory=STDPConfig)
    reward: RewardConfig = field(default_factory=RewardConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    collective: CollectiveConfig = field(default_factory=CollectiveConfig)
    decision: DecisionConfig = field(default_factory=DecisionConfig)

    scenario_name: str = "default"

    def validate(self):
        """Validate configuration consistency"""
        checks = [
            (self.n_agents > 0, "Must have at least one agent"),
            (0.0 <= self.aerial_fraction <= 1.0, "aerial_fraction must be in [0, 1]"),
            (self.dt_seconds > 0, "dt_seconds must be positive"),
            (self.network_dt_ms > 0, "network_dt_ms must be positive"),
            (self.network_steps_per_tick >= 0, "network_steps_per_tick must be non-negative"),
            (all(n > 0 for n in self.layer_sizes), "Every layer needs at least one unit"),
            (self.workers >= 0, "workers must be non-negative"),
            (self.neuron.capacitance > 0, "Neuron capacitance must be positive"),
            (self.neuron.threshold > self.neuron.rest_potential,
             "Neuron threshold must lie above the resting potential"),
            (0.0 <= self.synapse.connection_probability <= 1.0,
             "connection_probability must be in [0, 1]"),
            (0.0 <= self.synapse.excitatory_fraction <= 1.0,
             "excitatory_fraction must be in [0, 1]"),
            (self.synapse.trace_tau_ms > 0, "trace_tau_ms must be positive"),
            (self.stdp.time_constant_ms > 0, "STDP time constant must be positive"),
            (0.0 <= self.reward.discount_factor <= 1.0, "discount_factor must be in [0, 1]"),
            (self.collective.concentrate_threshold >= self.collective.retreat_threshold,
             "Consensus thresholds are inverted"),
        ]
        for ok, message in checks:
            if not ok:
                raise ValidationError(message)

        lat, lon = self.home_location
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise ValidationError(f"home_location must be finite, got {self.home_location}")

        return True


def create_default_config() -> SimulationConfig:
    """Create default configuration"""
    return SimulationConfig()


def create_small_test_config() -> SimulationConfig:
    """Create small configuration for testing"""
    config = SimulationConfig()
    config.n_agents = 4
    config.layer_sizes = [6, 4, 2]
    config.network_steps_per_tick = 5
    config.scenario_name = "small_test"
    return config


def create_benchmark_config(scenario: str = "standard") -> SimulationConfig:
    """
    Create configuration for benchmark scenarios.

    Args:
        scenario: One of "small", "standard", "large", "drought", "wildfire"

    Returns:
        SimulationConfig for the scenario
    """
    config = create_default_config()

    if scenario == "small":
        config.n_agents = 5
        config.layer_sizes = [6, 8, 4]

    elif scenario == "standard":
        config.n_agents = 20

    elif scenario == "large":
        config.n_agents = 100
        config.layer_sizes = [6, 32, 8]
        config.spawn_spread_deg = 0.02

    elif scenario == "drought":
        # Dry soil pushes task priority up
        config.n_agents = 20
        config.aerial_fraction = 0.3

    elif scenario == "wildfire":
        # Tight cluster of mostly aerial units, threat-driven replanning
        config.n_agents = 20
        config.aerial_fraction = 0.8
        config.spawn_spread_deg = 0.002

    else:
        raise ValidationError(f"Unknown scenario: {scenario}")

    config.scenario_name = scenario
    return config
