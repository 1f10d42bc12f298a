"""
Unit tests for neuroswarm/config.py
"""

import pytest
from neuroswarm.config import (
    SimulationConfig, AgentConfig, AgentKind,
    create_default_config, create_small_test_config, create_benchmark_config,
)
from neuroswarm.contracts import ValidationError


class TestSimulationConfig:
    """Tests for the master configuration"""

    def test_default_validates(self):
        assert create_default_config().validate()

    def test_small_test_config(self):
        config = create_small_test_config()
        assert config.n_agents == 4
        assert config.layer_sizes == [6, 4, 2]
        assert config.validate()

    def test_sub_configs_not_shared(self):
        a = SimulationConfig()
        b = SimulationConfig()
        a.stdp.enabled = True
        assert not b.stdp.enabled

    def test_default_constants(self):
        config = SimulationConfig()
        assert config.stdp.learning_rate == 0.01
        assert config.reward.initial_value == 0.5
        assert config.reward.discount_factor == 0.99
        assert config.synapse.default_weight == 0.5
        assert config.synapse.inhibitory_weight == -0.3
        assert config.neuron.refractory_period_ms == 2.0

    @pytest.mark.parametrize("field,value", [
        ("n_agents", 0),
        ("aerial_fraction", 1.5),
        ("dt_seconds", 0.0),
        ("network_dt_ms", -1.0),
        ("layer_sizes", [4, 0]),
        ("workers", -1),
        ("home_location", (float("nan"), 0.0)),
    ])
    def test_invalid(self, field, value):
        config = SimulationConfig()
        setattr(config, field, value)
        with pytest.raises(ValidationError):
            config.validate()

    def test_inverted_consensus_thresholds(self):
        config = SimulationConfig()
        config.collective.concentrate_threshold = 0.2
        with pytest.raises(ValidationError):
            config.validate()


class TestBenchmarkConfig:
    """Tests for scenario presets"""

    @pytest.mark.parametrize("scenario", ["small", "standard", "large", "drought", "wildfire"])
    def test_known_scenarios(self, scenario):
        config = create_benchmark_config(scenario)
        assert config.scenario_name == scenario
        assert config.validate()

    def test_unknown_scenario(self):
        with pytest.raises(ValidationError):
            create_benchmark_config("tsunami")


class TestAgentKind:
    """Tests for agent capabilities"""

    def test_mobility(self):
        assert AgentKind.AERIAL.is_mobile
        assert AgentKind.GROUND.is_mobile
        assert not AgentKind.SENSOR.is_mobile

    def test_speeds(self):
        config = AgentConfig()
        assert AgentKind.AERIAL.max_speed(config) == 12.0
        assert AgentKind.GROUND.max_speed(config) == 0.1
        assert AgentKind.SENSOR.max_speed(config) == 0.0
