"""
Unit tests for neuroswarm/network.py

Tests layer stepping, wiring, delayed propagation and online plasticity.
"""

import pytest
import numpy as np
from neuroswarm.network import NeuralLayer, SpikingNetwork, build_feedforward_network
from neuroswarm.config import SynapseConfig, STDPConfig
from neuroswarm.stdp import STDPRule


class TestNeuralLayer:
    """Tests for NeuralLayer"""

    def test_unit_ids_offset(self):
        layer = NeuralLayer(1, 3, first_unit_id=10)
        assert layer.unit_ids() == [10, 11, 12]
        assert 11 in layer
        assert len(layer) == 3

    def test_injected_current_is_consumed(self):
        layer = NeuralLayer(0, 2)
        layer.inject_current(0, 0.5)
        layer.inject_current(0, 0.5)
        assert layer.input_currents[0] == pytest.approx(1.0)
        layer.step(1.0)
        assert layer.input_currents == {}

    def test_strong_input_spikes(self):
        layer = NeuralLayer(0, 2)
        layer.inject_current(1, 100.0)
        assert layer.step(1.0) == [1]
        assert layer.activity_level() == 1
        assert layer.spike_counts() == {0: 0, 1: 1}


class TestSpikingNetwork:
    """Tests for SpikingNetwork"""

    def test_unit_ids_unique_across_layers(self, small_network):
        ids = [uid for layer in small_network.layers for uid in layer.unit_ids()]
        assert ids == [0, 1, 2, 3, 4]

    def test_full_connection(self, small_network):
        links = small_network.links()
        assert len(links) == 6
        assert all(l.excitatory and l.weight == 0.5 for l in links)
        assert len(small_network.delay_lines) == 6

    def test_invalid_layer_index_absorbed(self, rng):
        net = SpikingNetwork()
        net.add_layer(2)
        assert net.connect_layers(0, 5, 1.0, rng) == 0
        assert net.counters.invalid_layer_index == 1
        assert not net.inject(3, 0, 1.0)
        assert net.counters.invalid_layer_index == 2

    def test_zero_probability_creates_nothing(self, rng):
        net = SpikingNetwork()
        net.add_layer(3)
        net.add_layer(3)
        assert net.connect_layers(0, 1, 0.0, rng) == 0

    def test_spikes_propagate_after_delay(self, small_network):
        """Input spikes reach the next layer one delay later"""
        history = small_network.run(40, 1.0, input_currents={0: 1.0, 1: 1.0, 2: 1.0})
        first = next(i for i, step in enumerate(history) if step)
        assert set(history[first]) == {0, 1, 2}
        assert set(history[first + 1]) == {3, 4}

    def test_no_input_no_activity(self, small_network):
        history = small_network.run(20)
        assert all(step == [] for step in history)
        assert small_network.total_spikes() == 0

    def test_reset_keeps_weights(self, small_network):
        small_network.run(40, input_currents={0: 1.0, 1: 1.0, 2: 1.0})
        before = [l.weight for l in small_network.links()]
        small_network.reset()
        assert small_network.time_ms == 0.0
        assert small_network.total_spikes() == 0
        assert [l.weight for l in small_network.links()] == before

    def test_weight_stats(self, small_network):
        mean, std = small_network.weight_stats()
        assert mean == pytest.approx(0.5)
        assert std == pytest.approx(0.0)
        assert SpikingNetwork().weight_stats() == (0.0, 0.0)

    def test_build_is_reproducible(self):
        a = build_feedforward_network([6, 12, 4], np.random.default_rng(7))
        b = build_feedforward_network([6, 12, 4], np.random.default_rng(7))
        assert [l.to_record() for l in a.links()] == [l.to_record() for l in b.links()]


class TestOnlinePlasticity:
    """Tests for trace-based STDP inside the network"""

    def _network(self, rng, enabled):
        synapse = SynapseConfig(connection_probability=1.0, excitatory_fraction=1.0,
                                transmission_gain=20.0)
        stdp = STDPRule(STDPConfig(learning_rate=0.05, enabled=enabled))
        return build_feedforward_network([3, 2], rng, synapse_config=synapse, stdp=stdp)

    def test_disabled_keeps_weights(self, rng):
        net = self._network(rng, enabled=False)
        assert not net.plasticity_enabled
        net.run(60, input_currents={0: 1.0, 1: 1.0, 2: 1.0})
        assert all(l.weight == 0.5 for l in net.links())

    def test_causal_firing_potentiates(self, rng):
        """Pre-then-post relays strengthen the feedforward links"""
        net = self._network(rng, enabled=True)
        net.run(60, input_currents={0: 1.0, 1: 1.0, 2: 1.0})
        assert all(l.weight > 0.5 for l in net.links())
        assert all(-1.0 <= l.weight <= 1.0 for l in net.links())

    def test_trace_guard_counts(self, rng):
        net = self._network(rng, enabled=True)
        net.synapse_config.trace_tau_ms = 0.0
        net.step(1.0)
        assert net.counters.division_guard == len(net.links())
