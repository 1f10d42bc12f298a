"""
NeuroSwarm Spiking Network
===========================
Layers of LIF units wired by synaptic links.

Links reference unit ids, never unit objects, so a layer can be
serialized or mutated on its own. Each link owns a DelayLine; a spike
from a source unit enqueues link.transmit() which is released into the
target unit's input current once the link delay has elapsed.

Wiring is probabilistic and draws from an explicitly passed
numpy Generator so that topologies are reproducible.
"""

import numpy as np
from typing import Dict, List, Tuple, Optional, Set, Any
import logging

from .config import NeuronConfig, SynapseConfig
from .contracts import (
    DiagnosticCounters, INVALID_LAYER_INDEX, DIVISION_GUARD, require_positive
)
from .neuron import SpikingUnit
from .synapse import SynapticLink, DelayLine
from .stdp import STDPRule

logger = logging.getLogger("NeuroSwarm.Network")


class NeuralLayer:
    """Single layer: its units and the links that terminate on them"""

    def __init__(self, layer_id: int, n_units: int,
                 neuron_config: Optional[NeuronConfig] = None,
                 first_unit_id: int = 0):
        self.layer_id = layer_id
        neuron_config = neuron_config if neuron_config is not None else NeuronConfig()
        self.units: List[SpikingUnit] = [
            SpikingUnit.from_config(first_unit_id + i, neuron_config)
            for i in range(n_units)
        ]
        self.links: List[SynapticLink] = []  # Incoming
        self.input_currents: Dict[int, float] = {}
        self._by_id: Dict[int, SpikingUnit] = {u.id: u for u in self.units}

    def __len__(self) -> int:
        return len(self.units)

    def __contains__(self, unit_id: int) -> bool:
        return unit_id in self._by_id

    def unit_ids(self) -> List[int]:
        return [u.id for u in self.units]

    def get_unit(self, unit_id: int) -> Optional[SpikingUnit]:
        return self._by_id.get(unit_id)

    def add_link(self, link: SynapticLink):
        self.links.append(link)

    def inject_current(self, unit_id: int, current: float):
        """Add current to a unit for the next step"""
        self.input_currents[unit_id] = self.input_currents.get(unit_id, 0.0) + current

    def step(self, dt_ms: float) -> List[int]:
        """Integrate every unit once; returns ids of units that spiked"""
        spike_ids = []
        for unit in self.units:
            current = self.input_currents.get(unit.id, 0.0)
            if unit.integrate(current, dt_ms):
                spike_ids.append(unit.id)

        self.input_currents.clear()
        return spike_ids

    def reset(self):
        for unit in self.units:
            unit.reset()
        self.input_currents.clear()

    def activity_level(self) -> int:
        """Number of units that have spiked at least once"""
        return sum(1 for u in self.units if u.has_spiked)

    def spike_counts(self) -> Dict[int, int]:
        return {u.id: u.spike_count for u in self.units}

    def to_record(self) -> Dict[str, Any]:
        return {
            "layer_id": self.layer_id,
            "units": [u.to_record() for u in self.units],
            "links": [l.to_record() for l in self.links],
        }


class SpikingNetwork:
    """
    Multi-layer spiking network.

    Unit ids are unique across the whole network; layers are stepped in
    order each timestep. When an STDPRule is attached and enabled, link
    weights adapt online from eligibility traces.
    """

    def __init__(self, network_id: int = 0,
                 neuron_config: Optional[NeuronConfig] = None,
                 synapse_config: Optional[SynapseConfig] = None,
                 stdp: Optional[STDPRule] = None):
        self.network_id = network_id
        self.neuron_config = neuron_config if neuron_config is not None else NeuronConfig()
        self.synapse_config = synapse_config if synapse_config is not None else SynapseConfig()
        self.stdp = stdp

        self.layers: List[NeuralLayer] = []
        self.delay_lines: Dict[int, DelayLine] = {}  # link id -> line
        self.time_ms = 0.0
        self.counters = DiagnosticCounters()

        self._links: Dict[int, SynapticLink] = {}
        self._outgoing: Dict[int, List[SynapticLink]] = {}  # source unit id -> links
        self._unit_layer: Dict[int, int] = {}  # unit id -> layer index
        self._next_unit_id = 0
        self._next_link_id = 0

    @property
    def plasticity_enabled(self) -> bool:
        return self.stdp is not None and self.stdp.config.enabled

    def add_layer(self, n_units: int) -> NeuralLayer:
        """Append a layer of n_units fresh units"""
        layer = NeuralLayer(len(self.layers), n_units, self.neuron_config,
                            first_unit_id=self._next_unit_id)
        self._next_unit_id += n_units
        for unit_id in layer.unit_ids():
            self._unit_layer[unit_id] = layer.layer_id
        self.layers.append(layer)
        return layer

    def connect_layers(self, from_layer_idx: int, to_layer_idx: int,
                       connection_probability: float,
                       rng: np.random.Generator) -> int:
        """
        Randomly wire every (source, target) pair with the given probability.

        Out-of-range layer indexes are absorbed and counted.

        Returns:
            Number of links created
        """
        n_layers = len(self.layers)
        if not (0 <= from_layer_idx < n_layers and 0 <= to_layer_idx < n_layers):
            self.counters.record(
                INVALID_LAYER_INDEX,
                f"connect {from_layer_idx}->{to_layer_idx} with {n_layers} layers",
            )
            return 0

        cfg = self.synapse_config
        source_ids = self.layers[from_layer_idx].unit_ids()
        target_layer = self.layers[to_layer_idx]

        created = 0
        for source_id in source_ids:
            for target_id in target_layer.unit_ids():
                if rng.random() >= connection_probability:
                    continue
                excitatory = bool(rng.random() < cfg.excitatory_fraction)
                link = SynapticLink(
                    id=self._next_link_id,
                    source_id=source_id,
                    target_id=target_id,
                    weight=cfg.default_weight if excitatory else cfg.inhibitory_weight,
                    delay_ms=cfg.delay_ms,
                    excitatory=excitatory,
                )
                self._register_link(target_layer, link)
                created += 1

        logger.debug(f"Network {self.network_id}: {created} links "
                     f"layer {from_layer_idx} -> {to_layer_idx}")
        return created

    def _register_link(self, target_layer: NeuralLayer, link: SynapticLink):
        target_layer.add_link(link)
        self._links[link.id] = link
        self._outgoing.setdefault(link.source_id, []).append(link)
        self.delay_lines[link.id] = DelayLine(link.delay_ms, current_time_ms=self.time_ms)
        self._next_link_id += 1

    def links(self) -> List[SynapticLink]:
        return list(self._links.values())

    def inject(self, layer_idx: int, unit_id: int, current: float) -> bool:
        """Inject current into one unit of a layer for the next step"""
        if not 0 <= layer_idx < len(self.layers):
            self.counters.record(INVALID_LAYER_INDEX, f"inject into layer {layer_idx}")
            return False
        self.layers[layer_idx].inject_current(unit_id, current)
        return True

    def step(self, dt_ms: float = 1.0) -> List[int]:
        """
        Advance the whole network by one timestep.

        Returns:
            Ids of every unit that spiked, in layer order
        """
        require_positive("dt_ms", dt_ms)
        self.time_ms += dt_ms
        gain = self.synapse_config.transmission_gain

        # Release delayed currents that are due now
        for link_id, line in self.delay_lines.items():
            current = line.deliver(self.time_ms)
            if current != 0.0:
                link = self._links[link_id]
                self.layers[self._unit_layer[link.target_id]].inject_current(
                    link.target_id, current
                )

        all_spikes: List[int] = []
        for layer in self.layers:
            all_spikes.extend(layer.step(dt_ms))

        for source_id in all_spikes:
            for link in self._outgoing.get(source_id, ()):
                self.delay_lines[link.id].enqueue(link.transmit() * gain, self.time_ms)

        if self.plasticity_enabled:
            self._apply_plasticity(set(all_spikes), dt_ms)

        return all_spikes

    def _apply_plasticity(self, spiked: Set[int], dt_ms: float):
        tau = self.synapse_config.trace_tau_ms
        for link in self._links.values():
            if not link.decay_traces(dt_ms, tau):
                self.counters.record(DIVISION_GUARD, f"trace tau {tau}")
                continue
            pre = link.source_id in spiked
            post = link.target_id in spiked
            if pre or post:
                self.stdp.trace_update(link, pre, post)
            if pre:
                link.mark_pre_spike()
            if post:
                link.mark_post_spike()

    def run(self, steps: int, dt_ms: float = 1.0,
            input_currents: Optional[Dict[int, float]] = None) -> List[List[int]]:
        """
        Run for a number of steps.

        Args:
            steps: Number of timesteps
            dt_ms: Timestep in milliseconds
            input_currents: Sustained current per input-layer unit id,
                re-injected every step

        Returns:
            Spike history: one list of spiking unit ids per step
        """
        spike_history = []
        for _ in range(steps):
            if input_currents and self.layers:
                for unit_id, current in input_currents.items():
                    self.layers[0].inject_current(unit_id, current)
            spike_history.append(self.step(dt_ms))
        return spike_history

    def reset(self):
        """Reset units, traces and in-flight currents (weights are kept)"""
        for layer in self.layers:
            layer.reset()
        for line in self.delay_lines.values():
            line.clear()
            line.current_time_ms = 0.0
        for link in self._links.values():
            link.trace_pre = 0.0
            link.trace_post = 0.0
        self.time_ms = 0.0

    def activity_level(self) -> int:
        return sum(layer.activity_level() for layer in self.layers)

    def total_spikes(self) -> int:
        return sum(u.spike_count for layer in self.layers for u in layer.units)

    def weight_stats(self) -> Tuple[float, float]:
        """(mean, std) of link weights, (0, 0) without links"""
        if not self._links:
            return 0.0, 0.0
        weights = np.array([l.weight for l in self._links.values()])
        return float(weights.mean()), float(weights.std())

    def to_record(self) -> Dict[str, Any]:
        return {
            "network_id": self.network_id,
            "time_ms": self.time_ms,
            "layers": [layer.to_record() for layer in self.layers],
        }


def build_feedforward_network(layer_sizes: List[int], rng: np.random.Generator,
                              network_id: int = 0,
                              neuron_config: Optional[NeuronConfig] = None,
                              synapse_config: Optional[SynapseConfig] = None,
                              stdp: Optional[STDPRule] = None) -> SpikingNetwork:
    """Create layers of the given sizes and wire each to the next"""
    network = SpikingNetwork(network_id, neuron_config, synapse_config, stdp)
    for n_units in layer_sizes:
        network.add_layer(n_units)
    p = network.synapse_config.connection_probability
    for i in range(len(layer_sizes) - 1):
        network.connect_layers(i, i + 1, p, rng)
    return network
