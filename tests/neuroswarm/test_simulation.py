"""
Integration tests for neuroswarm/simulation.py, visualize.py and main.py
"""

import json
import pytest
import numpy as np
import matplotlib.pyplot as plt
from neuroswarm.simulation import SwarmSimulation
from neuroswarm.config import AgentAction, SwarmAction, ConsensusDecision
from neuroswarm.agent import SensorReadings
from neuroswarm.decision import MissionObjective
from neuroswarm.config import ObjectiveKind
from neuroswarm.visualize import plot_spike_raster, plot_stdp_window, plot_coordination
from neuroswarm.main import main, ecological_reward


@pytest.fixture
def sim(small_config):
    return SwarmSimulation(small_config)


class TestSwarmSimulation:
    """Tests for the tick driver"""

    def test_setup(self, sim):
        assert len(sim.collective) == 4
        assert len(sim.reward_pool) == 4
        kinds = [a.kind.value for a in sim.collective]
        assert kinds == ["aerial", "aerial", "ground", "ground"]
        assert sim.network is not None

    def test_tick(self, sim):
        result = sim.tick(sim.synthetic_snapshots())
        assert result.tick == 0
        assert set(result.actions) == set(sim.collective.agent_ids())
        assert all(isinstance(a, AgentAction) for a in result.actions.values())
        assert result.consensus in {d.value for d in ConsensusDecision}
        assert 0.0 <= result.telemetry["group_cohesion"] <= 1.0
        assert sim.tick_count == 1

    def test_tick_with_objectives(self, sim):
        objectives = [MissionObjective(1, ObjectiveKind.WATER_DELIVERY, 5, 0.9, 2, 600)]
        result = sim.tick({0: SensorReadings()}, objectives)
        assert len(result.allocation) == 2
        assert list(result.mission_actions.values()).count(SwarmAction.DELIVER) == 2

    def test_threat_triggers_replanning(self, sim):
        result = sim.tick({0: SensorReadings(threats_detected=1)})
        assert result.replanned

    def test_return_home_moves_toward_home(self, sim):
        sim.tick({i: SensorReadings() for i in range(4)})
        aerial = sim.collective.agents[0]
        assert aerial.last_action is AgentAction.RETURN_HOME
        assert aerial.velocity != (0.0, 0.0, 0.0)

    def test_run(self, sim):
        results = sim.run(5)
        assert len(results.ticks) == 5
        assert len(results.cohesion) == 5
        assert all(0.0 <= c <= 1.0 for c in results.cohesion)
        assert len(results.spike_raster) == 5 * sim.config.network_steps_per_tick
        assert sum(results.network_spikes) == sum(len(s) for s in results.spike_raster)

    def test_reproducible(self, small_config):
        def run_once():
            from neuroswarm.config import create_small_test_config
            return SwarmSimulation(create_small_test_config()).run(5).to_record()["ticks"]
        assert run_once() == run_once()

    def test_parallel_matches_sequential(self, small_config):
        from neuroswarm.config import create_small_test_config
        sequential = SwarmSimulation(create_small_test_config()).run(3)
        config = create_small_test_config()
        config.workers = 3
        parallel = SwarmSimulation(config).run(3)
        assert [t.to_record() for t in sequential.ticks] == [t.to_record() for t in parallel.ticks]

    def test_without_network(self, small_config):
        small_config.use_network = False
        sim = SwarmSimulation(small_config)
        results = sim.run(3)
        assert sim.network is None
        assert results.network_spikes == [0, 0, 0]

    def test_rewards(self, sim):
        sim.apply_rewards({0: 1.0, 99: 1.0}, shared=2.0)
        assert sim.reward_pool.individual_learners[0].cumulative_reward == pytest.approx(1.5)
        assert sim.counters().unknown_agent == 1

    def test_reward_fn(self, sim):
        results = sim.run(3, reward_fn=ecological_reward)
        assert results.value_estimates[-1] != 0.5

    def test_results_serializable(self, sim):
        results = sim.run(2)
        payload = json.loads(json.dumps(results.to_record()))
        assert payload["summary"]["n_ticks"] == 2


class TestVisualize:
    """Smoke tests for diagnostics plots"""

    def test_spike_raster(self, tmp_path):
        path = tmp_path / "raster.png"
        fig = plot_spike_raster([[0, 1], [], [2]], output_path=str(path))
        assert path.exists()
        assert not plt.fignum_exists(fig.number)

    def test_stdp_window(self):
        fig = plot_stdp_window()
        line = fig.axes[0].lines[0]
        assert np.max(line.get_ydata()) <= 1.0
        plt.close(fig)

    def test_coordination(self, sim, tmp_path):
        path = tmp_path / "coordination.png"
        fig = plot_coordination(sim.run(3), str(path))
        assert path.exists()
        plt.close(fig)


class TestCLI:
    """Tests for the command-line entry point"""

    def test_main_writes_outputs(self, tmp_path, capsys):
        output = tmp_path / "results.json"
        plot = tmp_path / "telemetry.png"
        results = main(["--scenario", "small", "--ticks", "3", "--stdp",
                        "--output", str(output), "--plot", str(plot)])
        assert len(results.ticks) == 3
        assert json.loads(output.read_text())["summary"]["n_ticks"] == 3
        assert plot.exists()
        assert "Simulation complete!" in capsys.readouterr().out
        plt.close("all")

    def test_main_without_network(self):
        results = main(["--scenario", "small", "--ticks", "2", "--no-network", "--no-reward"])
        assert results.network_spikes == [0, 0]
