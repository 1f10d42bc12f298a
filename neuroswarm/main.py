"""
NeuroSwarm Main Runner
=======================
Entry point for running the swarm decision engine on synthetic inputs.

Provides:
- CLI interface
- A stand-in ecological reward for closing the learning loop
- Configuration summary
"""

import argparse
import json
import logging
from typing import Dict, Mapping

from .config import SimulationConfig, AgentAction, create_benchmark_config
from .reward import RewardSignal, RewardKind
from .simulation import SwarmSimulation, TickResult

logger = logging.getLogger("NeuroSwarm.Main")


def ecological_reward(sim: SwarmSimulation, result: TickResult) -> Mapping[int, RewardSignal]:
    """
    Stand-in for the ecological outcome collaborator.

    Agents executing work on dry soil earn tree growth; agents that keep
    working while a threat is reported are penalised, as are agents that
    head home with nothing to flee from.
    """
    rewards: Dict[int, RewardSignal] = {}
    for agent_id, action in result.actions.items():
        sensors = sim.collective.agents[agent_id].sensors
        threatened = sensors.threats_detected > 0
        if action is AgentAction.RETURN_HOME:
            if threatened:
                rewards[agent_id] = RewardSignal(RewardKind.FIRE_RISK_REDUCTION, 0.2)
            else:
                rewards[agent_id] = RewardSignal(RewardKind.PENALTY, 0.05)
        elif threatened:
            rewards[agent_id] = RewardSignal(RewardKind.PENALTY, 0.5)
        elif action in (AgentAction.EXECUTE_TASK, AgentAction.EXPLORE):
            rewards[agent_id] = RewardSignal(RewardKind.TREE_GROWTH,
                                             1.0 - sensors.soil_moisture_percent / 100.0)
        elif action is AgentAction.MONITOR:
            rewards[agent_id] = RewardSignal(RewardKind.SOIL_HEALTH_IMPROVEMENT, 0.1)
    return rewards


def print_config_summary(config: SimulationConfig):
    """Print a summary of the configuration"""
    print("\n" + "=" * 60)
    print("NeuroSwarm Configuration Summary")
    print("=" * 60)
    print(f"Scenario: {config.scenario_name}")
    print(f"Agents: {config.n_agents} ({config.aerial_fraction:.0%} aerial)")
    print(f"Home: {config.home_location}")
    print(f"Tick: {config.dt_seconds}s, network dt: {config.network_dt_ms}ms "
          f"x {config.network_steps_per_tick}")
    print()
    print("Subsystems:")
    print(f"  - Diagnostic network: {config.use_network} {config.layer_sizes}")
    print(f"  - Online STDP: {config.stdp.enabled}")
    print(f"  - Decision workers: {config.workers or 'sequential'}")
    print(f"  - Seed: {config.seed}")
    print("=" * 60 + "\n")


def main(argv=None):
    """CLI entry point"""
    parser = argparse.ArgumentParser(
        description="NeuroSwarm neuromorphic swarm decision engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Quick run
  python -m neuroswarm.main --scenario small --ticks 50

  # Wildfire scenario with online STDP and plots
  python -m neuroswarm.main --scenario wildfire --stdp --plot telemetry.png

  # Save per-tick records
  python -m neuroswarm.main --ticks 200 --output results.json
        """
    )

    parser.add_argument(
        "--scenario",
        choices=["small", "standard", "large", "drought", "wildfire"],
        default="standard",
        help="Benchmark scenario"
    )
    parser.add_argument("--ticks", type=int, default=100, help="Simulation ticks")
    parser.add_argument("--agents", type=int, help="Number of agents")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--workers", type=int, default=0,
                        help="Threads for the per-agent decision phase")
    parser.add_argument("--no-network", action="store_true",
                        help="Disable the diagnostic spiking network")
    parser.add_argument("--stdp", action="store_true", help="Enable online STDP")
    parser.add_argument("--no-reward", action="store_true",
                        help="Do not feed stand-in rewards")
    parser.add_argument("--output", type=str, help="Write JSON results here")
    parser.add_argument("--plot", type=str, help="Write telemetry figure here")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    logger.debug(f"Arguments: {vars(args)}")

    config = create_benchmark_config(args.scenario)
    if args.agents:
        config.n_agents = args.agents
    if args.seed is not None:
        config.seed = args.seed
    config.workers = args.workers
    if args.no_network:
        config.use_network = False
    if args.stdp:
        config.stdp.enabled = True

    print_config_summary(config)

    sim = SwarmSimulation(config)
    results = sim.run(args.ticks, reward_fn=None if args.no_reward else ecological_reward)

    summary = results.summary()
    print("\nSimulation complete!")
    print(f"Final consensus: {summary['final_consensus']}")
    telemetry = summary["final_telemetry"] or {}
    print(f"Cohesion: {telemetry.get('group_cohesion', 0.0):.3f}  "
          f"Arousal: {telemetry.get('average_arousal', 0.0):.3f}")
    print(f"Replans: {summary['replans']}  Network spikes: {summary['total_network_spikes']}")
    print(f"Mean value estimate: {sim.reward_pool.average_value_estimate():.4f}")
    if sim.network is not None:
        mean_w, std_w = sim.network.weight_stats()
        print(f"Link weights: mean={mean_w:.3f} std={std_w:.3f}")
    print(f"Absorbed conditions: {summary['counters']}")

    if args.output:
        with open(args.output, "w") as f:
            json.dump(results.to_record(), f, indent=2)
        print(f"Saved results to {args.output}")

    if args.plot:
        from .visualize import plot_coordination
        plot_coordination(results, args.plot)

    return results


if __name__ == "__main__":
    main()
