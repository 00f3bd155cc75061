"""Evaluation script for scripted seat-rush agents.

Plays a batch of rides in SeatEnv and reports how often each agent
arrives seated.

Usage:
    # Heuristic agent on the full line
    python scripts/evaluate.py --agent heuristic --line full --num-games 50

    # Compare random vs heuristic
    python scripts/evaluate.py --compare
"""

import os
import sys
import argparse
import logging
import time

import numpy as np

# Add project root to sys.path to allow importing from rl module
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.constants import GameStatus
from rl.agents import HeuristicAgent, RandomAgent
from rl.seat_env import SeatEnv

logger = logging.getLogger(__name__)


def make_agent(name, seed=None):
    if name == "random":
        return RandomAgent(seed)
    return HeuristicAgent()


def run_games(agent_name, args):
    """Play args.num_games rides with one agent and collect statistics."""
    env = SeatEnv(difficulty=args.difficulty, line=args.line)
    agent = make_agent(agent_name, args.seed)

    wins = 0
    rewards = []
    steps_taken = []
    start_time = time.time()

    for game_idx in range(args.num_games):
        obs, info = env.reset(seed=args.seed + game_idx)
        terminated = truncated = False
        total_reward = 0.0
        steps = 0

        while not (terminated or truncated):
            obs, reward, terminated, truncated, info = env.step(agent.act(env))
            total_reward += reward
            steps += 1

        if info["status"] == GameStatus.WON.value:
            wins += 1
        rewards.append(total_reward)
        steps_taken.append(steps)
        logger.info(
            "[%s] game %d: %s in %d steps (reward %.2f)",
            agent_name, game_idx + 1, info["status"], steps, total_reward,
        )

    env.close()
    return {
        "agent": agent_name,
        "win_rate": wins / max(1, args.num_games),
        "avg_reward": float(np.mean(rewards)) if rewards else 0.0,
        "avg_steps": float(np.mean(steps_taken)) if steps_taken else 0.0,
        "elapsed_s": time.time() - start_time,
    }


def print_results(results):
    print("=" * 50)
    print(f"Agent: {results['agent']}")
    print(f"Win rate: {results['win_rate']:.1%}")
    print(f"Avg reward: {results['avg_reward']:.3f}")
    print(f"Avg steps: {results['avg_steps']:.1f}")
    print(f"Elapsed: {results['elapsed_s']:.1f}s")
    print("=" * 50)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Evaluate scripted seat-rush agents",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--agent", choices=["random", "heuristic"], default="heuristic",
                        help="Agent to evaluate")
    parser.add_argument("--compare", action="store_true",
                        help="Evaluate both agents on the same seeds")
    parser.add_argument("--num-games", type=int, default=20, help="Number of rides to play")
    parser.add_argument("--difficulty", choices=["easy", "normal", "rush"], default="normal",
                        help="Ride difficulty")
    parser.add_argument("--line", choices=["short", "full"], default="short",
                        help="Line to ride")
    parser.add_argument("--seed", type=int, default=42, help="Base random seed")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    agents = ["random", "heuristic"] if args.compare else [args.agent]
    for name in agents:
        print_results(run_games(name, args))


if __name__ == "__main__":
    main()
