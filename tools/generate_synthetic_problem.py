#!/usr/bin/env python3
"""Generate random finite-horizon MDP problem documents for stress testing."""

from __future__ import annotations

import argparse
from pathlib import Path

from horizon_mdp.synthetic import generate_dataset


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("output_dir", type=Path, help="Directory to write problem.json into.")
    parser.add_argument("--states", type=int, default=10, help="Number of states.")
    parser.add_argument("--actions", type=int, default=3, help="Number of actions.")
    parser.add_argument("--horizon", type=int, default=5, help="Number of decision stages.")
    parser.add_argument("--discount", type=float, default=1.0, help="Discount factor.")
    parser.add_argument(
        "--time-varying",
        action="store_true",
        help="Draw a separate cost and transition table for every stage.",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    path = generate_dataset(
        output_dir=args.output_dir,
        state_count=args.states,
        action_count=args.actions,
        horizon=args.horizon,
        seed=args.seed,
        time_varying=args.time_varying,
        discount=args.discount,
    )
    print(f"Wrote {path}")


if __name__ == "__main__":
    main()
