"""Synthetic problem generation for stress testing."""

from __future__ import annotations

import json
import random
from pathlib import Path
from typing import Dict, List, Sequence

from .model import MDPProblem, StationaryModel, TimeVaryingModel
from .parser import problem_to_document


def _random_transition_table(
    rng: random.Random,
    states: Sequence[str],
    actions: Sequence[str],
    low: int,
    high: int,
) -> Dict[str, Dict[str, Dict[str, float]]]:
    return {
        state: {
            action: {next_state: float(rng.randint(low, high)) for next_state in states}
            for action in actions
        }
        for state in states
    }


def _random_cost_table(
    rng: random.Random,
    states: Sequence[str],
    actions: Sequence[str],
    low: int,
    high: int,
) -> Dict[str, Dict[str, float]]:
    return {
        state: {action: float(rng.randint(low, high)) for action in actions}
        for state in states
    }


def generate_problem(
    *,
    state_count: int,
    action_count: int,
    horizon: int,
    seed: int,
    weight_low: int = 0,
    weight_high: int = 5,
    cost_low: int = 0,
    cost_high: int = 10,
    discount: float = 1.0,
    time_varying: bool = False,
) -> MDPProblem:
    """Random problem with integer weights; zero-weight rows are allowed."""
    rng = random.Random(seed)
    states = [f"S{i}" for i in range(state_count)]
    actions = [f"A{i}" for i in range(action_count)]

    if time_varying:
        transitions = TimeVaryingModel(
            stages={
                stage: _random_transition_table(rng, states, actions, weight_low, weight_high)
                for stage in range(horizon)
            }
        )
        costs = TimeVaryingModel(
            stages={
                stage: _random_cost_table(rng, states, actions, cost_low, cost_high)
                for stage in range(horizon)
            }
        )
    else:
        transitions = StationaryModel(
            _random_transition_table(rng, states, actions, weight_low, weight_high)
        )
        costs = StationaryModel(
            _random_cost_table(rng, states, actions, cost_low, cost_high)
        )

    salvage = {state: float(rng.randint(cost_low, cost_high)) for state in states}
    return MDPProblem(
        states=states,
        actions=actions,
        horizon=horizon,
        discount=discount,
        costs=costs,
        transitions=transitions,
        salvage=salvage,
    )


def generate_dataset(
    *,
    output_dir: Path,
    state_count: int,
    action_count: int,
    horizon: int,
    seed: int,
    time_varying: bool = False,
    discount: float = 1.0,
) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    problem = generate_problem(
        state_count=state_count,
        action_count=action_count,
        horizon=horizon,
        seed=seed,
        time_varying=time_varying,
        discount=discount,
    )
    path = output_dir / "problem.json"
    with path.open("w", encoding="utf-8") as handle:
        json.dump(problem_to_document(problem), handle, indent=2)
        handle.write("\n")
    return path


def delivery_robot_problem() -> MDPProblem:
    """Robot moving between zones A, B and C over four hourly decisions."""
    transitions = {
        "A": {
            "wait": {"A": 0.8, "B": 0.2},
            "charge": {"A": 0.9, "B": 0.1},
            "deliver": {"B": 0.7, "C": 0.3},
        },
        "B": {
            "wait": {"B": 0.8, "C": 0.2},
            "charge": {"A": 0.4, "B": 0.6},
            "deliver": {"C": 0.8, "B": 0.2},
        },
        "C": {
            "wait": {"C": 1.0},
            "charge": {"B": 1.0},
            "deliver": {"C": 1.0},
        },
    }
    costs = {
        "A": {"wait": 1.0, "charge": 3.0, "deliver": 2.0},
        "B": {"wait": 1.0, "charge": 3.0, "deliver": 2.0},
        "C": {"wait": 1.0, "charge": 3.0, "deliver": 4.0},
    }
    states: List[str] = ["A", "B", "C"]
    return MDPProblem(
        states=states,
        actions=["wait", "charge", "deliver"],
        horizon=4,
        discount=1.0,
        costs=StationaryModel(costs),
        transitions=StationaryModel(transitions),
        salvage={state: 0.0 for state in states},
    )
