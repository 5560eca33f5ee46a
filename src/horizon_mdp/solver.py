"""Backward-induction solver for finite-horizon MDPs."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .constants import DEBUG_SAMPLE_SIZE, DEFAULT_DISCOUNT, LAYOUT_AUTO
from .exceptions import (
    EmptyDomainError,
    InvalidDiscountError,
    InvalidDomainError,
    InvalidHorizonError,
)
from .lookup import stage_cost, transition_row
from .model import (
    CostModel,
    MDPProblem,
    TransitionModel,
    coerce_cost_model,
    coerce_salvage,
    coerce_transition_model,
)
from .normalize import normalize_transitions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Solution:
    """Value and policy tables for every stage.

    ``values[t][s]`` is the optimal expected cost-to-go from state ``s`` at
    stage ``t`` (``values[T]`` is the salvage). ``policy[t][s]`` is the
    minimizing action for ``t < T``.
    """

    states: Tuple[str, ...]
    actions: Tuple[str, ...]
    discount: float
    values: Tuple[Mapping[str, float], ...]
    policy: Tuple[Mapping[str, str], ...]
    costs: CostModel
    transitions: TransitionModel

    @property
    def horizon(self) -> int:
        return len(self.policy)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "V": [dict(stage_values) for stage_values in self.values],
            "policy": [dict(stage_policy) for stage_policy in self.policy],
        }


def _check_domain(items: Sequence[str], name: str) -> Tuple[str, ...]:
    if not items:
        raise EmptyDomainError(f"{name} must contain at least one entry.")
    seen = set()
    duplicates = []
    for item in items:
        if item in seen and item not in duplicates:
            duplicates.append(item)
        seen.add(item)
    if duplicates:
        raise InvalidDomainError(
            f"{name} must be unique; repeated: {', '.join(map(str, duplicates))}."
        )
    return tuple(items)


def check_horizon(horizon: Any) -> int:
    if isinstance(horizon, bool) or not isinstance(horizon, int):
        raise InvalidHorizonError(f"Horizon must be an integer, got {horizon!r}.")
    if horizon < 1:
        raise InvalidHorizonError(f"Horizon must be at least 1, got {horizon}.")
    return horizon


def check_discount(discount: Any) -> float:
    if isinstance(discount, bool) or not isinstance(discount, (int, float)):
        raise InvalidDiscountError(f"Discount must be a number, got {discount!r}.")
    if math.isnan(discount) or not 0.0 <= discount <= 1.0:
        raise InvalidDiscountError(f"Discount must lie in [0, 1], got {discount}.")
    return float(discount)


def expected_next_value(
    row: Mapping[str, float], states: Sequence[str], next_values: Mapping[str, float]
) -> float:
    total = 0.0
    for next_state in states:
        total += row.get(next_state, 0.0) * next_values[next_state]
    return total


def _q_value(
    costs: CostModel,
    transitions: TransitionModel,
    stage: int,
    state: str,
    action: str,
    states: Sequence[str],
    discount: float,
    next_values: Mapping[str, float],
) -> float:
    row = transition_row(transitions, stage, state, action, states)
    return stage_cost(costs, stage, state, action) + discount * expected_next_value(
        row, states, next_values
    )


def solve(
    states: Sequence[str],
    actions: Sequence[str],
    horizon: int,
    discount: float = DEFAULT_DISCOUNT,
    costs: Any = None,
    transitions: Any = None,
    salvage: Optional[Mapping[str, Any]] = None,
    *,
    layout: str = LAYOUT_AUTO,
) -> Solution:
    """Run backward induction from stage ``horizon`` down to stage 0.

    ``costs`` and ``transitions`` may be tagged models or plain nested
    mappings; plain mappings are read with ``layout``. Every input is
    validated and the transition model normalized before any stage is
    computed, so a failure never yields partial tables.
    """
    state_ids = _check_domain(states, "States")
    action_ids = _check_domain(actions, "Actions")
    horizon = check_horizon(horizon)
    discount = check_discount(discount)
    cost_model = coerce_cost_model(costs, state_ids, layout)
    transition_model = normalize_transitions(
        coerce_transition_model(transitions, state_ids, layout), state_ids
    )
    terminal = coerce_salvage(salvage)

    logger.debug(
        "Solving %d states x %d actions over %d stages (discount=%s).",
        len(state_ids),
        len(action_ids),
        horizon,
        discount,
    )

    values: List[Dict[str, float]] = [dict() for _ in range(horizon + 1)]
    policy: List[Dict[str, str]] = [dict() for _ in range(horizon)]
    values[horizon] = {state: terminal.get(state, 0.0) for state in state_ids}

    for stage in range(horizon - 1, -1, -1):
        next_values = values[stage + 1]
        stage_values = values[stage]
        stage_policy = policy[stage]
        for state in state_ids:
            best_action = action_ids[0]
            best_value = math.inf
            for action in action_ids:
                candidate = _q_value(
                    cost_model,
                    transition_model,
                    stage,
                    state,
                    action,
                    state_ids,
                    discount,
                    next_values,
                )
                if candidate < best_value:
                    best_value = candidate
                    best_action = action
            stage_values[state] = best_value
            stage_policy[state] = best_action
        logger.debug("Stage %d complete: %s", stage, stage_values)

    return Solution(
        states=state_ids,
        actions=action_ids,
        discount=discount,
        values=tuple(MappingProxyType(stage_values) for stage_values in values),
        policy=tuple(MappingProxyType(stage_policy) for stage_policy in policy),
        costs=cost_model,
        transitions=transition_model,
    )


def solve_problem(problem: MDPProblem, *, layout: str = LAYOUT_AUTO) -> Solution:
    return solve(
        problem.states,
        problem.actions,
        problem.horizon,
        problem.discount,
        problem.costs,
        problem.transitions,
        problem.salvage,
        layout=layout,
    )


def action_values(solution: Solution, stage: int, state: str) -> Dict[str, float]:
    """Q values of every action at ``(stage, state)`` under ``solution``."""
    if not 0 <= stage < solution.horizon:
        raise IndexError(f"Stage {stage} has no decision; horizon is {solution.horizon}.")
    if state not in solution.states:
        raise KeyError(state)
    return {
        action: _q_value(
            solution.costs,
            solution.transitions,
            stage,
            state,
            action,
            solution.states,
            solution.discount,
            solution.values[stage + 1],
        )
        for action in solution.actions
    }


def write_solution(path: Path, solution: Solution) -> None:
    with path.open("w", encoding="utf-8") as handle:
        json.dump(solution.to_dict(), handle, indent=2)
        handle.write("\n")


def _format_sample(values: Sequence[str], size: int = DEBUG_SAMPLE_SIZE) -> str:
    if len(values) <= size:
        return ", ".join(values)
    head = ", ".join(values[:size])
    return f"{head}, ..."


def debug_summary(problem: MDPProblem) -> str:
    sample_state = problem.states[0] if problem.states else None
    sample_action = problem.actions[0] if problem.actions else None
    lines = [
        f"states: {len(problem.states)} [{_format_sample(problem.states)}]",
        f"actions: {len(problem.actions)} [{_format_sample(problem.actions)}]",
        f"horizon: {problem.horizon}, discount: {problem.discount}",
        f"transition layout: {type(problem.transitions).__name__}",
        f"cost layout: {type(problem.costs).__name__}",
    ]
    if sample_state is not None and sample_action is not None:
        row = transition_row(
            problem.transitions, 0, sample_state, sample_action, problem.states
        )
        lines.append(
            f"stage 0 transition row for state '{sample_state}', "
            f"action '{sample_action}': {row}"
        )
        lines.append(
            f"stage 0 cost for state '{sample_state}', action '{sample_action}': "
            f"{stage_cost(problem.costs, 0, sample_state, sample_action)}"
        )
    return "\n".join(lines)
