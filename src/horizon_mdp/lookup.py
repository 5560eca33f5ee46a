"""Transition and cost accessors with stage -> stationary -> default fallback."""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from .model import CostModel, Row, StationaryModel, TransitionModel


def _stage_table(model: Any, stage: int) -> Optional[Dict[str, Dict[str, Any]]]:
    if isinstance(model, StationaryModel):
        return None
    return model.stages.get(stage)


def _stationary_table(model: Any) -> Dict[str, Dict[str, Any]]:
    if isinstance(model, StationaryModel):
        return model.table
    return model.fallback


def identity_row(state: str, states: Sequence[str]) -> Row:
    return {next_state: 1.0 if next_state == state else 0.0 for next_state in states}


def transition_row(
    model: TransitionModel,
    stage: int,
    state: str,
    action: str,
    states: Sequence[str],
) -> Row:
    layer = _stage_table(model, stage)
    if layer:
        row = layer.get(state, {}).get(action)
        if row:
            return row
    row = _stationary_table(model).get(state, {}).get(action)
    if row:
        return row
    return identity_row(state, states)


def stage_cost(model: CostModel, stage: int, state: str, action: str) -> float:
    layer = _stage_table(model, stage)
    if layer:
        costs = layer.get(state, {})
        if action in costs:
            return costs[action]
    costs = _stationary_table(model).get(state, {})
    if action in costs:
        return costs[action]
    return 0.0
