"""Transition row normalization."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

from .exceptions import DegenerateRowError
from .model import Row, StationaryModel, Table, TimeVaryingModel, TransitionModel

logger = logging.getLogger(__name__)


def normalize_row(
    row: Row,
    *,
    stage: Optional[int] = None,
    state: str = "",
    action: str = "",
) -> Row:
    """Rescale ``row`` into a probability distribution over its own keys.

    A row whose weights sum to zero becomes uniform over its keys. A row
    with no keys cannot be repaired and raises :class:`DegenerateRowError`.
    """
    if not row:
        raise DegenerateRowError(stage, state, action)
    total = sum(row.values())
    if total <= 0:
        share = 1.0 / len(row)
        return {next_state: share for next_state in row}
    return {next_state: weight / total for next_state, weight in row.items()}


def _normalize_table(
    table: Table, stage: Optional[int], states: Sequence[str]
) -> Table:
    known = set(states)
    normalized: Table = {}
    for state, rows in table.items():
        normalized_rows: Dict[str, Row] = {}
        for action, row in rows.items():
            unknown = [next_state for next_state in row if known and next_state not in known]
            if unknown:
                logger.warning(
                    "Transition row (%s, %s, %s) mentions undeclared states %s; "
                    "their probability is dropped during solving.",
                    "*" if stage is None else stage,
                    state,
                    action,
                    unknown,
                )
            normalized_rows[action] = normalize_row(
                row, stage=stage, state=state, action=action
            )
        normalized[state] = normalized_rows
    return normalized


def normalize_transitions(
    model: TransitionModel, states: Sequence[str] = ()
) -> TransitionModel:
    """Return a copy of ``model`` with every present row normalized.

    Every stage table and the stationary fallback are processed, whether or
    not the solver will visit them. Missing rows are left missing.
    """
    if isinstance(model, StationaryModel):
        return StationaryModel(_normalize_table(model.table, None, states))
    return TimeVaryingModel(
        stages={
            stage: _normalize_table(table, stage, states)
            for stage, table in sorted(model.stages.items())
        },
        fallback=_normalize_table(model.fallback, None, states),
    )
