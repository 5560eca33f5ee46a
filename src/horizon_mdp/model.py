"""Model containers and coercion of raw nested mappings into tagged models."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .constants import (
    DEFAULT_DISCOUNT,
    LAYOUT_AUTO,
    LAYOUT_STATIONARY,
    LAYOUT_TIME_VARYING,
    LAYOUTS,
)
from .exceptions import AmbiguousLayoutError, MalformedModelError

logger = logging.getLogger(__name__)

Row = Dict[str, float]
Table = Dict[str, Dict[str, Row]]
CostTable = Dict[str, Dict[str, float]]


@dataclass(frozen=True)
class StationaryModel:
    """One table shared by every stage."""

    table: Dict[str, Dict[str, Any]]


@dataclass(frozen=True)
class TimeVaryingModel:
    """Per-stage tables, with an optional stationary table behind them."""

    stages: Dict[int, Dict[str, Dict[str, Any]]]
    fallback: Dict[str, Dict[str, Any]] = field(default_factory=dict)


TransitionModel = Union[StationaryModel, TimeVaryingModel]
CostModel = Union[StationaryModel, TimeVaryingModel]


@dataclass
class MDPProblem:
    """Everything the solver needs for one run."""

    states: List[str]
    actions: List[str]
    horizon: int
    costs: CostModel
    transitions: TransitionModel
    salvage: Dict[str, float] = field(default_factory=dict)
    discount: float = DEFAULT_DISCOUNT


def parse_stage_key(key: Any) -> Optional[int]:
    """Return the stage index a top-level key names, or None."""
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key if key >= 0 else None
    if isinstance(key, str):
        text = key.strip()
        if text.isascii() and text.isdigit():
            return int(text)
    return None


def _coerce_number(value: Any, path: str) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise MalformedModelError(f"Expected a number at {path}, got a boolean.")
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError as exc:
            raise MalformedModelError(f"Non-finite value at {path}.") from exc
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError as exc:
            raise MalformedModelError(
                f"Expected a number at {path}, got '{value}'."
            ) from exc
    else:
        raise MalformedModelError(
            f"Expected a number at {path}, got {type(value).__name__}."
        )
    if math.isnan(number) or math.isinf(number):
        raise MalformedModelError(f"Non-finite value at {path}.")
    return number


def _tagged_stages(stages: Any, name: str) -> Dict[int, Any]:
    """Re-key a tagged model's stage tables by integer stage index."""
    layers: Dict[int, Any] = {}
    for key, table in _require_mapping(stages, f"{name} stages").items():
        stage = parse_stage_key(key)
        if stage is None:
            raise MalformedModelError(
                f"Time-varying {name} model has invalid stage key {key!r}."
            )
        if stage in layers:
            raise MalformedModelError(f"Stage {stage} appears twice in the {name} model.")
        layers[stage] = table
    return layers


def _require_mapping(value: Any, path: str) -> Mapping[Any, Any]:
    if not isinstance(value, Mapping):
        raise MalformedModelError(
            f"Expected a mapping at {path}, got {type(value).__name__}."
        )
    return value


def _coerce_transition_table(raw: Any, path: str) -> Table:
    table: Table = {}
    for state, actions in _require_mapping(raw, path).items():
        state_path = f"{path}[{state!r}]"
        rows: Dict[str, Row] = {}
        for action, row in _require_mapping(actions, state_path).items():
            row_path = f"{state_path}[{action!r}]"
            weights: Row = {}
            for next_state, weight in _require_mapping(row, row_path).items():
                value = _coerce_number(weight, f"{row_path}[{next_state!r}]")
                if value < 0:
                    raise MalformedModelError(
                        f"Negative transition weight {value} at "
                        f"{row_path}[{next_state!r}]."
                    )
                weights[str(next_state)] = value
            rows[str(action)] = weights
        table[str(state)] = rows
    return table


def _coerce_cost_table(raw: Any, path: str) -> CostTable:
    table: CostTable = {}
    for state, actions in _require_mapping(raw, path).items():
        state_path = f"{path}[{state!r}]"
        table[str(state)] = {
            str(action): _coerce_number(cost, f"{state_path}[{action!r}]")
            for action, cost in _require_mapping(actions, state_path).items()
        }
    return table


def _split_layers(
    raw: Mapping[Any, Any],
    states: Sequence[str],
    layout: str,
    name: str,
) -> Optional[Dict[int, Any]]:
    """Decide whether ``raw`` is layered; return its stage layers if so."""
    if layout not in LAYOUTS:
        raise ValueError(f"Unknown layout '{layout}'; expected one of {LAYOUTS}.")
    if layout == LAYOUT_STATIONARY:
        return None
    stage_keys = {key: parse_stage_key(key) for key in raw}
    if layout == LAYOUT_TIME_VARYING:
        bad = [key for key, stage in stage_keys.items() if stage is None]
        if bad:
            raise MalformedModelError(
                f"Time-varying {name} model has non-stage keys: "
                f"{', '.join(repr(key) for key in bad)}."
            )
    numeric = [key for key, stage in stage_keys.items() if stage is not None]
    if not numeric:
        return None
    if layout == LAYOUT_AUTO:
        clashes = [key for key in numeric if str(key).strip() in states]
        if clashes:
            raise AmbiguousLayoutError(
                f"Top-level {name} key(s) {', '.join(repr(key) for key in clashes)} "
                "could be a stage index or a state name; pass an explicit layout."
            )
        logger.debug(
            "Treating %s model as time-varying (stage keys: %s).", name, numeric
        )
    layers: Dict[int, Any] = {}
    for key in numeric:
        stage = stage_keys[key]
        if stage in layers:
            raise MalformedModelError(f"Stage {stage} appears twice in the {name} model.")
        layers[stage] = raw[key]
    return layers


def coerce_transition_model(
    raw: Any,
    states: Sequence[str] = (),
    layout: str = LAYOUT_AUTO,
) -> TransitionModel:
    """Build a tagged transition model from ``state -> action -> row`` mappings.

    ``raw`` may already be a :class:`StationaryModel` or
    :class:`TimeVaryingModel`, in which case its tables are still checked.
    """
    if isinstance(raw, StationaryModel):
        return StationaryModel(_coerce_transition_table(raw.table, "transitions"))
    if isinstance(raw, TimeVaryingModel):
        return TimeVaryingModel(
            stages={
                stage: _coerce_transition_table(table, f"transitions[{stage}]")
                for stage, table in _tagged_stages(raw.stages, "transition").items()
            },
            fallback=_coerce_transition_table(raw.fallback, "transitions"),
        )
    raw = _require_mapping(raw if raw is not None else {}, "transitions")
    layers = _split_layers(raw, states, layout, "transition")
    if layers is None:
        return StationaryModel(_coerce_transition_table(raw, "transitions"))
    rest = {key: value for key, value in raw.items() if parse_stage_key(key) is None}
    return TimeVaryingModel(
        stages={
            stage: _coerce_transition_table(table, f"transitions[{stage}]")
            for stage, table in layers.items()
        },
        fallback=_coerce_transition_table(rest, "transitions"),
    )


def coerce_cost_model(
    raw: Any,
    states: Sequence[str] = (),
    layout: str = LAYOUT_AUTO,
) -> CostModel:
    """Build a tagged cost model from ``state -> action -> cost`` mappings."""
    if isinstance(raw, StationaryModel):
        return StationaryModel(_coerce_cost_table(raw.table, "costs"))
    if isinstance(raw, TimeVaryingModel):
        return TimeVaryingModel(
            stages={
                stage: _coerce_cost_table(table, f"costs[{stage}]")
                for stage, table in _tagged_stages(raw.stages, "cost").items()
            },
            fallback=_coerce_cost_table(raw.fallback, "costs"),
        )
    raw = _require_mapping(raw if raw is not None else {}, "costs")
    layers = _split_layers(raw, states, layout, "cost")
    if layers is None:
        return StationaryModel(_coerce_cost_table(raw, "costs"))
    rest = {key: value for key, value in raw.items() if parse_stage_key(key) is None}
    return TimeVaryingModel(
        stages={
            stage: _coerce_cost_table(table, f"costs[{stage}]")
            for stage, table in layers.items()
        },
        fallback=_coerce_cost_table(rest, "costs"),
    )


def coerce_salvage(raw: Any) -> Dict[str, float]:
    if raw is None:
        return {}
    return {
        str(state): _coerce_number(value, f"salvage[{state!r}]")
        for state, value in _require_mapping(raw, "salvage").items()
    }


def model_to_dict(model: Union[TransitionModel, CostModel]) -> Dict[str, Any]:
    """Flatten a tagged model back into the plain nested-mapping form."""
    if isinstance(model, StationaryModel):
        return dict(model.table)
    flattened: Dict[str, Any] = {str(stage): table for stage, table in sorted(model.stages.items())}
    flattened.update(model.fallback)
    return flattened
