"""Parsing helpers for comma-separated lists and JSON model documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .constants import DEFAULT_DISCOUNT, LAYOUT_AUTO, LAYOUT_STATIONARY, LAYOUTS
from .exceptions import FormatError
from .model import (
    MDPProblem,
    StationaryModel,
    coerce_cost_model,
    coerce_salvage,
    coerce_transition_model,
    model_to_dict,
)


def parse_csv_list(raw: Optional[str]) -> List[str]:
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


def parse_json_document(raw: Optional[str], fallback: Any = None) -> Any:
    """Decode ``raw``; blank input yields ``fallback`` (an empty dict by default)."""
    if raw is None or not raw.strip():
        return {} if fallback is None else fallback
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise FormatError(f"Invalid JSON: {exc}") from exc


def read_json_file(path: Path, fallback: Any = None) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FormatError(f"Could not read {path}: {exc}") from exc
    try:
        return parse_json_document(text, fallback)
    except FormatError as exc:
        raise FormatError(f"{path}: {exc}") from exc


def _parse_name_list(value: Any, key: str, source: str) -> List[str]:
    if isinstance(value, str):
        return parse_csv_list(value)
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return [item.strip() for item in value if item.strip()]
    raise FormatError(
        f"'{key}' in {source} must be a list of names or a comma-separated string."
    )


def _parse_horizon(value: Any, source: str) -> int:
    if isinstance(value, bool):
        raise FormatError(f"'horizon' in {source} must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise FormatError(f"Non-integer horizon in {source}: {exc}") from exc
    raise FormatError(f"'horizon' in {source} must be an integer.")


def _parse_discount(value: Any, source: str) -> float:
    if isinstance(value, bool):
        raise FormatError(f"'discount' in {source} must be a number.")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as exc:
            raise FormatError(f"Non-numeric discount in {source}: {exc}") from exc
    raise FormatError(f"'discount' in {source} must be a number.")


def problem_from_document(
    document: Mapping[str, Any],
    *,
    source: str = "problem document",
    layout: Optional[str] = None,
) -> MDPProblem:
    """Build an :class:`MDPProblem` from a decoded problem document.

    ``layout`` overrides the document's own ``layout`` entry.
    """
    if not isinstance(document, Mapping):
        raise FormatError(f"{source} must be a JSON object.")
    missing = [key for key in ("states", "actions") if key not in document]
    if "horizon" not in document and "stages" not in document:
        missing.append("horizon")
    if missing:
        raise FormatError(f"{source} is missing required keys: {', '.join(missing)}.")

    states = _parse_name_list(document["states"], "states", source)
    actions = _parse_name_list(document["actions"], "actions", source)
    horizon = _parse_horizon(document.get("horizon", document.get("stages")), source)
    discount = _parse_discount(document.get("discount", DEFAULT_DISCOUNT), source)
    chosen = layout or document.get("layout", LAYOUT_AUTO)
    if chosen not in LAYOUTS:
        raise FormatError(
            f"Unknown layout '{chosen}' in {source}; expected one of {', '.join(LAYOUTS)}."
        )
    return MDPProblem(
        states=states,
        actions=actions,
        horizon=horizon,
        discount=discount,
        costs=coerce_cost_model(document.get("costs") or {}, states, chosen),
        transitions=coerce_transition_model(
            document.get("transitions") or {}, states, chosen
        ),
        salvage=coerce_salvage(document.get("salvage") or {}),
    )


def load_problem(path: Path, *, layout: Optional[str] = None) -> MDPProblem:
    return problem_from_document(read_json_file(path), source=str(path), layout=layout)


def problem_to_document(problem: MDPProblem) -> Dict[str, Any]:
    document: Dict[str, Any] = {
        "states": list(problem.states),
        "actions": list(problem.actions),
        "horizon": problem.horizon,
        "discount": problem.discount,
        "costs": model_to_dict(problem.costs),
        "transitions": model_to_dict(problem.transitions),
        "salvage": dict(problem.salvage),
    }
    if isinstance(problem.costs, StationaryModel) and isinstance(
        problem.transitions, StationaryModel
    ):
        document["layout"] = LAYOUT_STATIONARY
    return document
