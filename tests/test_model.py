from __future__ import annotations

import pytest

from horizon_mdp.exceptions import AmbiguousLayoutError, MalformedModelError
from horizon_mdp.model import (
    StationaryModel,
    TimeVaryingModel,
    coerce_cost_model,
    coerce_salvage,
    coerce_transition_model,
    model_to_dict,
    parse_stage_key,
)


@pytest.mark.parametrize(
    "key, expected",
    [
        ("0", 0),
        ("12", 12),
        (" 3 ", 3),
        (4, 4),
        ("-1", None),
        (-1, None),
        ("A", None),
        ("1.5", None),
        (True, None),
        ("\u00b2", None),
        ("\u0663", None),
    ],
)
def test_parse_stage_key(key, expected) -> None:
    assert parse_stage_key(key) == expected


def test_state_keyed_mapping_is_stationary() -> None:
    model = coerce_transition_model({"A": {"a": {"A": 1}}}, ["A"])
    assert model == StationaryModel({"A": {"a": {"A": 1.0}}})


def test_integer_keys_make_model_time_varying() -> None:
    raw = {"0": {"A": {"a": {"B": 1}}}, "1": {"A": {"a": {"A": 1}}}, "A": {"a": {"A": 2}}}
    model = coerce_transition_model(raw, ["A", "B"])
    assert isinstance(model, TimeVaryingModel)
    assert model.stages == {0: {"A": {"a": {"B": 1.0}}}, 1: {"A": {"a": {"A": 1.0}}}}
    assert model.fallback == {"A": {"a": {"A": 2.0}}}


def test_numeric_state_names_are_ambiguous_under_auto() -> None:
    raw = {"0": {"a": {"0": 1.0, "1": 0.0}}, "1": {"a": {"1": 1.0}}}
    with pytest.raises(AmbiguousLayoutError):
        coerce_transition_model(raw, ["0", "1"])
    model = coerce_transition_model(raw, ["0", "1"], layout="stationary")
    assert isinstance(model, StationaryModel)
    assert model.table["0"]["a"] == {"0": 1.0, "1": 0.0}


def test_explicit_time_varying_rejects_state_keys() -> None:
    with pytest.raises(MalformedModelError):
        coerce_cost_model({"0": {"A": {"a": 1}}, "A": {"a": 2}}, ["A"], layout="time-varying")


def test_explicit_time_varying_accepts_numeric_state_names() -> None:
    model = coerce_cost_model({"0": {"0": {"a": 4}}}, ["0"], layout="time-varying")
    assert model == TimeVaryingModel(stages={0: {"0": {"a": 4.0}}})


def test_duplicate_stage_keys_rejected() -> None:
    with pytest.raises(MalformedModelError):
        coerce_cost_model({"1": {}, "01": {}}, ["A"])


def test_unknown_layout_rejected() -> None:
    with pytest.raises(ValueError):
        coerce_cost_model({}, ["A"], layout="layered")


@pytest.mark.parametrize(
    "raw",
    [
        ["not", "a", "mapping"],
        {"A": ["a"]},
        {"A": {"a": 7}},
        {"A": {"a": {"B": "lots"}}},
        {"A": {"a": {"B": True}}},
        {"A": {"a": {"B": -0.5}}},
        {"A": {"a": {"B": "nan"}}},
    ],
)
def test_malformed_transitions_rejected(raw) -> None:
    with pytest.raises(MalformedModelError):
        coerce_transition_model(raw, ["A", "B"])


def test_malformed_error_names_path() -> None:
    with pytest.raises(MalformedModelError, match=r"\['A'\]\['a'\]\['B'\]"):
        coerce_transition_model({"A": {"a": {"B": "x"}}}, ["A", "B"])


def test_cost_values_coerced_to_float() -> None:
    model = coerce_cost_model({"A": {"a": "2.5", "b": None, "c": -4}}, ["A"])
    assert model == StationaryModel({"A": {"a": 2.5, "b": 0.0, "c": -4.0}})


def test_salvage_coercion() -> None:
    assert coerce_salvage(None) == {}
    assert coerce_salvage({"A": 3, "B": "1.5"}) == {"A": 3.0, "B": 1.5}
    with pytest.raises(MalformedModelError):
        coerce_salvage({"A": {"nested": 1}})


def test_tagged_models_are_checked() -> None:
    with pytest.raises(MalformedModelError):
        coerce_cost_model(TimeVaryingModel(stages={0: {"A": {"a": "oops"}}}))


def test_model_to_dict_flattens_stage_keys() -> None:
    model = TimeVaryingModel(stages={1: {"A": {"a": 1.0}}}, fallback={"A": {"a": 2.0}})
    assert model_to_dict(model) == {"1": {"A": {"a": 1.0}}, "A": {"a": 2.0}}
    assert coerce_cost_model(model_to_dict(model), ["A"]) == model


def test_tagged_stage_keys_rekeyed_to_integers() -> None:
    model = coerce_transition_model(
        TimeVaryingModel(stages={"0": {"A": {"a": {"B": 1}}}, 2: {}}), ["A", "B"]
    )
    assert model.stages == {0: {"A": {"a": {"B": 1.0}}}, 2: {}}


@pytest.mark.parametrize(
    "stages",
    [{"first": {}}, {-1: {}}, {"1": {}, 1: {}}],
)
def test_tagged_stage_keys_validated(stages) -> None:
    with pytest.raises(MalformedModelError):
        coerce_cost_model(TimeVaryingModel(stages=stages), ["A"])


def test_oversized_integer_rejected() -> None:
    with pytest.raises(MalformedModelError, match="Non-finite"):
        coerce_cost_model({"A": {"a": 10**400}}, ["A"])
    with pytest.raises(MalformedModelError, match="Non-finite"):
        coerce_salvage({"A": -(10**400)})
