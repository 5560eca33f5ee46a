from __future__ import annotations

from pathlib import Path

import pytest

from horizon_mdp.exceptions import FormatError, MalformedModelError
from horizon_mdp.model import StationaryModel
from horizon_mdp.parser import (
    load_problem,
    parse_csv_list,
    parse_json_document,
    problem_from_document,
    problem_to_document,
    read_json_file,
)
from horizon_mdp.synthetic import delivery_robot_problem

SAMPLES = Path(__file__).resolve().parents[1] / "samples"


def test_parse_csv_list() -> None:
    assert parse_csv_list(" A, B,,C ,") == ["A", "B", "C"]
    assert parse_csv_list("") == []
    assert parse_csv_list(None) == []


def test_parse_json_document_blank_uses_fallback() -> None:
    assert parse_json_document("") == {}
    assert parse_json_document("   \n", fallback=[]) == []
    assert parse_json_document('{"A": 1}') == {"A": 1}


def test_parse_json_document_invalid() -> None:
    with pytest.raises(FormatError, match="^Invalid JSON"):
        parse_json_document("{not json")


def test_read_json_file_missing(tmp_path: Path) -> None:
    with pytest.raises(FormatError, match="Could not read"):
        read_json_file(tmp_path / "absent.json")


def test_read_json_file_names_path(tmp_path: Path) -> None:
    path = tmp_path / "costs.json"
    path.write_text("[1, 2", encoding="utf-8")
    with pytest.raises(FormatError, match="costs.json"):
        read_json_file(path)


def test_load_sample_problem() -> None:
    problem = load_problem(SAMPLES / "delivery_robot" / "problem.json")
    assert problem.states == ["A", "B", "C"]
    assert problem.actions == ["wait", "charge", "deliver"]
    assert problem.horizon == 4
    assert problem.discount == 1.0
    assert isinstance(problem.transitions, StationaryModel)
    assert problem.transitions.table["B"]["deliver"] == {"C": 0.8, "B": 0.2}
    assert problem.salvage == {"A": 0.0, "B": 0.0, "C": 0.0}


def test_document_defaults_and_aliases() -> None:
    problem = problem_from_document({"states": ["A"], "actions": "a, b", "stages": "3"})
    assert problem.actions == ["a", "b"]
    assert problem.horizon == 3
    assert problem.discount == 1.0
    assert problem.costs == StationaryModel({})
    assert problem.salvage == {}


def test_missing_keys_reported() -> None:
    with pytest.raises(FormatError, match="states, horizon"):
        problem_from_document({"actions": ["a"]})


@pytest.mark.parametrize(
    "document",
    [
        [],
        {"states": 3, "actions": ["a"], "horizon": 1},
        {"states": ["A"], "actions": ["a"], "horizon": "four"},
        {"states": ["A"], "actions": ["a"], "horizon": 1, "discount": "high"},
        {"states": ["A"], "actions": ["a"], "horizon": 1, "layout": "layered"},
    ],
)
def test_bad_documents_rejected(document) -> None:
    with pytest.raises(FormatError):
        problem_from_document(document)


def test_malformed_model_in_document() -> None:
    with pytest.raises(MalformedModelError):
        problem_from_document(
            {"states": ["A"], "actions": ["a"], "horizon": 1, "costs": {"A": 5}}
        )


def test_layout_override_beats_document() -> None:
    document = {
        "states": ["0", "1"],
        "actions": ["a"],
        "horizon": 1,
        "layout": "auto",
        "transitions": {"0": {"a": {"1": 1}}},
    }
    problem = problem_from_document(document, layout="stationary")
    assert problem.transitions == StationaryModel({"0": {"a": {"1": 1.0}}})


def test_problem_document_round_trip() -> None:
    problem = delivery_robot_problem()
    document = problem_to_document(problem)
    assert document["layout"] == "stationary"
    assert problem_from_document(document) == problem
