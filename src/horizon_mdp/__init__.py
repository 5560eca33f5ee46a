"""Finite-horizon MDP solver (backward induction)."""

from .cli import main
from .model import MDPProblem, StationaryModel, TimeVaryingModel
from .normalize import normalize_row, normalize_transitions
from .solver import Solution, action_values, solve, solve_problem

__all__ = [
    "main",
    "MDPProblem",
    "StationaryModel",
    "TimeVaryingModel",
    "normalize_row",
    "normalize_transitions",
    "Solution",
    "action_values",
    "solve",
    "solve_problem",
]
