"""Command-line interface for the finite-horizon MDP solver."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from .constants import LAYOUTS, LOG_FORMAT, MAX_CLAMPED_DISCOUNT
from .exceptions import FormatError, MDPError
from .model import MDPProblem
from .parser import (
    parse_csv_list,
    problem_from_document,
    problem_to_document,
    read_json_file,
)
from .solver import debug_summary, solve_problem, write_solution
from .synthetic import delivery_robot_problem

logger = logging.getLogger("horizon_mdp")


def clamp_discount(discount: float) -> float:
    return min(max(discount, 0.0), MAX_CLAMPED_DISCOUNT)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Solve a finite-horizon MDP by backward induction."
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "-p",
        "--problem",
        type=Path,
        help="JSON problem document with states, actions, horizon, costs, "
        "transitions and salvage.",
    )
    source.add_argument(
        "--example",
        action="store_true",
        help="Solve the bundled delivery-robot example.",
    )
    parser.add_argument("--states", help="Comma-separated state names.")
    parser.add_argument("--actions", help="Comma-separated action names.")
    parser.add_argument("-T", "--horizon", type=int, help="Number of decision stages.")
    parser.add_argument(
        "-g",
        "--discount",
        type=float,
        help="Discount factor in [0, 1] (default: 1, undiscounted).",
    )
    parser.add_argument("--costs", type=Path, help="JSON cost table.")
    parser.add_argument("--transitions", type=Path, help="JSON transition table.")
    parser.add_argument("--salvage", type=Path, help="JSON terminal salvage values.")
    parser.add_argument(
        "--layout",
        choices=LAYOUTS,
        default=None,
        help="How to read top-level integer keys in cost/transition tables "
        "(default: auto-detect).",
    )
    parser.add_argument(
        "--clamp-discount",
        action="store_true",
        help=f"Clamp the discount into [0, {MAX_CLAMPED_DISCOUNT}] instead of rejecting it.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("solution.json"),
        help="Destination file for the value and policy tables (default: solution.json).",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Print debug information about the parsed model and solver stages.",
    )
    return parser


def _configure_logging(debug: bool) -> None:
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False


def _assemble_problem(args: argparse.Namespace) -> MDPProblem:
    """Merge the problem document (or bundled example) with form-style overrides."""
    if args.example:
        document: Dict[str, Any] = problem_to_document(delivery_robot_problem())
        source = "bundled example"
    elif args.problem:
        document = read_json_file(args.problem)
        if not isinstance(document, dict):
            raise FormatError(f"{args.problem} must contain a JSON object.")
        source = str(args.problem)
    else:
        document = {}
        source = "command line"

    if args.states is not None:
        document["states"] = parse_csv_list(args.states)
    if args.actions is not None:
        document["actions"] = parse_csv_list(args.actions)
    if args.horizon is not None:
        document["horizon"] = args.horizon
    if args.discount is not None:
        document["discount"] = args.discount
    if args.costs is not None or args.transitions is not None:
        # The bundled layout tag no longer describes replaced tables.
        document.pop("layout", None)
    if args.costs is not None:
        document["costs"] = read_json_file(args.costs)
    if args.transitions is not None:
        document["transitions"] = read_json_file(args.transitions)
    if args.salvage is not None:
        document["salvage"] = read_json_file(args.salvage)
    return problem_from_document(document, source=source, layout=args.layout)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.debug)
    if not (args.problem or args.example or args.states or args.actions):
        parser.error("provide --problem, --example, or --states/--actions")

    try:
        problem = _assemble_problem(args)
        if args.clamp_discount:
            clamped = clamp_discount(problem.discount)
            if clamped != problem.discount:
                logger.info("Clamped discount %s to %s.", problem.discount, clamped)
            problem.discount = clamped
        if args.debug:
            print("[debug]", debug_summary(problem))
        solution = solve_problem(problem)
        try:
            write_solution(args.output, solution)
        except OSError as exc:
            raise FormatError(f"Could not write {args.output}: {exc}") from exc
    except MDPError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    logger.info(
        "Wrote value and policy tables for %d stages to %s", solution.horizon, args.output
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
