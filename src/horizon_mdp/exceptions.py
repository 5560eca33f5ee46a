"""Custom exception types."""

from __future__ import annotations

from typing import Optional


class MDPError(Exception):
    """Base class for every error raised by the solver package."""


class FormatError(MDPError, RuntimeError):
    """Raised when an input document does not have the expected structure."""


class MalformedModelError(FormatError):
    """Raised when a cost or transition model is not a mapping of mappings of numbers."""


class AmbiguousLayoutError(MalformedModelError):
    """Raised when a top-level key could name either a stage or a state."""


class DegenerateRowError(MalformedModelError):
    """Raised when a transition row has no next-state entries at all."""

    def __init__(self, stage: Optional[int], state: str, action: str) -> None:
        self.stage = stage
        self.state = state
        self.action = action
        where = "stationary table" if stage is None else f"stage {stage}"
        super().__init__(
            f"Transition row for state '{state}', action '{action}' in {where} "
            "has no next-state entries."
        )


class InvalidDomainError(MDPError, ValueError):
    """Raised when the state or action collection is unusable."""


class EmptyDomainError(InvalidDomainError):
    """Raised when there are no states or no actions."""


class InvalidHorizonError(MDPError, ValueError):
    """Raised when the horizon is not an integer of at least one."""


class InvalidDiscountError(MDPError, ValueError):
    """Raised when the discount factor lies outside [0, 1]."""
