"""Failure reasons and the outcome value returned by core operations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FailureReason(Enum):
    UNKNOWN_RESOURCE = "unknown_resource"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_RESOURCE = "insufficient_resource"
    UNKNOWN_RECIPE = "unknown_recipe"
    INSUFFICIENT_SKILL = "insufficient_skill"
    INSUFFICIENT_RESOURCES = "insufficient_resources"
    CONSUMPTION_FAILED = "consumption_failed"
    PERSISTENCE_READ_ERROR = "persistence_read_error"
    PERSISTENCE_WRITE_ERROR = "persistence_write_error"
    UNKNOWN_TARGET = "unknown_target"
    UNSUPPORTED_INTERACTION = "unsupported_interaction"


# Human-readable text shown by the UI collaborator
FAILURE_MESSAGES: dict[FailureReason, str] = {
    FailureReason.UNKNOWN_RESOURCE: "Resource does not exist",
    FailureReason.INVALID_AMOUNT: "Amount must be positive",
    FailureReason.INSUFFICIENT_RESOURCE: "Not enough of that resource",
    FailureReason.UNKNOWN_RECIPE: "Recipe does not exist",
    FailureReason.INSUFFICIENT_SKILL: "Insufficient skill level",
    FailureReason.INSUFFICIENT_RESOURCES: "Insufficient resources",
    FailureReason.CONSUMPTION_FAILED: "Resource consumption failed",
    FailureReason.PERSISTENCE_READ_ERROR: "Could not read save data",
    FailureReason.PERSISTENCE_WRITE_ERROR: "Could not write save data",
    FailureReason.UNKNOWN_TARGET: "Interaction target not found",
    FailureReason.UNSUPPORTED_INTERACTION: "Interaction not supported by target",
}


@dataclass(frozen=True)
class Outcome:
    """Result of a core operation. Truthy on success."""

    ok: bool
    reason: Optional[FailureReason] = None
    detail: str = ""
    hit_limit: bool = False

    def __bool__(self) -> bool:
        return self.ok

    @property
    def message(self) -> str:
        if self.reason is None:
            return ""
        return FAILURE_MESSAGES[self.reason]

    @classmethod
    def success(cls, hit_limit: bool = False) -> Outcome:
        return cls(ok=True, hit_limit=hit_limit)

    @classmethod
    def failure(cls, reason: FailureReason, detail: str = "") -> Outcome:
        return cls(ok=False, reason=reason, detail=detail)
