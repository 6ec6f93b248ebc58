from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TypeAlias

from elephant.api.models import Party


class RejectionReason(StrEnum):
    not_found = "not_found"
    unauthorized = "unauthorized"
    invalid_state = "invalid_state"
    rule_violation = "rule_violation"


@dataclass(frozen=True, slots=True)
class Rejected:
    """An illegal move. Carries no party; the caller keeps the state it had."""

    reason: RejectionReason
    message: str

    @staticmethod
    def not_found(message: str) -> "Rejected":
        return Rejected(reason=RejectionReason.not_found, message=message)

    @staticmethod
    def unauthorized(message: str) -> "Rejected":
        return Rejected(reason=RejectionReason.unauthorized, message=message)

    @staticmethod
    def invalid_state(message: str) -> "Rejected":
        return Rejected(reason=RejectionReason.invalid_state, message=message)

    @staticmethod
    def rule_violation(message: str) -> "Rejected":
        return Rejected(reason=RejectionReason.rule_violation, message=message)


Outcome: TypeAlias = Party | Rejected
