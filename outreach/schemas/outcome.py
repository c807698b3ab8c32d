from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from outreach.schemas.target import Target


class OutcomeStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


class FailureReason(str, Enum):
    NAVIGATION_TIMEOUT = "NavigationTimeout"
    SESSION_LOST = "SessionLost"
    PROFILE_UNAVAILABLE = "ProfileUnavailable"
    COMPOSE_AFFORDANCE_NOT_FOUND = "ComposeAffordanceNotFound"
    INPUT_FIELD_NOT_FOUND = "InputFieldNotFound"
    SEND_AFFORDANCE_NOT_FOUND = "SendAffordanceNotFound"
    UNEXPECTED_ERROR = "UnexpectedError"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InteractionOutcome(BaseModel):
    target: Target
    status: OutcomeStatus
    failure_reason: Optional[FailureReason] = None
    detail: str = ""
    # None unless a send happened; False means sent without a visible confirmation.
    confirmed: Optional[bool] = None
    timestamp: datetime = Field(default_factory=utcnow)

    class Config:
        frozen = True

    @classmethod
    def sent(cls, target: Target, confirmed: bool) -> "InteractionOutcome":
        return cls(target=target, status=OutcomeStatus.SENT, confirmed=confirmed)

    @classmethod
    def failed(
        cls, target: Target, reason: FailureReason, detail: str = ""
    ) -> "InteractionOutcome":
        return cls(
            target=target,
            status=OutcomeStatus.FAILED,
            failure_reason=reason,
            detail=detail,
        )

    @classmethod
    def skipped(cls, target: Target, detail: str) -> "InteractionOutcome":
        return cls(target=target, status=OutcomeStatus.SKIPPED, detail=detail)

    @property
    def error(self) -> str:
        """The ledger's error column: reason code, then any detail."""
        if self.failure_reason is None:
            return self.detail
        if self.detail:
            return f"{self.failure_reason.value}: {self.detail}"
        return self.failure_reason.value
