"""
Counters for the run in progress. Owned and mutated by the Orchestrator only.
"""
from dataclasses import dataclass
from typing import Optional

from outreach.schemas.outcome import InteractionOutcome, OutcomeStatus
from outreach.schemas.run import RunSummary


@dataclass
class RunState:
    max_messages: int
    sent_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    processed: int = 0
    fatal_reason: Optional[str] = None

    @property
    def cap_reached(self) -> bool:
        return self.sent_count >= self.max_messages

    def count(self, outcome: InteractionOutcome) -> None:
        if outcome.status == OutcomeStatus.SENT:
            self.sent_count += 1
        elif outcome.status == OutcomeStatus.FAILED:
            self.failed_count += 1
        else:
            self.skipped_count += 1
        self.processed += 1

    def to_summary(self, ledger_location: str) -> RunSummary:
        return RunSummary(
            sent_count=self.sent_count,
            failed_count=self.failed_count,
            skipped_count=self.skipped_count,
            max_messages=self.max_messages,
            ledger_location=ledger_location,
            fatal_reason=self.fatal_reason,
        )
