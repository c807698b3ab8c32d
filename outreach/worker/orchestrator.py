"""
Sequential outreach run over an ordered list of targets.

Key design:
- One session, one surface, one target in flight at a time
- Per-target failures are recorded and the run moves on
- Fatal conditions (challenge, authentication) stop everything at once
- Every outcome hits the ledger before the next target starts
"""
import logging
from typing import Iterable

from outreach.errors import FatalRunError
from outreach.schemas.outcome import InteractionOutcome, OutcomeStatus
from outreach.schemas.run import RunSummary
from outreach.schemas.target import Target
from outreach.worker.run_state import RunState

logger = logging.getLogger("outreach")


class Orchestrator:
    def __init__(
        self,
        session_manager,
        protocol,
        ledger,
        delay,
        target_delay_min_ms: int = 8000,
        target_delay_max_ms: int = 12000,
        skip_already_sent: bool = True,
    ):
        self.session_manager = session_manager
        self.protocol = protocol
        self.ledger = ledger
        self.delay = delay
        self.target_delay_min_ms = target_delay_min_ms
        self.target_delay_max_ms = target_delay_max_ms
        self.skip_already_sent = skip_already_sent

    def run(self, targets: Iterable[Target], cap: int) -> RunSummary:
        """
        Process targets in order until they run out or `cap` messages are sent.

        Raises FatalRunError (with .summary attached) when the run is aborted.
        """
        state = RunState(max_messages=cap)
        try:
            self._run(targets, state)
        except FatalRunError as e:
            state.fatal_reason = str(e)
            logger.critical(f"Run aborted: {e}")
            e.summary = state.to_summary(self.ledger.location)
            raise
        finally:
            self.ledger.flush()

        summary = state.to_summary(self.ledger.location)
        logger.info(
            f"Run complete. Sent: {summary.sent_count}/{cap}, "
            f"failed: {summary.failed_count}, skipped: {summary.skipped_count}"
        )
        return summary

    def _run(self, targets: Iterable[Target], state: RunState) -> None:
        if state.cap_reached:
            logger.info(f"Message cap is {state.max_messages}. Nothing to send.")
            return

        self.session_manager.begin_run()
        self.session_manager.ensure_authenticated()

        already_sent = self.ledger.sent_urls() if self.skip_already_sent else set()
        if already_sent:
            logger.info(f"{len(already_sent)} profiles already messaged in earlier runs.")

        for i, target in enumerate(targets, start=1):
            if state.cap_reached:
                logger.info(f"Message cap reached ({state.max_messages}). Stopping.")
                break

            logger.info(f"--- Profile {i}: {target.name or '(no name)'} | {target.url} ---")

            if target.url in already_sent:
                logger.info(f"Already messaged {target.url} in an earlier run. Skipping.")
                self._record(state, InteractionOutcome.skipped(target, "already sent"))
                continue

            if state.sent_count + state.failed_count > 0:
                logger.info("Waiting before processing next profile...")
                self.delay.sleep(self.target_delay_min_ms, self.target_delay_max_ms)

            with self.session_manager.lend() as surface:
                outcome = self.protocol.run(target, surface)
            self._record(state, outcome)

            if outcome.status == OutcomeStatus.SENT:
                if self.skip_already_sent:
                    already_sent.add(target.url)
                logger.info(f"Action {state.sent_count}/{state.max_messages}: message sent.")

    def _record(self, state: RunState, outcome: InteractionOutcome) -> None:
        self.ledger.record(outcome)
        state.count(outcome)
