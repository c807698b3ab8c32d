"""
Per-target interaction protocol.

Sending one message is a fixed sequence of states. Each state has a handler
that does the browser work and reports an Event; transition() maps
(state, event) to the next state or to a terminal failure. The driver loop
in InteractionProtocol.run() is the only place that sequences them.

    PENDING -> NAVIGATING -> VERIFYING_SESSION -> RESOLVING_COMPOSE ->
    COMPOSING -> RESOLVING_SEND -> SENDING -> VERIFYING_SENT -> DONE
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Optional

from outreach.errors import ChallengeDetectedError, FatalRunError, NavigationTimeoutError
from outreach.linkedin.locators import LocatorResolver, LocatorRole
from outreach.schemas.outcome import FailureReason, InteractionOutcome
from outreach.schemas.target import Target
from outreach.services.message_service import missing_attributes, render

# Addresses that are themselves a verification interstitial.
CHALLENGE_URL_PATTERNS = ("/checkpoint/", "/challenge")

SEND_READY_POLLS = 10
SEND_READY_POLL_MS = 500


class State(str, Enum):
    PENDING = "Pending"
    NAVIGATING = "Navigating"
    VERIFYING_SESSION = "VerifyingSession"
    RESOLVING_COMPOSE = "ResolvingCompose"
    COMPOSING = "Composing"
    RESOLVING_SEND = "ResolvingSend"
    SENDING = "Sending"
    VERIFYING_SENT = "VerifyingSent"
    DONE = "Done"


class Event(str, Enum):
    OK = "ok"
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    SESSION_LOST = "session_lost"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


class Transition(NamedTuple):
    state: State
    # Set only when state is DONE and the target failed.
    failure: Optional[FailureReason] = None


NEXT_STATE = {
    State.PENDING: State.NAVIGATING,
    State.NAVIGATING: State.VERIFYING_SESSION,
    State.VERIFYING_SESSION: State.RESOLVING_COMPOSE,
    State.RESOLVING_COMPOSE: State.COMPOSING,
    State.COMPOSING: State.RESOLVING_SEND,
    State.RESOLVING_SEND: State.SENDING,
    State.SENDING: State.VERIFYING_SENT,
    State.VERIFYING_SENT: State.DONE,
}

FAILURES = {
    (State.NAVIGATING, Event.TIMEOUT): FailureReason.NAVIGATION_TIMEOUT,
    (State.VERIFYING_SESSION, Event.SESSION_LOST): FailureReason.SESSION_LOST,
    (State.VERIFYING_SESSION, Event.UNAVAILABLE): FailureReason.PROFILE_UNAVAILABLE,
    (State.RESOLVING_COMPOSE, Event.NOT_FOUND): FailureReason.COMPOSE_AFFORDANCE_NOT_FOUND,
    (State.COMPOSING, Event.NOT_FOUND): FailureReason.INPUT_FIELD_NOT_FOUND,
    (State.RESOLVING_SEND, Event.NOT_FOUND): FailureReason.SEND_AFFORDANCE_NOT_FOUND,
}


def transition(state: State, event: Event) -> Transition:
    """Pure transition function for the protocol."""
    if state == State.DONE:
        raise ValueError("Done is terminal.")
    if event == Event.OK:
        return Transition(NEXT_STATE[state])
    if event == Event.ERROR:
        return Transition(State.DONE, FailureReason.UNEXPECTED_ERROR)
    try:
        return Transition(State.DONE, FAILURES[(state, event)])
    except KeyError:
        raise ValueError(f"No transition from {state.value} on {event.value}")


@dataclass
class Attempt:
    """Scratch state for one target while the protocol runs."""

    target: Target
    surface: object
    message: str = ""
    compose: object = None
    send: object = None
    confirmed: bool = False
    error: str = ""
    history: list = field(default_factory=list)


class InteractionProtocol:
    """Sends one personalized message to one target, step by step."""

    def __init__(
        self,
        resolver: LocatorResolver,
        delay,
        session_manager,
        message_template: str,
        navigation_timeout_ms: int = 60000,
        diagnostics=None,
    ):
        self.resolver = resolver
        self.delay = delay
        self.session_manager = session_manager
        self.message_template = message_template
        self.navigation_timeout_ms = navigation_timeout_ms
        self.diagnostics = diagnostics
        self.logger = logging.getLogger("outreach")
        self._handlers = {
            State.PENDING: self._pending,
            State.NAVIGATING: self._navigate,
            State.VERIFYING_SESSION: self._verify_session,
            State.RESOLVING_COMPOSE: self._resolve_compose,
            State.COMPOSING: self._compose,
            State.RESOLVING_SEND: self._resolve_send,
            State.SENDING: self._send,
            State.VERIFYING_SENT: self._verify_sent,
        }

    def run(self, target: Target, surface) -> InteractionOutcome:
        """
        Drive the state machine for one target.

        Returns exactly one outcome. Fatal conditions (challenge detected,
        failed re-authentication) raise FatalRunError; everything else that
        goes wrong becomes a Failed outcome.
        """
        attempt = Attempt(target=target, surface=surface)
        state = State.PENDING
        failure = None

        while state != State.DONE:
            attempt.history.append(state)
            self.logger.debug(f"[{target.url}] {state.value}")
            try:
                event = self._handlers[state](attempt)
            except FatalRunError:
                raise
            except Exception as e:
                self.logger.exception(f"Unexpected error in {state.value} for {target.url}")
                attempt.error = f"{type(e).__name__}: {e}"
                event = Event.ERROR
            state, failure = transition(state, event)

        if failure is not None:
            self.logger.error(f"Failed to message {target.name or target.url}: {failure.value}")
            self._snapshot(surface, "failure")
            self._close_composer(attempt)
            return InteractionOutcome.failed(target, failure, attempt.error)

        self._close_composer(attempt)
        return InteractionOutcome.sent(target, confirmed=attempt.confirmed)

    # --- State handlers ---

    def _pending(self, attempt: Attempt) -> Event:
        missing = missing_attributes(self.message_template, attempt.target)
        if missing:
            self.logger.warning(
                f"No value for {', '.join(missing)} on {attempt.target.url}; left blank."
            )
        attempt.message = render(self.message_template, attempt.target)
        return Event.OK

    def _navigate(self, attempt: Attempt) -> Event:
        url = attempt.target.url
        self.logger.info(f"Navigating to profile: {url}")
        try:
            attempt.surface.goto(url, self.navigation_timeout_ms)
        except NavigationTimeoutError as e:
            attempt.error = str(e)
            return Event.TIMEOUT
        self.delay.pause()
        self._snapshot(attempt.surface, "post-navigation")
        return Event.OK

    def _verify_session(self, attempt: Attempt) -> Event:
        surface = attempt.surface
        self._check_challenge(surface)

        if self.session_manager.is_live():
            return self._check_profile(attempt)

        if not self.session_manager.re_authenticate_once():
            attempt.error = "Session lost and re-authentication already used this run"
            return Event.SESSION_LOST

        # Back to the profile with the fresh session.
        try:
            surface.goto(attempt.target.url, self.navigation_timeout_ms)
        except NavigationTimeoutError as e:
            attempt.error = str(e)
            return Event.SESSION_LOST
        self.delay.pause()
        self._check_challenge(surface)

        if not self.session_manager.is_live():
            attempt.error = "Still not logged in after re-authentication"
            return Event.SESSION_LOST
        return self._check_profile(attempt)

    def _resolve_compose(self, attempt: Attempt) -> Event:
        match = self.resolver.resolve(
            LocatorRole.COMPOSE_AFFORDANCE, attempt.surface, attempt.target.variant
        )
        if match is None:
            self.logger.error("Message button not found. May not be connected.")
            return Event.NOT_FOUND
        attempt.compose = match.element
        return Event.OK

    def _compose(self, attempt: Attempt) -> Event:
        attempt.compose.click()
        self.logger.debug("Message button clicked. Waiting for composer...")
        self.delay.pause()

        match = self.resolver.resolve(
            LocatorRole.INPUT_FIELD, attempt.surface, attempt.target.variant
        )
        if match is None:
            self.logger.error("Could not find message input box.")
            return Event.NOT_FOUND

        message_box = match.element
        message_box.click()
        message_box.fill("")
        message_box.fill(attempt.message)
        self.logger.debug(f"Typed message ({len(attempt.message)} chars).")
        self.delay.pause()
        self._snapshot(attempt.surface, "post-compose")
        return Event.OK

    def _resolve_send(self, attempt: Attempt) -> Event:
        match = self.resolver.resolve(
            LocatorRole.SEND_AFFORDANCE, attempt.surface, attempt.target.variant
        )
        if match is None:
            self.logger.error("Could not find Send button.")
            return Event.NOT_FOUND
        attempt.send = match.element
        return Event.OK

    def _send(self, attempt: Attempt) -> Event:
        send_btn = attempt.send
        if not send_btn.is_enabled():
            self.logger.debug("Send button is disabled. Waiting for it to enable...")
            for _ in range(SEND_READY_POLLS):
                self.delay.sleep(SEND_READY_POLL_MS, SEND_READY_POLL_MS)
                if send_btn.is_enabled():
                    break
            else:
                self.logger.warning("Send button still disabled. Clicking anyway...")

        send_btn.click()
        self.delay.pause()
        self._snapshot(attempt.surface, "post-send")
        return Event.OK

    def _verify_sent(self, attempt: Attempt) -> Event:
        match = self.resolver.resolve(LocatorRole.SENT_CONFIRMATION, attempt.surface)
        attempt.confirmed = match is not None
        if attempt.confirmed:
            self.logger.info(f"Message sent to {attempt.target.name or attempt.target.url}.")
        else:
            self.logger.warning(
                f"No confirmation visible for {attempt.target.url}, "
                f"but the send completed without errors. Counting as sent."
            )
        return Event.OK

    # --- Helpers ---

    def _check_challenge(self, surface) -> None:
        current_url = surface.url.lower()
        if any(pattern in current_url for pattern in CHALLENGE_URL_PATTERNS):
            self.logger.critical("Security challenge detected in URL!")
            self._snapshot(surface, "challenge")
            raise ChallengeDetectedError(f"Security challenge page: {surface.url}")

        if self.resolver.resolve(LocatorRole.CHALLENGE_MARKER, surface) is not None:
            self.logger.critical("Security challenge detected on page!")
            self._snapshot(surface, "challenge")
            raise ChallengeDetectedError(f"Security challenge shown on {surface.url}")

    def _check_profile(self, attempt: Attempt) -> Event:
        if self.resolver.resolve(LocatorRole.PROFILE_UNAVAILABLE, attempt.surface) is not None:
            self.logger.error(f"Profile not found: {attempt.target.url}")
            return Event.UNAVAILABLE
        return Event.OK

    def _close_composer(self, attempt: Attempt) -> None:
        """Dismiss any open message overlay. Best effort."""
        if attempt.compose is None:
            return
        try:
            match = self.resolver.resolve(LocatorRole.CLOSE_COMPOSER, attempt.surface)
            if match is not None:
                match.element.click()
            else:
                attempt.surface.press("Escape")
        except Exception as e:
            self.logger.debug(f"Could not close message overlay: {e}")

    def _snapshot(self, surface, label: str) -> None:
        if self.diagnostics is not None:
            self.diagnostics.snapshot(surface, label)
