import pytest

from outreach.errors import AuthenticationError, ChallengeDetectedError
from outreach.linkedin.protocol import Event, State, transition
from outreach.schemas.outcome import FailureReason, OutcomeStatus

from conftest import (
    CAPTCHA,
    CLOSE,
    ENTRY_URL,
    MESSAGE_BUTTON,
    MESSAGE_LINK,
    SEND,
    TEXTBOX,
    UNAVAILABLE,
    FakeElement,
    make_target,
    profile_page,
)

HAPPY_PATH = [
    State.PENDING,
    State.NAVIGATING,
    State.VERIFYING_SESSION,
    State.RESOLVING_COMPOSE,
    State.COMPOSING,
    State.RESOLVING_SEND,
    State.SENDING,
    State.VERIFYING_SENT,
    State.DONE,
]


@pytest.fixture
def logged_in(session_manager):
    session_manager.begin_run()
    session_manager.ensure_authenticated()
    return session_manager


# --- transition() ---


def test_ok_events_walk_the_happy_path():
    state, path = State.PENDING, [State.PENDING]
    while state != State.DONE:
        state, failure = transition(state, Event.OK)
        assert failure is None
        path.append(state)
    assert path == HAPPY_PATH


@pytest.mark.parametrize(
    "state,event,reason",
    [
        (State.NAVIGATING, Event.TIMEOUT, FailureReason.NAVIGATION_TIMEOUT),
        (State.VERIFYING_SESSION, Event.SESSION_LOST, FailureReason.SESSION_LOST),
        (State.VERIFYING_SESSION, Event.UNAVAILABLE, FailureReason.PROFILE_UNAVAILABLE),
        (State.RESOLVING_COMPOSE, Event.NOT_FOUND, FailureReason.COMPOSE_AFFORDANCE_NOT_FOUND),
        (State.COMPOSING, Event.NOT_FOUND, FailureReason.INPUT_FIELD_NOT_FOUND),
        (State.RESOLVING_SEND, Event.NOT_FOUND, FailureReason.SEND_AFFORDANCE_NOT_FOUND),
    ],
)
def test_failure_events_end_in_done_with_reason(state, event, reason):
    assert transition(state, event) == (State.DONE, reason)


@pytest.mark.parametrize("state", HAPPY_PATH[1:-1])
def test_error_from_any_state_is_unexpected_error(state):
    assert transition(state, Event.ERROR) == (State.DONE, FailureReason.UNEXPECTED_ERROR)


def test_done_is_terminal():
    with pytest.raises(ValueError):
        transition(State.DONE, Event.OK)


def test_unknown_pair_is_rejected():
    with pytest.raises(ValueError):
        transition(State.SENDING, Event.NOT_FOUND)


# --- InteractionProtocol.run() ---


def test_successful_send(protocol, surface, logged_in):
    target = make_target(1)
    page = profile_page()
    surface.pages[target.url] = page

    outcome = protocol.run(target, surface)

    assert outcome.status == OutcomeStatus.SENT
    assert outcome.confirmed is True
    assert outcome.failure_reason is None
    assert page[MESSAGE_BUTTON][0].clicks == 1
    assert page[TEXTBOX][0].fills == ["", "Hi Person1, saw your work in Media."]
    assert page[SEND][0].clicks == 1
    assert surface.visits[-1] == target.url


def test_missing_confirmation_still_counts_as_sent(protocol, surface, logged_in):
    target = make_target(1)
    surface.pages[target.url] = profile_page(confirmation=False)

    outcome = protocol.run(target, surface)

    assert outcome.status == OutcomeStatus.SENT
    assert outcome.confirmed is False


def test_compose_falls_back_to_second_candidate(protocol, surface, logged_in):
    target = make_target(1)
    link = FakeElement("message-link")
    surface.pages[target.url] = profile_page(compose=False, extra={MESSAGE_LINK: [link]})

    assert protocol.run(target, surface).status == OutcomeStatus.SENT
    assert link.clicks == 1


@pytest.mark.parametrize(
    "missing,reason",
    [
        ("compose", FailureReason.COMPOSE_AFFORDANCE_NOT_FOUND),
        ("textbox", FailureReason.INPUT_FIELD_NOT_FOUND),
        ("send", FailureReason.SEND_AFFORDANCE_NOT_FOUND),
    ],
)
def test_missing_affordance_fails_target(protocol, surface, logged_in, missing, reason):
    target = make_target(1)
    surface.pages[target.url] = profile_page(**{missing: False})

    outcome = protocol.run(target, surface)

    assert outcome.status == OutcomeStatus.FAILED
    assert outcome.failure_reason == reason


def test_composer_is_closed_after_failure(protocol, surface, logged_in):
    target = make_target(1)
    page = profile_page(send=False)
    surface.pages[target.url] = page

    protocol.run(target, surface)

    assert page[MESSAGE_BUTTON][0].clicks == 1
    assert page[CLOSE][0].clicks == 1


def test_escape_closes_composer_when_no_close_button(protocol, surface, logged_in):
    target = make_target(1)
    page = profile_page()
    del page[CLOSE]
    surface.pages[target.url] = page

    protocol.run(target, surface)

    assert surface.keys == ["Escape"]


def test_navigation_timeout_fails_target(protocol, surface, logged_in):
    target = make_target(1)
    surface.timeouts.add(target.url)

    outcome = protocol.run(target, surface)

    assert outcome.failure_reason == FailureReason.NAVIGATION_TIMEOUT
    assert "timed out" in outcome.error


def test_challenge_marker_is_fatal(protocol, surface, logged_in):
    target = make_target(1)
    surface.pages[target.url] = profile_page(extra={CAPTCHA: [FakeElement("captcha")]})

    with pytest.raises(ChallengeDetectedError):
        protocol.run(target, surface)


def test_challenge_address_is_fatal(protocol, surface, logged_in):
    target = make_target(1)
    surface.redirects[target.url] = "https://www.linkedin.com/checkpoint/challenge/AgF"

    with pytest.raises(ChallengeDetectedError):
        protocol.run(target, surface)


def test_unavailable_profile_fails_target(protocol, surface, logged_in):
    target = make_target(1)
    surface.pages[target.url] = profile_page(extra={UNAVAILABLE: [FakeElement("404")]})

    outcome = protocol.run(target, surface)

    assert outcome.failure_reason == FailureReason.PROFILE_UNAVAILABLE


def test_session_loss_reauthenticates_once_and_continues(protocol, surface, logged_in):
    target = make_target(1)
    surface.pages[target.url] = profile_page()
    surface.expire_session()

    outcome = protocol.run(target, surface)

    assert outcome.status == OutcomeStatus.SENT
    assert logged_in.reauth_used is True
    assert surface.visits[-3:] == [target.url, ENTRY_URL, target.url]


def test_second_session_loss_fails_target(protocol, surface, logged_in):
    first, second = make_target(1), make_target(2)
    surface.pages[first.url] = profile_page()
    surface.pages[second.url] = profile_page()

    surface.expire_session()
    assert protocol.run(first, surface).status == OutcomeStatus.SENT

    surface.expire_session()
    outcome = protocol.run(second, surface)

    assert outcome.failure_reason == FailureReason.SESSION_LOST


def test_failed_reauthentication_is_fatal(protocol, surface, logged_in):
    target = make_target(1)
    surface.pages[target.url] = profile_page()
    surface.expire_session()
    surface.accept_token = False

    with pytest.raises(AuthenticationError):
        protocol.run(target, surface)


def test_unexpected_error_is_contained(protocol, surface, logged_in):
    class Broken(FakeElement):
        def fill(self, value):
            raise RuntimeError("Element is not attached to the DOM")

    target = make_target(1)
    surface.pages[target.url] = profile_page(textbox=False, extra={TEXTBOX: [Broken()]})

    outcome = protocol.run(target, surface)

    assert outcome.status == OutcomeStatus.FAILED
    assert outcome.failure_reason == FailureReason.UNEXPECTED_ERROR
    assert "not attached" in outcome.detail


def test_disabled_send_button_is_waited_for(protocol, surface, delay, logged_in):
    target = make_target(1)
    send = FakeElement("send", enabled=False)
    surface.pages[target.url] = profile_page(send=False, extra={SEND: [send]})

    outcome = protocol.run(target, surface)

    assert outcome.status == OutcomeStatus.SENT
    assert send.clicks == 1
    assert delay.calls.count((500, 500)) == 10
