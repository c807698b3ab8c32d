"""
Shared fakes: an in-memory rendered surface and a delay generator that never
actually sleeps. No browser is launched anywhere in the test suite.
"""
import pytest

from outreach.errors import NavigationTimeoutError
from outreach.linkedin.locators import LocatorResolver, LocatorRole, LocatorStrategy
from outreach.linkedin.protocol import InteractionProtocol
from outreach.linkedin.session import SessionManager
from outreach.linkedin.surface import css, role, text
from outreach.schemas.target import Target
from outreach.services.ledger import CsvLedger
from outreach.worker.delay import DelayGenerator
from outreach.worker.orchestrator import Orchestrator

TOKEN = "AQEDAS_test-session-token_0123456789abcdef"
ENTRY_URL = "https://www.linkedin.com/"
TEMPLATE = "Hi {{firstName}}, saw your work in {{industry}}."

NAV = css("nav.global-nav")
CAPTCHA = css("#captcha")
MESSAGE_BUTTON = role("button", r"^Message$", within="main")
MESSAGE_LINK = css("main a.message")
TEXTBOX = css("div[role='textbox']")
SEND = css("button.msg-form__send-button")
SENT = css(".msg-s-event-listitem__body")
CLOSE = css("button.close-conversation")
UNAVAILABLE = text(r"page doesn.?t exist")

STRATEGIES = {
    LocatorRole.COMPOSE_AFFORDANCE: LocatorStrategy(
        LocatorRole.COMPOSE_AFFORDANCE, (MESSAGE_BUTTON, MESSAGE_LINK)
    ),
    LocatorRole.INPUT_FIELD: LocatorStrategy(LocatorRole.INPUT_FIELD, (TEXTBOX,)),
    LocatorRole.SEND_AFFORDANCE: LocatorStrategy(LocatorRole.SEND_AFFORDANCE, (SEND,)),
    LocatorRole.LOGGED_IN_MARKER: LocatorStrategy(LocatorRole.LOGGED_IN_MARKER, (NAV,)),
    LocatorRole.CHALLENGE_MARKER: LocatorStrategy(LocatorRole.CHALLENGE_MARKER, (CAPTCHA,)),
    LocatorRole.SENT_CONFIRMATION: LocatorStrategy(LocatorRole.SENT_CONFIRMATION, (SENT,)),
    LocatorRole.CLOSE_COMPOSER: LocatorStrategy(LocatorRole.CLOSE_COMPOSER, (CLOSE,)),
    LocatorRole.PROFILE_UNAVAILABLE: LocatorStrategy(
        LocatorRole.PROFILE_UNAVAILABLE, (UNAVAILABLE,)
    ),
}


class FakeElement:
    def __init__(self, label="", visible=True, enabled=True, on_click=None):
        self.label = label
        self.visible = visible
        self.enabled = enabled
        self.on_click = on_click
        self.clicks = 0
        self.fills = []

    @property
    def value(self):
        return self.fills[-1] if self.fills else ""

    def is_visible(self):
        return self.visible

    def is_enabled(self):
        return self.enabled

    def click(self):
        self.clicks += 1
        if self.on_click is not None:
            self.on_click()

    def fill(self, value):
        self.fills.append(value)

    def __repr__(self):
        return f"FakeElement({self.label!r})"


class FakeSurface:
    """
    Pages are dicts of {Query: [FakeElement, ...]} keyed by URL. While the
    session cookie is accepted, the logged-in marker is present on every page.
    """

    def __init__(self, accept_token=True):
        self.url = "about:blank"
        self.pages = {}
        self.accept_token = accept_token
        self.cookies = []
        self.visits = []
        self.reloads = 0
        self.keys = []
        self.timeouts = set()
        self.redirects = {}
        self.errors = {}
        self.nav = FakeElement("nav")
        self.closed = False
        self.screenshots = []

    @property
    def authenticated(self):
        return self.accept_token and any(c["value"] == TOKEN for c in self.cookies)

    def expire_session(self):
        self.cookies = []

    def goto(self, url, timeout_ms):
        self.visits.append(url)
        if url in self.timeouts:
            raise NavigationTimeoutError(f"Navigation to {url} timed out after {timeout_ms} ms")
        self.url = self.redirects.get(url, url)

    def reload(self, timeout_ms):
        self.reloads += 1

    def query_all(self, query):
        if query in self.errors:
            raise self.errors[query]
        if query == NAV and self.authenticated:
            return [self.nav]
        return list(self.pages.get(self.url, {}).get(query, []))

    def add_cookies(self, cookies):
        self.cookies.extend(cookies)

    def press(self, key):
        self.keys.append(key)

    def screenshot(self, path):
        self.screenshots.append(path)
        path.write_bytes(b"PNG")

    def content(self):
        return f"<html><body>{self.url}</body></html>"

    def close(self):
        self.closed = True


def profile_page(compose=True, textbox=True, send=True, confirmation=True, extra=None):
    """Elements of a messageable profile page."""
    page = {}
    if compose:
        page[MESSAGE_BUTTON] = [FakeElement("message-button")]
    if textbox:
        page[TEXTBOX] = [FakeElement("textbox")]
    if send:
        page[SEND] = [FakeElement("send")]
    if confirmation:
        page[SENT] = [FakeElement("sent-bubble")]
    page[CLOSE] = [FakeElement("close")]
    page.update(extra or {})
    return page


class RecordingDelay(DelayGenerator):
    """DelayGenerator that records requested bounds and never sleeps."""

    def __init__(self, min_ms=1, max_ms=2):
        self.slept = []
        super().__init__(min_ms, max_ms, sleep=self.slept.append)
        self.calls = []

    def sleep(self, min_ms, max_ms):
        self.calls.append((min_ms, max_ms))
        super().sleep(min_ms, max_ms)


def make_target(n, **kwargs):
    kwargs.setdefault("firstName", f"Person{n}")
    kwargs.setdefault("lastName", "Test")
    kwargs.setdefault("industry", "Media")
    return Target(url=f"https://www.linkedin.com/in/person-{n}/", **kwargs)


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def resolver():
    return LocatorResolver(STRATEGIES)


@pytest.fixture
def delay():
    return RecordingDelay()


@pytest.fixture
def session_manager(surface, resolver, delay):
    return SessionManager(surface, TOKEN, resolver, delay, entry_url=ENTRY_URL)


@pytest.fixture
def protocol(resolver, delay, session_manager):
    return InteractionProtocol(resolver, delay, session_manager, TEMPLATE)


@pytest.fixture
def ledger(tmp_path):
    return CsvLedger(tmp_path / "logs" / "sent_messages.csv")


@pytest.fixture
def orchestrator(session_manager, protocol, ledger, delay):
    return Orchestrator(
        session_manager,
        protocol,
        ledger,
        delay,
        target_delay_min_ms=8000,
        target_delay_max_ms=12000,
    )
