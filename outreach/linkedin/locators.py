"""
Locator strategies and the resolver that walks them.

SELECTOR STRATEGY (Critical -- LinkedIn changes DOM frequently):
  1. ARIA / role selectors FIRST
  2. Text-based selectors SECOND
  3. CSS selectors LAST RESORT

Each role maps to an ordered candidate list. The first candidate that
yields a visible element wins; within one candidate the first visible
element in document order wins. Editing these tables is the only change
needed when the site's markup moves.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from outreach.linkedin.surface import Query, Surface, css, role, text
from outreach.schemas.target import ProfileVariant


class LocatorRole(str, Enum):
    COMPOSE_AFFORDANCE = "ComposeAffordance"
    INPUT_FIELD = "InputField"
    SEND_AFFORDANCE = "SendAffordance"
    LOGGED_IN_MARKER = "LoggedInMarker"
    CHALLENGE_MARKER = "ChallengeMarker"
    SENT_CONFIRMATION = "SentConfirmation"
    CLOSE_COMPOSER = "CloseComposer"
    PROFILE_UNAVAILABLE = "ProfileUnavailable"


@dataclass(frozen=True)
class LocatorStrategy:
    role: LocatorRole
    candidates: tuple[Query, ...]


@dataclass(frozen=True)
class LocatorMatch:
    role: LocatorRole
    element: object
    query: Query


CHALLENGE_HEADING = (
    r"^\s*(let.s do a quick security check|verify your identity|"
    r"security verification|we.ve detected unusual activity.*)\s*$"
)

DEFAULT_CANDIDATES: dict[LocatorRole, tuple[Query, ...]] = {
    LocatorRole.COMPOSE_AFFORDANCE: (
        role("button", r"^\s*Message\s*$", within="main"),
        role("link", r"^\s*Message\s*$", within="main"),
        css("main button:has-text('Message')"),
        css("main a:has-text('Message')"),
        css("button[aria-label^='Message' i]"),
        css("button.message-anywhere-button"),
        css("a[href*='/messaging/compose']"),
    ),
    LocatorRole.INPUT_FIELD: (
        role("textbox", r"write a message", within="form.msg-form"),
        css("div[role='textbox'][contenteditable='true'][aria-label*='Write a message' i]"),
        css("div[role='textbox'][contenteditable='true'][aria-label*='message' i]"),
        css("div.msg-form__contenteditable[contenteditable='true']"),
        css("div.msg-form__msg-content-container div[contenteditable='true']"),
        css("form.msg-form div[contenteditable='true']"),
        css("textarea.msg-form__textarea"),
        css("textarea[name='message']"),
        css("div[role='textbox'][contenteditable='true']"),
    ),
    LocatorRole.SEND_AFFORDANCE: (
        role("button", r"^\s*Send\s*$", within="form.msg-form"),
        css("button.msg-form__send-button[type='submit']"),
        css("button[type='submit']:has-text('Send')"),
        css("button[aria-label='Send' i]"),
        role("button", r"^\s*Send\s*$"),
    ),
    LocatorRole.LOGGED_IN_MARKER: (
        css("nav.global-nav"),
        css("#global-nav"),
        css(".global-nav__me-photo"),
        css("[data-test-global-nav]"),
        css(".search-global-typeahead"),
        css(".feed-identity-module"),
        css("img.global-nav__me-photo"),
        role("button", r"^\s*Me\s*$"),
    ),
    LocatorRole.CHALLENGE_MARKER: (
        css("iframe[src*='captcha']"),
        css("#captcha"),
        css(".captcha"),
        css("img[src*='captcha']"),
        css("#captcha-internal"),
        # Whole-heading match only: profile text may mention these phrases.
        role("heading", CHALLENGE_HEADING),
    ),
    LocatorRole.SENT_CONFIRMATION: (
        css(".msg-s-event-listitem__body"),
        css(".msg-s-event--timestamp"),
        css("li.msg-s-message-list__event"),
    ),
    LocatorRole.CLOSE_COMPOSER: (
        css("button[data-control-name='overlay.close_conversation_window']"),
        css(".msg-overlay-bubble-header__control--close-btn"),
        role("button", r"close your (conversation|draft)"),
    ),
    LocatorRole.PROFILE_UNAVAILABLE: (
        text(r"page doesn.?t exist|profile.*not (found|available)"),
    ),
}

# Sales Navigator lead pages compose InMail instead of a direct message.
NETWORK_SCOPED_CANDIDATES: dict[LocatorRole, tuple[Query, ...]] = {
    LocatorRole.COMPOSE_AFFORDANCE: (
        role("button", r"^\s*(Message|Send InMail|Send message)\s*$"),
        css("button[data-control-name='message']"),
        css("button[data-control-name='writing_inmail']"),
    ),
    LocatorRole.INPUT_FIELD: (
        css("textarea.compose-form__message-field"),
        css(".compose-form__message-field"),
        css("[data-control-name='write_inmail']"),
    ),
}


def default_strategies(
    variant: ProfileVariant = ProfileVariant.DIRECT,
) -> dict[LocatorRole, LocatorStrategy]:
    """Strategies for a profile variant. Variant-specific candidates go first."""
    strategies = {}
    for locator_role, candidates in DEFAULT_CANDIDATES.items():
        if variant == ProfileVariant.NETWORK_SCOPED:
            candidates = NETWORK_SCOPED_CANDIDATES.get(locator_role, ()) + candidates
        strategies[locator_role] = LocatorStrategy(locator_role, candidates)
    return strategies


class LocatorResolver:
    """Resolves a semantic role to one visible element on the current surface."""

    def __init__(self, strategies: Optional[dict] = None):
        self.logger = logging.getLogger("outreach")
        self._by_variant: dict[ProfileVariant, dict[LocatorRole, LocatorStrategy]] = {}
        self._override = strategies

    def strategy(
        self, locator_role: LocatorRole, variant: ProfileVariant = ProfileVariant.DIRECT
    ) -> LocatorStrategy:
        if self._override is not None:
            return self._override.get(locator_role, LocatorStrategy(locator_role, ()))
        if variant not in self._by_variant:
            self._by_variant[variant] = default_strategies(variant)
        return self._by_variant[variant][locator_role]

    def resolve(
        self,
        locator_role: LocatorRole,
        surface: Surface,
        variant: ProfileVariant = ProfileVariant.DIRECT,
    ) -> Optional[LocatorMatch]:
        """
        Walk the role's candidates in order. Returns the first visible match,
        or None when no candidate matches. A candidate that raises is treated
        as non-matching.
        """
        for query in self.strategy(locator_role, variant).candidates:
            try:
                elements = surface.query_all(query)
            except Exception as e:
                self.logger.debug(f"{locator_role.value}: {query.describe()} raised: {e}")
                continue

            for element in elements:
                try:
                    visible = element.is_visible()
                except Exception:
                    visible = False
                if visible:
                    self.logger.debug(f"{locator_role.value} found via: {query.describe()}")
                    return LocatorMatch(locator_role, element, query)

            self.logger.debug(
                f"{locator_role.value}: {query.describe()} matched "
                f"{len(elements)} element(s), none visible."
            )

        self.logger.debug(f"{locator_role.value}: no candidate matched.")
        return None
