"""
The rendered surface: what the engine is allowed to see and touch.

Locator data is expressed as Query descriptors. Only PlaywrightSurface knows
how a descriptor becomes a Playwright locator, so markup churn changes the
locator tables and never the control flow.
"""
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from playwright.sync_api import Page, TimeoutError as PlaywrightTimeoutError

from outreach.errors import NavigationTimeoutError

logger = logging.getLogger("outreach")


@dataclass(frozen=True)
class Query:
    """
    One candidate query.

    kind:   "css", "role" or "text"
    value:  CSS selector, ARIA role, or text regex
    name:   accessible-name regex (role queries only)
    within: optional CSS scope the query is evaluated inside
    """

    kind: str
    value: str
    name: Optional[str] = None
    within: Optional[str] = None

    def describe(self) -> str:
        scope = f"{self.within} >> " if self.within else ""
        if self.kind == "role":
            return f"{scope}role={self.value}[name=/{self.name}/i]"
        if self.kind == "text":
            return f"{scope}text=/{self.value}/i"
        return f"{scope}{self.value}"


def css(selector: str, within: Optional[str] = None) -> Query:
    return Query("css", selector, within=within)


def role(aria_role: str, name: str, within: Optional[str] = None) -> Query:
    return Query("role", aria_role, name=name, within=within)


def text(pattern: str, within: Optional[str] = None) -> Query:
    return Query("text", pattern, within=within)


class Element(Protocol):
    def is_visible(self) -> bool: ...

    def is_enabled(self) -> bool: ...

    def click(self) -> None: ...

    def fill(self, value: str) -> None: ...


class Surface(Protocol):
    @property
    def url(self) -> str: ...

    def goto(self, url: str, timeout_ms: int) -> None: ...

    def reload(self, timeout_ms: int) -> None: ...

    def query_all(self, query: Query) -> list: ...

    def add_cookies(self, cookies: list[dict]) -> None: ...

    def press(self, key: str) -> None: ...

    def screenshot(self, path: Path) -> None: ...

    def content(self) -> str: ...

    def close(self) -> None: ...


class PlaywrightSurface:
    """Surface backed by a single Playwright page (one tab, one session)."""

    def __init__(self, page: Page, closer=None):
        self.page = page
        self._closer = closer

    @property
    def url(self) -> str:
        return self.page.url

    def goto(self, url: str, timeout_ms: int) -> None:
        try:
            self.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeoutError(
                f"Navigation to {url} timed out after {timeout_ms} ms"
            ) from e

    def reload(self, timeout_ms: int) -> None:
        try:
            self.page.reload(wait_until="domcontentloaded", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeoutError(
                f"Reload of {self.page.url} timed out after {timeout_ms} ms"
            ) from e

    def query_all(self, query: Query) -> list:
        scope = self.page.locator(query.within) if query.within else self.page
        if query.kind == "role":
            locator = scope.get_by_role(query.value, name=re.compile(query.name, re.I))
        elif query.kind == "text":
            locator = scope.get_by_text(re.compile(query.value, re.I))
        elif query.kind == "css":
            locator = scope.locator(query.value)
        else:
            raise ValueError(f"Unknown query kind: {query.kind}")
        # Playwright locators serve directly as Elements, in document order.
        return [locator.nth(i) for i in range(locator.count())]

    def add_cookies(self, cookies: list[dict]) -> None:
        self.page.context.add_cookies(cookies)

    def press(self, key: str) -> None:
        self.page.keyboard.press(key)

    def screenshot(self, path: Path) -> None:
        self.page.screenshot(path=str(path), full_page=True)

    def content(self) -> str:
        return self.page.content()

    def close(self) -> None:
        if self._closer is not None:
            self._closer()
