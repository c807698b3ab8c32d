"""
Ownership of the single authenticated LinkedIn session.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from outreach.errors import AuthenticationError, NavigationTimeoutError
from outreach.linkedin.cookies import CookieManager
from outreach.linkedin.locators import LocatorResolver, LocatorRole

ENTRY_URL = "https://www.linkedin.com/"

# Addresses the site redirects to when the session is not authenticated.
NOT_AUTHENTICATED_PATTERNS = (
    "/login",
    "/authwall",
    "/uas/login",
    "/checkpoint",
    "/signup",
)


@dataclass
class Session:
    credential_token: str
    surface: object
    is_authenticated: bool = False
    last_verified_at: Optional[datetime] = None


class SessionManager:
    """
    Establishes the session from the token, checks it is still alive, and
    re-establishes it at most once per run.

    The surface is lent to one target at a time through lend(); it is never
    handed out twice concurrently.
    """

    def __init__(
        self,
        surface,
        credential_token: str,
        resolver: LocatorResolver,
        delay,
        diagnostics=None,
        navigation_timeout_ms: int = 60000,
        entry_url: str = ENTRY_URL,
    ):
        self.session = Session(credential_token=credential_token, surface=surface)
        self.resolver = resolver
        self.delay = delay
        self.diagnostics = diagnostics
        self.navigation_timeout_ms = navigation_timeout_ms
        self.entry_url = entry_url
        self.reauth_used = False
        self._lent = False
        self.logger = logging.getLogger("outreach")

    @property
    def surface(self):
        return self.session.surface

    def begin_run(self) -> None:
        """Reset per-run state (the re-authentication budget)."""
        self.reauth_used = False

    def ensure_authenticated(self) -> None:
        """
        Make sure the session is live, establishing it if needed.

        1. Already verified and still live -> nothing to do.
        2. Navigate to the entry page, inject the token cookie, reload.
        3. Verify liveness. Still not live -> AuthenticationError.
        """
        if self.session.is_authenticated and self.is_live():
            self.logger.debug("Session already verified live.")
            return

        self.session.is_authenticated = False
        token = CookieManager.validate_token(self.session.credential_token)

        self.logger.info("Logging in to LinkedIn with session cookie...")
        try:
            self.surface.goto(self.entry_url, self.navigation_timeout_ms)
            self.delay.pause()

            CookieManager.inject(self.surface, token)
            self.logger.info("Reloading page to apply cookies...")
            self.surface.reload(self.navigation_timeout_ms)
            self.delay.pause()
        except NavigationTimeoutError as e:
            raise AuthenticationError(f"Failed to navigate to LinkedIn: {e}") from e

        if self.diagnostics is not None:
            self.diagnostics.snapshot(self.surface, "login")

        if not self.is_live():
            self.logger.error(f"Login failed. Current URL: {self.surface.url}")
            raise AuthenticationError(
                "Failed to log in with the provided session token - "
                "it may have expired or been rejected."
            )

        self.session.is_authenticated = True
        self.session.last_verified_at = datetime.now(timezone.utc)
        self.logger.info("LinkedIn session is active.")

    def is_live(self) -> bool:
        """True when the current page looks like a logged-in LinkedIn page."""
        try:
            current_url = self.surface.url.lower()
            if any(pattern in current_url for pattern in NOT_AUTHENTICATED_PATTERNS):
                self.logger.debug(f"On login/checkpoint page -- not logged in ({current_url}).")
                return False
            live = self.resolver.resolve(LocatorRole.LOGGED_IN_MARKER, self.surface) is not None
        except Exception as e:
            self.logger.debug(f"Login check failed: {e}")
            return False

        if live:
            self.session.last_verified_at = datetime.now(timezone.utc)
        return live

    def re_authenticate_once(self) -> bool:
        """
        Re-establish a session lost mid-run. Allowed once per run.

        Returns False without acting when the budget is already spent.
        Raises AuthenticationError when the attempt itself fails (fatal).
        """
        if self.reauth_used:
            self.logger.warning("Session lost again; re-authentication already used this run.")
            return False

        self.reauth_used = True
        self.session.is_authenticated = False
        self.logger.warning("Session lost mid-run. Re-authenticating once...")
        try:
            self.ensure_authenticated()
        except AuthenticationError as e:
            raise AuthenticationError(f"Re-authentication after session loss failed: {e}") from e
        return True

    @contextmanager
    def lend(self):
        """Lend the surface for one target's processing."""
        if self._lent:
            raise RuntimeError("Surface is already lent to another target.")
        self._lent = True
        try:
            yield self.surface
        finally:
            self._lent = False

    def close(self) -> None:
        """Release the surface (closes the browser)."""
        self.session.is_authenticated = False
        try:
            self.surface.close()
        except Exception as e:
            self.logger.debug(f"Browser cleanup: {e}")
