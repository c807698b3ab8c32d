"""
Session cookie handling for LinkedIn.
"""
import logging
import re

from outreach.errors import AuthenticationError

SESSION_COOKIE = "li_at"
COOKIE_DOMAINS = (".linkedin.com", "www.linkedin.com")

# li_at values are URL-safe base64-ish strings; anything with whitespace,
# quotes or separators is a paste error, not a token.
_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_\-.~%+/=]{20,}$")


class CookieManager:
    """
    Turns the externally supplied session token into browser cookies.

    Strategy:
      - The critical cookie is 'li_at' which typically lasts 1-3 months.
      - It is set for both the apex and www domains so that every LinkedIn
        surface (feed, profiles, Sales Navigator) sees the same session.
      - The page must be reloaded after injection for the site to pick it up.
    """

    @staticmethod
    def validate_token(token: str) -> str:
        """Return the stripped token or raise AuthenticationError."""
        token = (token or "").strip()
        if not token:
            raise AuthenticationError(
                "LinkedIn session token not provided. "
                "Set LINKEDIN_SESSION_TOKEN (the li_at cookie value) in .env."
            )
        if not _TOKEN_PATTERN.match(token):
            raise AuthenticationError("LinkedIn session token is malformed.")
        return token

    @staticmethod
    def session_cookies(token: str) -> list[dict]:
        token = CookieManager.validate_token(token)
        return [
            {
                "name": SESSION_COOKIE,
                "value": token,
                "domain": domain,
                "path": "/",
                "httpOnly": True,
                "secure": True,
                "sameSite": "None",
            }
            for domain in COOKIE_DOMAINS
        ]

    @staticmethod
    def inject(surface, token: str) -> None:
        """Add the session cookies to the surface's browser context."""
        surface.add_cookies(CookieManager.session_cookies(token))
        logging.getLogger("outreach").info("Session cookie injected.")
