from outreach.linkedin.cookies import CookieManager
from outreach.linkedin.locators import LocatorResolver, LocatorRole, LocatorStrategy
from outreach.linkedin.protocol import InteractionProtocol
from outreach.linkedin.session import SessionManager

__all__ = [
    "CookieManager",
    "LocatorResolver",
    "LocatorRole",
    "LocatorStrategy",
    "InteractionProtocol",
    "SessionManager",
]
