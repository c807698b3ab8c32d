"""
Exception taxonomy for outreach runs.

Only fatal conditions and surface-level timeouts are exceptions. Per-target
failures are recorded as FailureReason values and never escape a target.
"""


class OutreachError(Exception):
    """Base class for all outreach errors."""


class NavigationTimeoutError(OutreachError):
    """A navigation did not complete within its bound."""


class FatalRunError(OutreachError):
    """A condition that aborts the whole run."""

    def __init__(self, message: str):
        super().__init__(message)
        # Set by Orchestrator.run() before the error leaves the run.
        self.summary = None


class AuthenticationError(FatalRunError):
    """The session token is missing, malformed, expired or rejected."""


class ChallengeDetectedError(FatalRunError):
    """The site is showing a CAPTCHA or identity verification interstitial."""
