import logging
import random
import time

logger = logging.getLogger("outreach")


class DelayGenerator:
    """
    Randomized safety pauses.

    Every action that touches LinkedIn is bracketed by one of these. The
    randomness decorrelates our timing from machine speed so the activity
    pattern looks like a person clicking, not a loop.
    """

    def __init__(self, min_ms: int, max_ms: int, sleep=time.sleep, rng=None):
        self.min_ms = min_ms
        self.max_ms = max_ms
        self._sleep = sleep
        self._rng = rng or random.Random()

    def sleep(self, min_ms: int, max_ms: int) -> None:
        """Block for a uniformly random duration in [min_ms, max_ms]."""
        if max_ms < min_ms:
            max_ms = min_ms
        delay_ms = self._rng.randint(min_ms, max_ms)
        logger.debug(f"Pausing {delay_ms} ms...")
        self._sleep(delay_ms / 1000.0)

    def pause(self) -> None:
        """Intra-target pause within the configured bounds."""
        self.sleep(self.min_ms, self.max_ms)
