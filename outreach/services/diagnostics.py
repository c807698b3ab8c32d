import logging
from datetime import datetime
from pathlib import Path

logger = logging.getLogger("outreach")


class DiagnosticSink:
    """
    Point-in-time snapshots of the rendered surface (screenshot + HTML dump).

    Purely advisory: nothing reads these back, and a failed write is logged
    and swallowed so it can never abort a run.
    """

    def __init__(self, directory: Path, enabled: bool = True):
        self.directory = directory
        self.enabled = enabled

    def snapshot(self, surface, label: str) -> None:
        if not self.enabled:
            return
        stem = f"{label}-{datetime.now().strftime('%Y%m%d-%H%M%S-%f')}"
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            surface.screenshot(self.directory / f"{stem}.png")
            (self.directory / f"{stem}.html").write_text(
                surface.content(), encoding="utf-8"
            )
            logger.debug(f"Diagnostic snapshot saved: {stem}")
        except Exception as e:
            logger.warning(f"Could not save diagnostic snapshot '{label}': {e}")
