import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from outreach.schemas.run import RunConfig

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

DEFAULT_MESSAGE_TEMPLATE = (
    "Hi {{firstName}},\n\n"
    "I came across your profile and your work in {{industry}} caught my eye. "
    "We're exploring how smaller teams are using automation around {{topic}}, "
    "and I'd love to hear how you think about it.\n\n"
    "Would you be open to a 15-20 minute chat? If so, let me know what works best.\n\n"
    "Thanks for your time!"
)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise EnvironmentError(f"{name} must be an integer, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def _env_path(name: str, default: Path, base_dir: Path) -> Path:
    raw = os.getenv(name, "").strip()
    path = Path(raw) if raw else default
    return path if path.is_absolute() else base_dir / path


class Settings:
    """Run settings loaded from environment variables."""

    def __init__(self, base_dir: Optional[Path] = None):
        # --- Paths ---
        self.base_dir: Path = base_dir or Path(__file__).resolve().parent.parent
        self.profiles_csv: Path = _env_path(
            "PROFILES_CSV", Path("data/profiles.csv"), self.base_dir
        )
        self.logs_dir: Path = _env_path("LOGS_DIR", Path("logs"), self.base_dir)
        self.diagnostics_dir: Path = _env_path(
            "DIAGNOSTICS_DIR", Path("diagnostics"), self.base_dir
        )
        self.diagnostics_enabled: bool = _env_bool("DIAGNOSTICS_ENABLED", True)

        # --- Ledger ---
        self.ledger_backend: str = os.getenv("LEDGER_BACKEND", "csv").strip().lower()
        self.ledger_csv: Path = _env_path(
            "LEDGER_CSV", Path("logs/sent_messages.csv"), self.base_dir
        )
        self.ledger_database_url: str = os.getenv(
            "LEDGER_DATABASE_URL", f"sqlite:///{self.logs_dir / 'outcomes.db'}"
        )
        self.skip_already_sent: bool = _env_bool("SKIP_ALREADY_SENT", True)

        # --- Credentials ---
        self.session_token: str = (
            os.getenv("LINKEDIN_SESSION_TOKEN") or os.getenv("LI_AT") or ""
        ).strip()

        # --- Messaging ---
        self.max_messages: int = _env_int("MAX_MESSAGES", 20)
        self.message_template_file: Optional[Path] = None
        if os.getenv("MESSAGE_TEMPLATE_FILE", "").strip():
            self.message_template_file = _env_path(
                "MESSAGE_TEMPLATE_FILE", Path(), self.base_dir
            )
        self.message_template: str = os.getenv("MESSAGE_TEMPLATE") or DEFAULT_MESSAGE_TEMPLATE

        # --- Safety Delays (milliseconds) ---
        self.delay_min_ms: int = _env_int("DELAY_MIN_MS", 2000)
        self.delay_max_ms: int = _env_int("DELAY_MAX_MS", 7000)
        self.target_delay_min_ms: int = _env_int("TARGET_DELAY_MIN_MS", 8000)
        self.target_delay_max_ms: int = _env_int("TARGET_DELAY_MAX_MS", 12000)
        self.navigation_timeout_ms: int = _env_int("NAVIGATION_TIMEOUT_MS", 60000)

        # --- Browser ---
        self.headless: bool = _env_bool("HEADLESS", False)
        self.user_agent: str = os.getenv("USER_AGENT") or DEFAULT_USER_AGENT

    def load_message_template(self) -> str:
        """Template text, preferring MESSAGE_TEMPLATE_FILE over MESSAGE_TEMPLATE."""
        if self.message_template_file is not None:
            return self.message_template_file.read_text(encoding="utf-8")
        return self.message_template

    def run_config(self) -> RunConfig:
        return RunConfig(
            max_messages=self.max_messages,
            delay_min_ms=self.delay_min_ms,
            delay_max_ms=self.delay_max_ms,
            target_delay_min_ms=self.target_delay_min_ms,
            target_delay_max_ms=self.target_delay_max_ms,
            navigation_timeout_ms=self.navigation_timeout_ms,
            message_template=self.load_message_template(),
        )

    def validate(self):
        if self.ledger_backend not in ("csv", "sqlite"):
            raise EnvironmentError(
                f"LEDGER_BACKEND must be 'csv' or 'sqlite', got {self.ledger_backend!r}"
            )
