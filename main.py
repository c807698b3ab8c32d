"""
LinkedIn Outreach -- Message Automation Tool
============================================
Sends a personalized LinkedIn message to each profile in a CSV file,
one profile at a time, using an existing logged-in session cookie.

SAFETY CONSTRAINTS (enforced at all times):
  1. HARD CAP: at most MAX_MESSAGES messages are sent per run.
  2. HUMAN-LIKE DELAYS: random pauses around every browser action and a
     longer pause between profiles.
  3. CHALLENGE ABORT: a CAPTCHA / identity check stops the run immediately.
  4. AUDIT TRAIL: every processed profile is appended to the outcome ledger
     before the next one starts; every action is logged to console and a
     daily log file.

Usage:
  1. pip install -e .
  2. playwright install chromium
  3. Put LINKEDIN_SESSION_TOKEN=<your li_at cookie> in .env
  4. Edit data/profiles.csv with your prospect data
  5. python main.py
"""
import logging
import sys
from datetime import datetime
from pathlib import Path

from outreach.config import Settings
from outreach.errors import FatalRunError
from outreach.linkedin.browser import launch_browser
from outreach.linkedin.locators import LocatorResolver
from outreach.linkedin.protocol import InteractionProtocol
from outreach.linkedin.session import SessionManager
from outreach.services.diagnostics import DiagnosticSink
from outreach.services.ledger import open_ledger
from outreach.services.targets import load_targets, write_sample_targets
from outreach.worker.delay import DelayGenerator
from outreach.worker.orchestrator import Orchestrator

logger = logging.getLogger("outreach")


def setup_logging(logs_dir: Path) -> None:
    """
    Configure dual logging: console (INFO) and daily log file (DEBUG).
    """
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_filename = logs_dir / f"outreach_{datetime.now().strftime('%Y-%m-%d')}.log"

    logger.setLevel(logging.DEBUG)

    # Avoid adding duplicate handlers on re-runs
    if logger.handlers:
        return

    formatter = logging.Formatter("%(asctime)s | %(levelname)-8s | %(message)s")

    # File handler: captures everything (DEBUG and above)
    fh = logging.FileHandler(log_filename, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)

    # Console handler: user-facing output (INFO and above)
    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO)
    ch.setFormatter(formatter)

    logger.addHandler(fh)
    logger.addHandler(ch)


def print_summary(summary) -> None:
    print("\n" + "=" * 60)
    print("  Summary")
    print("=" * 60)
    for line in summary.lines():
        print(f"  {line}")
    print("=" * 60)


def run(settings: Settings) -> int:
    """Run one outreach pass. Returns the process exit code."""
    settings.validate()
    config = settings.run_config()

    if not settings.profiles_csv.exists():
        write_sample_targets(settings.profiles_csv)
        print(f"\nSample file created at {settings.profiles_csv}")
        print("Please edit this file with your actual prospect data, then run again.")
        return 0

    targets = load_targets(settings.profiles_csv)
    if not targets:
        logger.error("No profiles found in CSV file.")
        return 1

    logger.info(f"Found {len(targets)} profiles to message")
    logger.info(f"Will send maximum of {config.max_messages} messages")

    ledger = open_ledger(settings)
    delay = DelayGenerator(config.delay_min_ms, config.delay_max_ms)
    diagnostics = DiagnosticSink(settings.diagnostics_dir, enabled=settings.diagnostics_enabled)
    resolver = LocatorResolver()

    surface = launch_browser(headless=settings.headless, user_agent=settings.user_agent)
    session_manager = SessionManager(
        surface,
        settings.session_token,
        resolver,
        delay,
        diagnostics=diagnostics,
        navigation_timeout_ms=config.navigation_timeout_ms,
    )
    protocol = InteractionProtocol(
        resolver,
        delay,
        session_manager,
        config.message_template,
        navigation_timeout_ms=config.navigation_timeout_ms,
        diagnostics=diagnostics,
    )
    orchestrator = Orchestrator(
        session_manager,
        protocol,
        ledger,
        delay,
        target_delay_min_ms=config.target_delay_min_ms,
        target_delay_max_ms=config.target_delay_max_ms,
        skip_already_sent=settings.skip_already_sent,
    )

    try:
        summary = orchestrator.run(targets, config.max_messages)
    except FatalRunError as e:
        if e.summary is not None:
            print_summary(e.summary)
        print(f"\n[!] Run aborted: {e}")
        print("    Resolve the problem in a normal browser session, then re-run.")
        return 1
    finally:
        session_manager.close()
        ledger.close()

    print_summary(summary)
    print(f"  Log saved to: {settings.logs_dir}/")
    return 0


def main():
    """
    Entry point for the outreach tool.

    Prints a safety banner and runs the full outreach workflow.
    """
    settings = Settings()
    setup_logging(settings.logs_dir)

    print()
    print("=" * 60)
    print("  LinkedIn Outreach -- Message Automation Tool")
    print("=" * 60)
    print(f"  Message cap:  {settings.max_messages} per run")
    print(f"  Delay range:  {settings.delay_min_ms}-{settings.delay_max_ms} ms between actions")
    print(f"  Input file:   {settings.profiles_csv}")
    print(f"  Ledger:       {settings.ledger_backend}")
    print("=" * 60)
    print()

    try:
        exit_code = run(settings)
    except KeyboardInterrupt:
        print("\n\n[!] Interrupted by user. Recorded outcomes are in the ledger. Exiting.")
        sys.exit(1)
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        print(f"\n[!] Fatal error: {e}")
        print("    Check the log file in logs/ for details.")
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
