"""
Append-only outcome ledger.

One record per processed target: {url, name, timestamp, status, error}.
Records are written through immediately so a crash or fatal abort loses
nothing that was already recorded, and repeated runs append to the same
sink instead of replacing it.
"""
import csv
import logging
import os
from pathlib import Path

from outreach.database import create_session_factory
from outreach.models.outcome import OutcomeRecord
from outreach.schemas.outcome import InteractionOutcome, OutcomeStatus

logger = logging.getLogger("outreach")

# Column ids -> header titles, as written to the CSV file.
CSV_COLUMNS = {
    "url": "Profile URL",
    "name": "Name",
    "timestamp": "Timestamp",
    "status": "Status",
    "error": "Error",
}

# Older ledgers wrote "success" for a delivered message.
SENT_STATUSES = {OutcomeStatus.SENT.value, "success"}


def outcome_row(outcome: InteractionOutcome) -> dict:
    return {
        "url": outcome.target.url,
        "name": outcome.target.name,
        "timestamp": outcome.timestamp.isoformat(timespec="seconds"),
        "status": outcome.status.value,
        "error": outcome.error,
    }


class OutcomeLedger:
    """Interface shared by the ledger backends."""

    location: str = ""

    def record(self, outcome: InteractionOutcome) -> None:
        raise NotImplementedError

    def records(self) -> list[dict]:
        raise NotImplementedError

    def sent_urls(self) -> set[str]:
        """URLs with at least one successful send on record."""
        return {r["url"] for r in self.records() if r["status"] in SENT_STATUSES}

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass


class CsvLedger(OutcomeLedger):
    """
    CSV file ledger, opened in append mode for every record.

    The header is written only when the file is new or empty, so the file
    keeps growing across runs.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.location = str(self.path)

    def record(self, outcome: InteractionOutcome) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        write_header = not self.path.exists() or self.path.stat().st_size == 0
        with open(self.path, "a", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            if write_header:
                writer.writerow(CSV_COLUMNS.values())
            row = outcome_row(outcome)
            writer.writerow([row[column] for column in CSV_COLUMNS])
            f.flush()
            os.fsync(f.fileno())
        logger.debug(f"Logged {outcome.status.value} for {outcome.target.url} to {self.path}")

    def records(self) -> list[dict]:
        if not self.path.exists() or self.path.stat().st_size == 0:
            return []
        titles = {title: column for column, title in CSV_COLUMNS.items()}
        with open(self.path, "r", newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            return [
                {titles[k]: (v or "") for k, v in row.items() if k in titles}
                for row in reader
            ]


class SqlLedger(OutcomeLedger):
    """SQLAlchemy-backed ledger. Each record is committed on its own."""

    def __init__(self, database_url: str):
        self.location = database_url
        self.engine, self.SessionLocal = create_session_factory(database_url)

    def record(self, outcome: InteractionOutcome) -> None:
        row = outcome_row(outcome)
        db = self.SessionLocal()
        try:
            db.add(OutcomeRecord(
                url=row["url"],
                name=row["name"],
                status=row["status"],
                error=row["error"],
                confirmed=outcome.confirmed,
                timestamp=outcome.timestamp,
            ))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
        logger.debug(f"Logged {outcome.status.value} for {outcome.target.url} to database")

    def records(self) -> list[dict]:
        db = self.SessionLocal()
        try:
            rows = db.query(OutcomeRecord).order_by(OutcomeRecord.id).all()
            return [
                {
                    "url": r.url,
                    "name": r.name or "",
                    "timestamp": r.timestamp.isoformat(timespec="seconds"),
                    "status": r.status,
                    "error": r.error or "",
                }
                for r in rows
            ]
        finally:
            db.close()

    def close(self) -> None:
        self.engine.dispose()


def open_ledger(settings) -> OutcomeLedger:
    """Ledger selected by LEDGER_BACKEND."""
    if settings.ledger_backend == "sqlite":
        return SqlLedger(settings.ledger_database_url)
    return CsvLedger(settings.ledger_csv)
