import csv
import logging
from pathlib import Path

from pydantic import ValidationError

from outreach.schemas.target import Target

logger = logging.getLogger("outreach")

SAMPLE_COLUMNS = ["url", "firstName", "lastName", "industry", "topic"]
SAMPLE_ROWS = [
    ["https://www.linkedin.com/in/john-doe-000000/", "John", "Doe", "Software Development", "AI"],
    ["https://www.linkedin.com/sales/lead/ACwAAAxxxxxx", "Jane", "Smith", "Marketing", "Social Media"],
]


def load_targets(csv_path: Path) -> list[Target]:
    """
    Read outreach targets from a CSV file, in file order.

    Required column: url. Every other column is kept and can be used as a
    {{placeholder}} in the message template. Rows without a usable url are
    skipped with a warning.
    """
    targets = []
    with open(csv_path, "r", newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None or "url" not in reader.fieldnames:
            raise ValueError(f"{csv_path} must have a header row with a 'url' column.")

        for line_no, row in enumerate(reader, start=2):
            # Strip whitespace from all values
            cleaned = {k: (v or "").strip() for k, v in row.items() if k}
            if not cleaned.get("url"):
                logger.warning(f"{csv_path}:{line_no}: no url, skipping row.")
                continue
            try:
                targets.append(Target(**cleaned))
            except ValidationError as e:
                logger.warning(f"{csv_path}:{line_no}: invalid row, skipping ({e.errors()[0]['msg']}).")

    logger.info(f"Loaded {len(targets)} profiles from {csv_path}")
    return targets


def write_sample_targets(csv_path: Path) -> None:
    """Create a placeholder profiles file for the operator to edit."""
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    with open(csv_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(SAMPLE_COLUMNS)
        writer.writerows(SAMPLE_ROWS)
    logger.info(f"Sample profiles file created at {csv_path}")
