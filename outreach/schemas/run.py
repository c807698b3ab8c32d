from typing import Optional

from pydantic import BaseModel, Field, model_validator


class RunConfig(BaseModel):
    """Recognized options for one outreach run."""

    max_messages: int = Field(20, ge=0)
    delay_min_ms: int = Field(2000, ge=0)
    delay_max_ms: int = Field(7000, ge=0)
    target_delay_min_ms: int = Field(8000, ge=0)
    target_delay_max_ms: int = Field(12000, ge=0)
    navigation_timeout_ms: int = Field(60000, gt=0)
    message_template: str

    class Config:
        frozen = True

    @model_validator(mode="after")
    def check_delay_bounds(self):
        if self.delay_min_ms > self.delay_max_ms:
            raise ValueError("delay_min_ms must not exceed delay_max_ms")
        if self.target_delay_min_ms > self.target_delay_max_ms:
            raise ValueError("target_delay_min_ms must not exceed target_delay_max_ms")
        return self


class RunSummary(BaseModel):
    sent_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    max_messages: int = 0
    ledger_location: str = ""
    fatal_reason: Optional[str] = None

    class Config:
        frozen = True

    @property
    def aborted(self) -> bool:
        return self.fatal_reason is not None

    def lines(self) -> list[str]:
        """Human-readable summary lines for the console."""
        lines = [
            f"Messages sent:    {self.sent_count}/{self.max_messages}",
            f"Messages failed:  {self.failed_count}",
            f"Targets skipped:  {self.skipped_count}",
            f"Ledger:           {self.ledger_location}",
        ]
        if self.aborted:
            lines.append(f"RUN ABORTED:      {self.fatal_reason}")
        return lines
