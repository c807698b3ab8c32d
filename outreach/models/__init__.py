from outreach.models.outcome import OutcomeRecord

__all__ = ["OutcomeRecord"]
