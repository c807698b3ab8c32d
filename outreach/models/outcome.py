from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean
from outreach.database import Base


class OutcomeRecord(Base):
    __tablename__ = "outcomes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    url = Column(String(500), nullable=False, index=True)
    name = Column(String(200), default="")
    status = Column(String(20), nullable=False)  # sent/failed/skipped
    error = Column(Text, default="")
    confirmed = Column(Boolean, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
