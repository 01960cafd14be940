from __future__ import annotations

from datetime import date, datetime

from sqlmodel import SQLModel, Field

from .voter import utcnow

# Fixed key for the process-wide singleton rows below
SINGLETON_ID = 1


class VotingWindow(SQLModel, table=True):
    """
    Inclusive [start_date, end_date] range of days that may be voted on.
    At most one row (id=SINGLETON_ID); both boundaries are always written together.
    """

    __tablename__ = "voting_window"

    id: int = Field(default=SINGLETON_ID, primary_key=True)
    start_date: date
    end_date: date
    updated_at: datetime = Field(default_factory=utcnow)


class HeaderText(SQLModel, table=True):
    __tablename__ = "header_text"

    id: int = Field(default=SINGLETON_ID, primary_key=True)
    text: str = Field(default="")
    updated_at: datetime = Field(default_factory=utcnow)
