from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from .voter import utcnow


class VoteSubmission(SQLModel, table=True):
    """
    One voter's recorded choice.

    voter_name is deliberately not a foreign key to voters.name: removing a
    voter from the roster leaves their submission in place.
    """

    __tablename__ = "vote_submissions"

    id: Optional[int] = Field(default=None, primary_key=True)
    voter_name: str = Field(index=True)
    submitted_at: datetime = Field(default_factory=utcnow)


class AvailableDate(SQLModel, table=True):
    """
    One selected calendar day belonging to exactly one VoteSubmission.
    Created and deleted together with its submission.
    """

    __tablename__ = "available_dates"
    __table_args__ = (UniqueConstraint("submission_id", "day", name="uq_available_dates_submission_day"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    submission_id: int = Field(foreign_key="vote_submissions.id", index=True)
    day: date = Field(index=True)
