from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Voter(SQLModel, table=True):
    """
    A roster entry: one named person allowed to cast one vote.

    Notes:
    - name is the identity (trimmed, case-sensitive)
    - has_voted is True exactly when a VoteSubmission exists under this name
    - voted_at is set exactly when has_voted is True
    """

    __tablename__ = "voters"

    name: str = Field(primary_key=True)

    has_voted: bool = Field(default=False, index=True)
    voted_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow)
