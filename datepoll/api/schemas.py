from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field as PydField

from ..models.voter import Voter
from ..services.aggregator import DateTally
from ..services.poll import DayOverlap, VoteView
from ..services.window_policy import MonthView, Window


# -------------------------
# Requests
# -------------------------

class VoterCreate(BaseModel):
    name: str


class VoteSubmit(BaseModel):
    voter_name: str
    dates: List[dt.date] = PydField(default_factory=list)


class WindowUpdate(BaseModel):
    start_date: dt.date
    end_date: dt.date


class HeaderUpdate(BaseModel):
    text: str = ""


# -------------------------
# Responses
# -------------------------

class VoterOut(BaseModel):
    name: str
    has_voted: bool
    voted_at: Optional[dt.datetime] = None

    @classmethod
    def from_model(cls, v: Voter) -> "VoterOut":
        return cls(name=v.name, has_voted=v.has_voted, voted_at=v.voted_at)


class VoteOut(BaseModel):
    voter_name: str
    dates: List[dt.date]

    @classmethod
    def from_view(cls, v: VoteView) -> "VoteOut":
        return cls(voter_name=v.voter_name, dates=list(v.dates))


class OverlapOut(BaseModel):
    date: dt.date
    count: int
    voters: List[str]

    @classmethod
    def from_tally(cls, t: DateTally) -> "OverlapOut":
        return cls(date=t.date, count=t.count, voters=list(t.voters))


class DayOverlapOut(BaseModel):
    date: dt.date
    count: int
    max_count: int
    intensity: str
    available: List[str]
    unavailable: List[str]

    @classmethod
    def from_view(cls, d: DayOverlap) -> "DayOverlapOut":
        return cls(
            date=d.date,
            count=d.count,
            max_count=d.max_count,
            intensity=d.intensity,
            available=list(d.available),
            unavailable=list(d.unavailable),
        )


class WindowOut(BaseModel):
    start_date: dt.date
    end_date: dt.date

    @classmethod
    def from_window(cls, w: Window) -> "WindowOut":
        return cls(start_date=w.start, end_date=w.end)


class MonthOut(BaseModel):
    month: dt.date
    days: List[dt.date]
    selectable: List[dt.date]

    @classmethod
    def from_view(cls, m: MonthView) -> "MonthOut":
        return cls(month=m.month, days=list(m.days), selectable=list(m.selectable))


class CalendarOut(BaseModel):
    today: dt.date
    months: List[MonthOut]


class HeaderOut(BaseModel):
    text: str


class MessageOut(BaseModel):
    message: str
