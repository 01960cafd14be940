from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Sequence

# Ratio of a day's count to max_count above which it reads as medium / high
MEDIUM_RATIO = 0.4
HIGH_RATIO = 0.8


@dataclass(frozen=True)
class SubmissionDates:
    """
    Input row for aggregation: one voter and the days they picked,
    in entry order.
    """
    voter_name: str
    dates: Sequence[date]


@dataclass
class DateTally:
    date: date
    count: int = 0
    voters: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Availability:
    available: List[str]
    unavailable: List[str]


def aggregate(submissions: Iterable[SubmissionDates]) -> Dict[date, DateTally]:
    """
    Count how many voters picked each day and who they are.

    Voter order per day is the order entries are seen. Pure: the same input
    always gives the same output and nothing is cached between calls.
    """
    tallies: Dict[date, DateTally] = {}
    for sub in submissions:
        for d in sub.dates:
            tally = tallies.get(d)
            if tally is None:
                tally = tallies[d] = DateTally(date=d)
            tally.count += 1
            tally.voters.append(sub.voter_name)
    return tallies


def max_count(tallies: Dict[date, DateTally]) -> int:
    """
    Highest count across all days, never below 1.
    Every day that reaches it is equally "most popular".
    """
    return max([t.count for t in tallies.values()] + [1])


def participants(tallies: Dict[date, DateTally]) -> List[str]:
    """
    Everyone who submitted at least one day, in first-seen order.
    """
    seen: Dict[str, None] = {}
    for t in tallies.values():
        for name in t.voters:
            seen.setdefault(name, None)
    return list(seen)


def availability(tallies: Dict[date, DateTally], day: date) -> Availability:
    """
    Split the participants into available / unavailable for one day.
    Roster members who never submitted are in neither list.
    """
    tally = tallies.get(day)
    available = list(tally.voters) if tally else []
    unavailable = [name for name in participants(tallies) if name not in available]
    return Availability(available=available, unavailable=unavailable)


def intensity(count: int, top: int) -> str:
    if count <= 0:
        return "none"
    ratio = count / max(top, 1)
    if ratio > HIGH_RATIO:
        return "high"
    if ratio > MEDIUM_RATIO:
        return "medium"
    return "low"
