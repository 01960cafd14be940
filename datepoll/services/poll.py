from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, TypeVar
from zoneinfo import ZoneInfo

from sqlalchemy.engine import Engine
from sqlalchemy.exc import DisconnectionError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlmodel import Session, select

from ..database import read_scope, write_scope
from ..models.site_config import SINGLETON_ID, HeaderText, VotingWindow
from ..models.submission import AvailableDate, VoteSubmission
from ..models.voter import Voter
from . import aggregator, window_policy
from .aggregator import Availability, DateTally, SubmissionDates
from .errors import (
    AlreadyVoted,
    Conflict,
    DuplicateName,
    NotFound,
    TransientStoreFailure,
    UnknownVoter,
    ValidationError,
)
from .window_policy import MonthView, Window

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors that mean "the store could not be reached / answered in time".
TRANSIENT_ERRORS = (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class VoteView:
    voter_name: str
    dates: List[date]


@dataclass(frozen=True)
class DayOverlap:
    date: date
    count: int
    max_count: int
    intensity: str
    available: List[str]
    unavailable: List[str]


def normalize_name(raw: object) -> str:
    if not isinstance(raw, str):
        raise ValidationError("Voter name must be a string")
    name = raw.strip()
    if not name:
        raise ValidationError("Voter name must not be empty")
    return name


def normalize_dates(raw: Iterable[object]) -> List[date]:
    """
    Distinct calendar days in first-seen order.
    Accepts date objects or ISO "YYYY-MM-DD" strings; datetimes are reduced
    to their day; anything else is rejected.
    """
    if isinstance(raw, (str, bytes)):
        raise ValidationError("Dates must be a list")
    days: List[date] = []
    for item in raw:
        if isinstance(item, str):
            try:
                item = date.fromisoformat(item.strip())
            except ValueError:
                raise ValidationError(f"Not a calendar date: {item!r}") from None
        if isinstance(item, datetime):
            item = item.date()
        if not isinstance(item, date):
            raise ValidationError(f"Not a calendar date: {item!r}")
        if item not in days:
            days.append(item)
    if not days:
        raise ValidationError("Select at least one date")
    return days


class PollService:
    """
    The single write path for poll state.

    Voting state machine per voter: NOT_VOTED -> VOTED (submit_vote), back to
    NOT_VOTED only via delete_vote / delete_all_votes. Every mutation runs in
    one serializing write transaction and re-reads state after taking the
    lock, so two concurrent submits for one voter cannot both succeed.

    Reads never cache: overlap counts are recomputed from submissions each call.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        clock: Callable[[], datetime] = _utcnow,
        poll_timezone: str = "UTC",
        retry_attempts: int = 3,
        retry_base_delay: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.engine = engine
        self.clock = clock
        self.tz = ZoneInfo(poll_timezone)
        self.retry_attempts = max(1, retry_attempts)
        self.retry_base_delay = retry_base_delay
        self._sleep = sleep

    # -------------------------
    # Plumbing
    # -------------------------

    def today(self) -> date:
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.astimezone(self.tz).date()

    def _run(self, op: str, fn: Callable[[], T]) -> T:
        """
        Run one whole operation, retrying transient store errors with
        exponential backoff. Each attempt is its own transaction, so a failed
        attempt has already been rolled back.
        """
        delay = self.retry_base_delay
        for attempt in range(1, self.retry_attempts + 1):
            try:
                return fn()
            except TRANSIENT_ERRORS as exc:
                if attempt >= self.retry_attempts:
                    logger.error("%s failed after %d attempts: %s", op, attempt, exc)
                    raise TransientStoreFailure(f"Store unavailable during {op}") from exc
                logger.warning("%s attempt %d failed, retrying in %.2fs: %s", op, attempt, delay, exc)
                self._sleep(delay)
                delay *= 2
        raise AssertionError("unreachable")

    def _run_retrying_conflict(self, op: str, fn: Callable[[], T]) -> T:
        """
        Like _run, but a write Conflict is retried once before it reaches
        the caller.
        """
        try:
            return self._run(op, fn)
        except Conflict:
            logger.warning("%s hit a concurrent write, retrying once", op)
            return self._run(op, fn)

    @staticmethod
    def _lock_voter(db: Session, name: str) -> Optional[Voter]:
        return db.exec(select(Voter).where(Voter.name == name).with_for_update()).first()

    @staticmethod
    def _submissions_for(db: Session, name: str) -> List[VoteSubmission]:
        return list(
            db.exec(
                select(VoteSubmission)
                .where(VoteSubmission.voter_name == name)
                .order_by(VoteSubmission.id)
            ).all()
        )

    @staticmethod
    def _delete_submissions(db: Session, submissions: List[VoteSubmission]) -> None:
        ids = [s.id for s in submissions]
        if not ids:
            return
        for entry in db.exec(select(AvailableDate).where(AvailableDate.submission_id.in_(ids))).all():
            db.delete(entry)
        db.flush()
        for s in submissions:
            db.delete(s)

    @staticmethod
    def _load_window(db: Session) -> Optional[Window]:
        row = db.get(VotingWindow, SINGLETON_ID)
        if row is None:
            return None
        return Window(start=row.start_date, end=row.end_date)

    @staticmethod
    def _load_submission_dates(db: Session) -> List[SubmissionDates]:
        subs = db.exec(select(VoteSubmission).order_by(VoteSubmission.id)).all()
        entries = db.exec(select(AvailableDate).order_by(AvailableDate.id)).all()

        by_submission: Dict[int, List[date]] = {}
        for e in entries:
            by_submission.setdefault(e.submission_id, []).append(e.day)

        return [SubmissionDates(voter_name=s.voter_name, dates=by_submission.get(s.id, [])) for s in subs]

    # -------------------------
    # Reads
    # -------------------------

    def list_voters(self) -> List[Voter]:
        def _op() -> List[Voter]:
            with read_scope(self.engine) as db:
                return list(db.exec(select(Voter).order_by(Voter.name.desc())).all())

        return self._run("list_voters", _op)

    def list_votes(self) -> List[VoteView]:
        def _op() -> List[VoteView]:
            with read_scope(self.engine) as db:
                return [VoteView(voter_name=s.voter_name, dates=list(s.dates)) for s in self._load_submission_dates(db)]

        return self._run("list_votes", _op)

    def _tallies(self) -> Dict[date, DateTally]:
        def _op() -> Dict[date, DateTally]:
            with read_scope(self.engine) as db:
                return aggregator.aggregate(self._load_submission_dates(db))

        return self._run("aggregate_overlap", _op)

    def aggregate_overlap(self) -> List[DateTally]:
        tallies = self._tallies()
        return [tallies[d] for d in sorted(tallies)]

    def overlap_for_day(self, day: date) -> DayOverlap:
        tallies = self._tallies()
        top = aggregator.max_count(tallies)
        tally = tallies.get(day)
        count = tally.count if tally else 0
        avail: Availability = aggregator.availability(tallies, day)
        return DayOverlap(
            date=day,
            count=count,
            max_count=top,
            intensity=aggregator.intensity(count, top),
            available=avail.available,
            unavailable=avail.unavailable,
        )

    def get_window(self) -> Optional[Window]:
        def _op() -> Optional[Window]:
            with read_scope(self.engine) as db:
                return self._load_window(db)

        return self._run("get_window", _op)

    def calendar(self) -> List[MonthView]:
        return window_policy.calendar(self.get_window(), self.today())

    def get_header(self) -> str:
        def _op() -> str:
            with read_scope(self.engine) as db:
                row = db.get(HeaderText, SINGLETON_ID)
                return row.text if row else ""

        return self._run("get_header", _op)

    # -------------------------
    # Admin mutations
    # -------------------------

    def set_header(self, text: str) -> str:
        if not isinstance(text, str):
            raise ValidationError("Header text must be a string")

        def _op() -> str:
            try:
                with write_scope(self.engine) as db:
                    row = db.get(HeaderText, SINGLETON_ID, with_for_update=True)
                    if row is None:
                        row = HeaderText(id=SINGLETON_ID)
                    row.text = text
                    row.updated_at = self.clock()
                    db.add(row)
            except IntegrityError as exc:
                # Another writer inserted the singleton row first
                raise Conflict("Header text was written concurrently") from exc
            return text

        result = self._run_retrying_conflict("set_header", _op)
        logger.info("Header text updated (%d chars)", len(text))
        return result

    def set_window(self, start_date: date, end_date: date) -> Window:
        if not isinstance(start_date, date) or not isinstance(end_date, date):
            raise ValidationError("Window boundaries must be calendar dates")
        if isinstance(start_date, datetime):
            start_date = start_date.date()
        if isinstance(end_date, datetime):
            end_date = end_date.date()
        if start_date > end_date:
            raise ValidationError("Window start must not be after its end")

        def _op() -> Window:
            try:
                with write_scope(self.engine) as db:
                    row = db.get(VotingWindow, SINGLETON_ID, with_for_update=True)
                    if row is None:
                        row = VotingWindow(id=SINGLETON_ID, start_date=start_date, end_date=end_date)
                    row.start_date = start_date
                    row.end_date = end_date
                    row.updated_at = self.clock()
                    db.add(row)
            except IntegrityError as exc:
                raise Conflict("Voting window was written concurrently") from exc
            return Window(start=start_date, end=end_date)

        window = self._run_retrying_conflict("set_window", _op)
        logger.info("Voting window set to %s..%s", start_date, end_date)
        return window

    def add_voter(self, name: str) -> Voter:
        name = normalize_name(name)

        def _op() -> Voter:
            try:
                with write_scope(self.engine) as db:
                    if self._lock_voter(db, name) is not None:
                        raise DuplicateName(f"Voter '{name}' already exists")

                    voter = Voter(name=name, created_at=self.clock())

                    # A submission kept from an earlier removal still counts
                    leftover = self._submissions_for(db, name)
                    if leftover:
                        voter.has_voted = True
                        voter.voted_at = leftover[0].submitted_at

                    db.add(voter)
                    db.flush()
                    db.expunge(voter)
                    return voter
            except IntegrityError as exc:
                raise DuplicateName(f"Voter '{name}' already exists") from exc

        voter = self._run("add_voter", _op)
        logger.info("Voter added: %s", name)
        return voter

    def remove_voter(self, name: str) -> None:
        name = normalize_name(name)

        def _op() -> None:
            with write_scope(self.engine) as db:
                voter = self._lock_voter(db, name)
                if voter is None:
                    raise NotFound(f"Voter '{name}' not found")
                db.delete(voter)

        self._run("remove_voter", _op)
        logger.info("Voter removed: %s (submissions kept)", name)

    # -------------------------
    # Voting state machine
    # -------------------------

    def submit_vote(self, voter_name: str, dates: Iterable[object]) -> VoteView:
        """
        NOT_VOTED -> VOTED.

        Validates input before touching the store, then in one transaction:
        re-reads the voter under lock, checks every day is selectable as of
        today, records the submission with its days, and flips the voter.
        """
        name = normalize_name(voter_name)
        days = normalize_dates(dates)

        def _op() -> VoteView:
            with write_scope(self.engine) as db:
                voter = self._lock_voter(db, name)
                if voter is None:
                    raise UnknownVoter(f"Voter '{name}' is not on the roster")
                if voter.has_voted:
                    raise AlreadyVoted(f"Voter '{name}' has already voted")

                window = self._load_window(db)
                today = self.today()
                rejected = [d for d in days if not window_policy.is_selectable(d, window, today)]
                if rejected:
                    raise ValidationError(
                        "Not selectable: " + ", ".join(d.isoformat() for d in rejected)
                    )

                now = self.clock()
                submission = VoteSubmission(voter_name=name, submitted_at=now)
                db.add(submission)
                db.flush()

                for d in days:
                    db.add(AvailableDate(submission_id=submission.id, day=d))

                voter.has_voted = True
                voter.voted_at = now
                db.add(voter)
            return VoteView(voter_name=name, dates=days)

        view = self._run("submit_vote", _op)
        logger.info("Vote submitted: %s (%d dates)", name, len(days))
        return view

    def delete_vote(self, voter_name: str) -> None:
        """
        VOTED -> NOT_VOTED for one voter. No-op success when there is
        nothing to delete.
        """
        name = normalize_name(voter_name)

        def _op() -> int:
            with write_scope(self.engine) as db:
                voter = self._lock_voter(db, name)
                submissions = self._submissions_for(db, name)
                self._delete_submissions(db, submissions)
                if voter is not None and (voter.has_voted or voter.voted_at is not None):
                    voter.has_voted = False
                    voter.voted_at = None
                    db.add(voter)
                return len(submissions)

        removed = self._run("delete_vote", _op)
        logger.info("Vote reset: %s (%d submissions removed)", name, removed)

    def delete_all_votes(self) -> None:
        """
        Every voter back to NOT_VOTED, every submission gone, in one transaction.
        """

        def _op() -> int:
            with write_scope(self.engine) as db:
                voters = db.exec(select(Voter).with_for_update()).all()
                submissions = list(db.exec(select(VoteSubmission)).all())
                self._delete_submissions(db, submissions)
                for v in voters:
                    if v.has_voted or v.voted_at is not None:
                        v.has_voted = False
                        v.voted_at = None
                        db.add(v)
                return len(submissions)

        removed = self._run("delete_all_votes", _op)
        logger.info("All votes reset (%d submissions removed)", removed)
