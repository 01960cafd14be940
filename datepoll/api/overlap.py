from __future__ import annotations

from datetime import date
from typing import List

from fastapi import APIRouter, Depends

from ..services.poll import PollService
from .deps import get_service
from .schemas import DayOverlapOut, OverlapOut

router = APIRouter(prefix="/overlap", tags=["overlap"])


@router.get("/", response_model=List[OverlapOut])
def aggregate_overlap(service: PollService = Depends(get_service)) -> List[OverlapOut]:
    """
    Per-day vote counts and voter names, sorted by day.
    Recomputed from the stored submissions on every call.
    """
    return [OverlapOut.from_tally(t) for t in service.aggregate_overlap()]


@router.get("/{day}", response_model=DayOverlapOut)
def overlap_for_day(day: date, service: PollService = Depends(get_service)) -> DayOverlapOut:
    """
    One day's detail: who is available, who voted but is not, and how the
    day compares to the most popular one.
    """
    return DayOverlapOut.from_view(service.overlap_for_day(day))
