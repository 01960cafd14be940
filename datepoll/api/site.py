from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from ..services.poll import PollService
from .deps import get_service
from .schemas import CalendarOut, HeaderOut, MonthOut, WindowOut

router = APIRouter(tags=["site"])


@router.get("/window", response_model=Optional[WindowOut])
def get_window(service: PollService = Depends(get_service)) -> Optional[WindowOut]:
    w = service.get_window()
    return WindowOut.from_window(w) if w else None


@router.get("/window/calendar", response_model=CalendarOut)
def get_calendar(service: PollService = Depends(get_service)) -> CalendarOut:
    """
    Months of the voting window and the days selectable as of today.
    No window configured -> no months.
    """
    return CalendarOut(
        today=service.today(),
        months=[MonthOut.from_view(m) for m in service.calendar()],
    )


@router.get("/header", response_model=HeaderOut)
def get_header(service: PollService = Depends(get_service)) -> HeaderOut:
    return HeaderOut(text=service.get_header())
