from __future__ import annotations

from fastapi import APIRouter, Depends

from ..services.poll import PollService
from .deps import get_service, require_admin
from .schemas import (
    HeaderOut,
    HeaderUpdate,
    MessageOut,
    VoterCreate,
    VoterOut,
    WindowOut,
    WindowUpdate,
)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# -------------------------
# Roster
# -------------------------

@router.post("/voters", response_model=VoterOut)
def add_voter(payload: VoterCreate, service: PollService = Depends(get_service)) -> VoterOut:
    return VoterOut.from_model(service.add_voter(payload.name))


@router.delete("/voters/{name}", response_model=MessageOut)
def remove_voter(name: str, service: PollService = Depends(get_service)) -> MessageOut:
    """
    Remove a voter from the roster. A vote they already cast stays counted.
    """
    service.remove_voter(name)
    return MessageOut(message="Voter removed")


# -------------------------
# Votes
# -------------------------

@router.delete("/votes/{voter_name}", response_model=MessageOut)
def delete_vote(voter_name: str, service: PollService = Depends(get_service)) -> MessageOut:
    """
    Delete one voter's vote and let them vote again. Succeeds even when there
    was nothing to delete.
    """
    service.delete_vote(voter_name)
    return MessageOut(message="Vote deleted")


@router.delete("/votes", response_model=MessageOut)
def delete_all_votes(service: PollService = Depends(get_service)) -> MessageOut:
    service.delete_all_votes()
    return MessageOut(message="All votes deleted")


# -------------------------
# Window / header
# -------------------------

@router.put("/window", response_model=WindowOut)
def set_window(payload: WindowUpdate, service: PollService = Depends(get_service)) -> WindowOut:
    return WindowOut.from_window(service.set_window(payload.start_date, payload.end_date))


@router.put("/header", response_model=HeaderOut)
def set_header(payload: HeaderUpdate, service: PollService = Depends(get_service)) -> HeaderOut:
    return HeaderOut(text=service.set_header(payload.text))
