from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from ..services.poll import PollService
from .deps import get_service
from .schemas import MessageOut, VoteOut, VoteSubmit

router = APIRouter(prefix="/votes", tags=["votes"])


@router.get("/", response_model=List[VoteOut])
def list_votes(service: PollService = Depends(get_service)) -> List[VoteOut]:
    return [VoteOut.from_view(v) for v in service.list_votes()]


@router.post("/", response_model=VoteOut)
def submit_vote(payload: VoteSubmit, service: PollService = Depends(get_service)) -> VoteOut:
    """
    Record one voter's available dates.

    Errors:
      - 400 validation_error: empty selection or a day that is not selectable
      - 404 unknown_voter: name not on the roster
      - 409 already_voted: the voter must have their vote deleted first
    """
    return VoteOut.from_view(service.submit_vote(payload.voter_name, payload.dates))


@router.delete("/{voter_name}", response_model=MessageOut)
def delete_my_vote(voter_name: str, service: PollService = Depends(get_service)) -> MessageOut:
    """
    Self-service reset ("delete my vote"): the voter can pick new dates
    afterwards. Succeeds even when there was nothing to delete.
    """
    service.delete_vote(voter_name)
    return MessageOut(message="Vote deleted")
