from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from ..services.poll import PollService
from .deps import get_service
from .schemas import VoterOut

router = APIRouter(prefix="/voters", tags=["voters"])


@router.get("/", response_model=List[VoterOut])
def list_voters(service: PollService = Depends(get_service)) -> List[VoterOut]:
    """
    The roster with each voter's voting status (used by the voting form to
    offer only names that have not voted yet).
    """
    return [VoterOut.from_model(v) for v in service.list_voters()]
