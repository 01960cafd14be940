# datepoll/models/__init__.py
# Central import surface for SQLModel table registration.
# Keeping these imports ensures init_db() sees all models and creates tables.

from .voter import Voter
from .submission import AvailableDate, VoteSubmission
from .site_config import SINGLETON_ID, HeaderText, VotingWindow

__all__ = [
    "Voter",
    "VoteSubmission",
    "AvailableDate",
    "VotingWindow",
    "HeaderText",
    "SINGLETON_ID",
]
