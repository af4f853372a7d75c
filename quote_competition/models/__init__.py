"""Database model exports."""

from .entry import Entry
from .reward import RewardTransaction, RewardUnit
from .vote import Vote
from .window import CompetitionWindow
from .winner import Winner

__all__ = [
    "CompetitionWindow",
    "Entry",
    "RewardTransaction",
    "RewardUnit",
    "Vote",
    "Winner",
]
