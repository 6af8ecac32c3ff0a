"""
Optional persistence for composite scores.

The ranking engine never calls this package; callers that store
results use it with their own SQLAlchemy session.
"""

from .models import Base, SignalComponentScore, SignalScoreSnapshot
from .repository import SignalScoreRepository

__all__ = [
    "Base",
    "SignalScoreSnapshot",
    "SignalComponentScore",
    "SignalScoreRepository",
]
