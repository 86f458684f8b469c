from services.errors import (
    Forbidden,
    InvalidCoordinates,
    InvalidRoundState,
    NotFound,
    ServiceError,
    StateConflict,
    ValidationError,
)
from services.locks import KeyedLocks
from services.round_lifecycle import RoundLifecycleService, RoundTotals

__all__ = [
    "Forbidden",
    "InvalidCoordinates",
    "InvalidRoundState",
    "NotFound",
    "ServiceError",
    "StateConflict",
    "ValidationError",
    "KeyedLocks",
    "RoundLifecycleService",
    "RoundTotals",
]
