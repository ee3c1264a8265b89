"""Infrastructure layer exports."""

from .opex_api import OpexApiClient, OpexApiError
from .sessions import InMemorySessionRepository, SessionRepository

__all__ = [
    "InMemorySessionRepository",
    "OpexApiClient",
    "OpexApiError",
    "SessionRepository",
]
