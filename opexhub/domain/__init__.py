"""Domain layer definitions."""

from .session import Session, Toast, User

__all__ = [
    "Session",
    "Toast",
    "User",
]
