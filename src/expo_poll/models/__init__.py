# src/expo_poll/models/__init__.py
"""SQLAlchemy models for the Expo Poll application."""

from .device_link import ProjectLink
from .team import Team
from .vote import VoteRecord

__all__ = [
    "ProjectLink",
    "Team",
    "VoteRecord",
]
