# src/expo_poll/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    display_router,
    projects_router,
    votes_router,
)

__all__ = [
    "display_router",
    "projects_router",
    "votes_router",
]
