# src/expo_poll/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .display import router as display_router
from .projects import router as projects_router
from .votes import router as votes_router

__all__ = [
    "display_router",
    "projects_router",
    "votes_router",
]
