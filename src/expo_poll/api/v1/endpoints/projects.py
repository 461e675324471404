# src/expo_poll/api/v1/endpoints/projects.py
"""Project listing endpoints for the Expo Poll API."""

import logging

from fastapi import APIRouter
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from expo_poll.core.errors import PersistenceFailureError
from expo_poll.models import Team
from expo_poll.schemas.project import ProjectResponse

from ..dependencies import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("/", response_model=list[ProjectResponse])
def list_projects(db: SessionDep) -> list[ProjectResponse]:
    """List every project that can be displayed and voted for."""
    try:
        teams = db.scalars(select(Team).order_by(Team.id)).all()
    except SQLAlchemyError as err:
        logger.error("Error fetching projects", exc_info=True)
        raise PersistenceFailureError("Error loading projects") from err
    return [ProjectResponse(id=team.id, name=team.project_title) for team in teams]
