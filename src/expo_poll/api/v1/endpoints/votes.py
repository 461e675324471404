# src/expo_poll/api/v1/endpoints/votes.py
"""Vote-related endpoints for the Expo Poll API."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from expo_poll.core.errors import MalformedTokenError
from expo_poll.schemas.project import VoteResponse

from ..dependencies import AdmissionControllerDep, OptionalDeviceIdentityDep

router = APIRouter(prefix="/votes", tags=["votes"])

TokenQuery = Annotated[str | None, Query(alias="data")]


def process_vote(
    token: str | None,
    controller: AdmissionControllerDep,
    voter: OptionalDeviceIdentityDep,
) -> VoteResponse:
    """Admit the vote carried by a token taken from a vote link."""
    if not token:
        raise MalformedTokenError("No vote data provided")
    outcome = controller.admit(token, voter)
    return VoteResponse(
        project_id=outcome.project_id,
        project_name=outcome.project_title,
        message=outcome.message,
    )


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=VoteResponse)
def cast_vote(
    controller: AdmissionControllerDep,
    voter: OptionalDeviceIdentityDep,
    token: TokenQuery = None,
) -> VoteResponse:
    """Cast the vote authorized by a scanned QR token."""
    return process_vote(token, controller, voter)
