"""Project-related Pydantic schemas."""

from pydantic import BaseModel, Field


class ProjectResponse(BaseModel):
    """A project as listed for the display pages."""

    id: int
    name: str


class VoteLinkResponse(BaseModel):
    """The vote link a display device should render as a QR code."""

    project_id: int
    project_name: str
    url: str
    token: str
    bucket: int
    expires_in: float = Field(..., description="Seconds until the next code rotation")


class VoteResponse(BaseModel):
    """Result of an admitted vote."""

    status: str = "recorded"
    project_id: int
    project_name: str
    message: str


class ErrorResponse(BaseModel):
    """Body returned for every vote-authorization failure."""

    detail: str
    code: str
