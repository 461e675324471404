"""
Pydantic schemas for API request/response models and the sealed vote payload.

These schemas define the structure of API data for serialization and validation.
"""

from .identity import DeviceIdentity
from .payload import VoteAuthorizationPayload
from .project import ErrorResponse, ProjectResponse, VoteLinkResponse, VoteResponse

__all__ = [
    "DeviceIdentity",
    "VoteAuthorizationPayload",
    "ErrorResponse", "ProjectResponse", "VoteLinkResponse", "VoteResponse",
]
