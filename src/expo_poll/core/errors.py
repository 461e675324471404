"""Domain errors raised by the vote-authorization services.

Every failure of the display or voting flow is terminal and user facing, so
each error type carries one human-readable message and the HTTP status the
API layer answers with.
"""

from __future__ import annotations

from fastapi import status


class VotingError(RuntimeError):
    """Base class for vote-authorization failures."""

    code: str = "voting_error"
    default_message: str = "Error processing vote"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class MalformedTokenError(VotingError):
    """Raised when a token cannot be transport-decoded or decrypted."""

    code = "malformed"
    default_message = "Invalid or corrupted vote data"


class SchemaMismatchError(MalformedTokenError):
    """Raised when a decrypted token does not carry the expected fields."""

    code = "schema_mismatch"
    default_message = "Vote data is missing required fields"


# Both codec failures share one name for callers that only care that decoding failed.
DecodeError = MalformedTokenError


class InvalidSignatureError(VotingError):
    """Raised when the embedded bucket secret does not match its bucket."""

    code = "invalid_signature"
    default_message = "Vote failed: Invalid QR code"
    status_code = status.HTTP_401_UNAUTHORIZED


class ExpiredTokenError(VotingError):
    """Raised when a token's bucket falls outside the validity window."""

    code = "expired"
    default_message = "Vote failed: QR code expired"
    status_code = status.HTTP_410_GONE


class UnknownProjectError(VotingError):
    """Raised when a project id does not resolve to a team."""

    code = "unknown_project"
    default_message = "Project not found"
    status_code = status.HTTP_404_NOT_FOUND


class QuotaExceededError(VotingError):
    """Raised when the voter has already used every vote they are allowed."""

    code = "quota_exceeded"
    default_message = "Vote failed: You have already voted for a project"
    status_code = status.HTTP_409_CONFLICT


class DeviceLimitReachedError(VotingError):
    """Raised when a project is already displayed by the maximum number of devices."""

    code = "device_limit_reached"
    default_message = "This project is already logged in on the maximum number of devices"
    status_code = status.HTTP_403_FORBIDDEN


class PersistenceFailureError(VotingError):
    """Raised when the backing store fails or times out."""

    code = "persistence_failure"
    default_message = "Vote failed: the vote store is unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class DeviceRegistrationConflictError(PersistenceFailureError):
    """Raised when a concurrent registration took the device slot being claimed."""

    code = "device_registration_conflict"
    default_message = "Error locking project: another device registered at the same time"
    status_code = status.HTTP_409_CONFLICT


class IdentificationFailureError(VotingError):
    """Raised when the device fingerprint or address could not be established."""

    code = "identification_failure"
    default_message = "Device identification failed"


__all__ = [
    "VotingError",
    "DecodeError",
    "MalformedTokenError",
    "SchemaMismatchError",
    "InvalidSignatureError",
    "ExpiredTokenError",
    "UnknownProjectError",
    "QuotaExceededError",
    "DeviceLimitReachedError",
    "PersistenceFailureError",
    "DeviceRegistrationConflictError",
    "IdentificationFailureError",
]
