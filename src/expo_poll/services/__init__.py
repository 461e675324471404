"""Business logic services for the Expo Poll application."""

from .admission import AdmissionOutcome, VoteAdmissionController
from .device_lock import DeviceAuthorization, DeviceLockRegistry
from .display import DisplaySession, VoteLink, VoteLinkRefresher
from .key_rotation import KeyRotator
from .payload_codec import PayloadCodec, build_vote_link

__all__ = [
    "AdmissionOutcome",
    "VoteAdmissionController",
    "DeviceAuthorization",
    "DeviceLockRegistry",
    "DisplaySession",
    "VoteLink",
    "VoteLinkRefresher",
    "KeyRotator",
    "PayloadCodec",
    "build_vote_link",
]
