"""Shared API dependencies for device identity and the vote services."""

from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from expo_poll.core.errors import IdentificationFailureError
from expo_poll.core.settings import settings
from expo_poll.db.session import get_db
from expo_poll.schemas.identity import UNKNOWN_ADDRESS, DeviceIdentity
from expo_poll.services.admission import VoteAdmissionController
from expo_poll.services.device_lock import DeviceLockRegistry
from expo_poll.services.key_rotation import KeyRotator
from expo_poll.services.payload_codec import PayloadCodec

FINGERPRINT_HEADER = "X-Device-Fingerprint"

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_key_rotator() -> KeyRotator:
    """Return a key rotator bound to the configured shared secret."""
    return KeyRotator(settings.shared_secret, settings.bucket_width_seconds)


def get_payload_codec() -> PayloadCodec:
    """Return a payload codec bound to the configured shared secret."""
    return PayloadCodec(settings.shared_secret)


KeyRotatorDep = Annotated[KeyRotator, Depends(get_key_rotator)]
PayloadCodecDep = Annotated[PayloadCodec, Depends(get_payload_codec)]


def client_address(request: Request) -> str:
    """Return the caller's network address.

    The first ``X-Forwarded-For`` hop wins over the socket peer; when neither
    is known the address is recorded as ``"unknown"``.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    if request.client is not None and request.client.host:
        return request.client.host
    return UNKNOWN_ADDRESS


def get_device_identity(
    request: Request,
    fingerprint: Annotated[str | None, Header(alias=FINGERPRINT_HEADER)] = None,
) -> DeviceIdentity:
    """Return the identity of the calling device.

    Raises:
        IdentificationFailureError: If the device sent no fingerprint.
    """
    if fingerprint is None or not fingerprint.strip():
        raise IdentificationFailureError()
    return DeviceIdentity(fingerprint=fingerprint.strip(), address=client_address(request))


def get_optional_device_identity(
    request: Request,
    fingerprint: Annotated[str | None, Header(alias=FINGERPRINT_HEADER)] = None,
) -> DeviceIdentity | None:
    """Return the calling device's identity, or None if it sent no fingerprint header."""
    if fingerprint is None:
        return None
    return get_device_identity(request, fingerprint)


def get_device_registry(db: SessionDep) -> DeviceLockRegistry:
    return DeviceLockRegistry(db, max_devices=settings.max_devices_per_project)


def get_admission_controller(
    db: SessionDep,
    key_rotator: KeyRotatorDep,
    codec: PayloadCodecDep,
) -> VoteAdmissionController:
    return VoteAdmissionController(
        db,
        key_rotator,
        codec,
        validity_window_buckets=settings.validity_window_buckets,
        max_votes=settings.max_votes,
    )


DeviceIdentityDep = Annotated[DeviceIdentity, Depends(get_device_identity)]
OptionalDeviceIdentityDep = Annotated[DeviceIdentity | None, Depends(get_optional_device_identity)]
DeviceRegistryDep = Annotated[DeviceLockRegistry, Depends(get_device_registry)]
AdmissionControllerDep = Annotated[VoteAdmissionController, Depends(get_admission_controller)]
