"""Device identity schemas."""

from pydantic import BaseModel, ConfigDict

UNKNOWN_ADDRESS = "unknown"


class DeviceIdentity(BaseModel):
    """Best-effort identity of a browser or device.

    The fingerprint is a heuristic, spoofable signal; it only needs to be a
    stable string per device.
    """

    model_config = ConfigDict(frozen=True)

    fingerprint: str
    address: str = UNKNOWN_ADDRESS
