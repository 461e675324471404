"""Schemas for the encrypted vote-authorization payload."""

from pydantic import BaseModel, ConfigDict, Field


class VoteAuthorizationPayload(BaseModel):
    """Fields sealed inside a vote-authorization token.

    Attribute names describe the protocol; aliases are the fixed JSON field
    names inside the decrypted payload.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, strict=True)

    project_id: int
    bucket: int = Field(alias="timestamp", description="Time bucket the code was minted in")
    bucket_secret: str = Field(alias="qrSecret", description="Hex HMAC of the bucket")
    device_fingerprint: str = Field(alias="fingerprint")
    device_address: str = Field(alias="ip")

    def to_wire(self) -> dict[str, int | str]:
        """Return the payload keyed by its wire field names."""
        return self.model_dump(by_alias=True)
