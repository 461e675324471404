# src/expo_poll/api/v1/endpoints/display.py
"""Display-side endpoints minting the rotating vote link for a project."""

from typing import Annotated

import qrcode
import qrcode.image.svg
from fastapi import APIRouter, Depends, Response

from expo_poll.core.settings import settings
from expo_poll.schemas.project import VoteLinkResponse
from expo_poll.services.display import DisplaySession

from ..dependencies import (
    DeviceIdentityDep,
    DeviceRegistryDep,
    KeyRotatorDep,
    PayloadCodecDep,
    SessionDep,
)

router = APIRouter(prefix="/display", tags=["display"])


def get_display_session(
    project_id: int,
    db: SessionDep,
    identity: DeviceIdentityDep,
    key_rotator: KeyRotatorDep,
    codec: PayloadCodecDep,
    registry: DeviceRegistryDep,
) -> DisplaySession:
    """Build the display session for the requesting device."""
    return DisplaySession(
        db,
        project_id,
        identity,
        key_rotator=key_rotator,
        codec=codec,
        registry=registry,
        base_url=settings.base_url,
    )


DisplaySessionDep = Annotated[DisplaySession, Depends(get_display_session)]


def render_qr_svg(data: str) -> bytes:
    """Render ``data`` as a standalone SVG QR code."""
    image = qrcode.make(data, image_factory=qrcode.image.svg.SvgPathImage)
    return image.to_string()


@router.get("/{project_id}", response_model=VoteLinkResponse)
def current_vote_link(project_id: int, display: DisplaySessionDep) -> VoteLinkResponse:
    """Return the vote link for the current time bucket."""
    link = display.mint()
    return VoteLinkResponse(
        project_id=project_id,
        project_name=display.project().project_title,
        url=link.url,
        token=link.token,
        bucket=link.bucket,
        expires_in=link.expires_in,
    )


@router.get("/{project_id}/qr.svg")
def current_vote_qr(project_id: int, display: DisplaySessionDep) -> Response:
    """Return the current vote link rendered as an SVG QR code."""
    link = display.mint()
    return Response(
        content=render_qr_svg(link.url),
        media_type="image/svg+xml",
        headers={"Cache-Control": "no-store", "X-Code-Expires-In": f"{link.expires_in:.1f}"},
    )
