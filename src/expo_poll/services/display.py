"""Display side: minting fresh vote links for one project on one device.

A display instance authorizes its device once, then mints a new token every
bucket. The :class:`VoteLinkRefresher` runs that loop in the background and
must be stopped when the display is torn down.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from expo_poll.core.errors import (
    DeviceLimitReachedError,
    IdentificationFailureError,
    PersistenceFailureError,
    UnknownProjectError,
    VotingError,
)
from expo_poll.models import Team
from expo_poll.schemas.identity import DeviceIdentity
from expo_poll.schemas.payload import VoteAuthorizationPayload
from expo_poll.services.device_lock import DeviceAuthorization, DeviceLockRegistry
from expo_poll.services.key_rotation import KeyRotator
from expo_poll.services.payload_codec import PayloadCodec, build_vote_link

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoteLink:
    """A minted vote link and the bucket it is valid from."""

    url: str
    token: str
    bucket: int
    expires_in: float


class DisplaySession:
    """State of one project shown on one device.

    The device authorization is asked once and cached for the lifetime of the
    session; store failures deny without being cached.
    """

    def __init__(
        self,
        db: Session,
        project_id: int,
        identity: DeviceIdentity | None,
        *,
        key_rotator: KeyRotator,
        codec: PayloadCodec,
        registry: DeviceLockRegistry,
        base_url: str,
    ) -> None:
        self.db = db
        self.project_id = project_id
        self.identity = identity
        self.key_rotator = key_rotator
        self.codec = codec
        self.registry = registry
        self.base_url = base_url
        self._authorization: DeviceAuthorization | None = None
        self._team: Team | None = None

    def project(self) -> Team:
        """Return the team being displayed."""
        if self._team is None:
            try:
                team = self.db.get(Team, self.project_id)
            except SQLAlchemyError as err:
                logger.error("Failed to load project %s", self.project_id, exc_info=True)
                raise PersistenceFailureError("Error loading projects") from err
            if team is None:
                raise UnknownProjectError()
            self._team = team
        return self._team

    def _require_identity(self) -> DeviceIdentity:
        if self.identity is None or not self.identity.fingerprint:
            raise IdentificationFailureError()
        return self.identity

    def _registry_decision(self, identity: DeviceIdentity) -> DeviceAuthorization:
        if self._authorization is None:
            self._authorization = self.registry.authorize(self.project_id, identity.fingerprint)
        return self._authorization

    def authorize(self) -> DeviceAuthorization:
        """Return whether this device may display the project, asking the registry once."""
        identity = self._require_identity()
        try:
            return self._registry_decision(identity)
        except PersistenceFailureError as err:
            logger.warning("Denying display of project %s: %s", self.project_id, err.message)
            return DeviceAuthorization.deny(err.message)

    def mint(self) -> VoteLink:
        """Mint the vote link for the current bucket.

        Raises:
            IdentificationFailureError: The device has no fingerprint.
            UnknownProjectError: The project does not exist.
            DeviceLimitReachedError: The device may not display this project.
            PersistenceFailureError: The device lock could not be checked;
                nothing is minted.
        """
        identity = self._require_identity()
        self.project()
        if not self._registry_decision(identity).allowed:
            raise DeviceLimitReachedError()

        bucket = self.key_rotator.current_bucket()
        payload = VoteAuthorizationPayload(
            project_id=self.project_id,
            bucket=bucket,
            bucket_secret=self.key_rotator.key_hex_for(bucket),
            device_fingerprint=identity.fingerprint,
            device_address=identity.address,
        )
        token = self.codec.encode(payload)
        return VoteLink(
            url=build_vote_link(token, self.base_url),
            token=token,
            bucket=bucket,
            expires_in=self.key_rotator.seconds_until_rotation(),
        )


class VoteLinkRefresher:
    """Periodically re-mints a display's vote link at every bucket boundary.

    Minting touches the store, so it runs in a worker thread; ``on_refresh``
    is called back on the event loop.
    """

    def __init__(
        self,
        session: DisplaySession,
        on_refresh: Callable[[VoteLink], None] | None = None,
    ) -> None:
        self.session = session
        self.on_refresh = on_refresh
        self.latest: VoteLink | None = None
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background refresh loop."""
        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background refresh loop and wait for it to finish."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def refresh(self) -> VoteLink:
        link = await asyncio.to_thread(self.session.mint)
        self.latest = link
        if self.on_refresh is not None:
            self.on_refresh(link)
        return link

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                link = await self.refresh()
            except VotingError as e:
                logger.warning(
                    "Stopped refreshing vote link for project %s: %s",
                    self.session.project_id,
                    e.message,
                )
                return
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=max(0.05, link.expires_in))
            except TimeoutError:
                continue
