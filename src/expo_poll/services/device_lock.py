"""Binding projects to the devices allowed to display their vote codes."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from expo_poll.core.errors import DeviceRegistrationConflictError, PersistenceFailureError
from expo_poll.models import ProjectLink
from expo_poll.services.slots import first_free_slot

logger = logging.getLogger(__name__)

DEVICE_LIMIT_REASON = "device limit reached"


@dataclass(frozen=True)
class DeviceAuthorization:
    """Outcome of a device registration check."""

    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> DeviceAuthorization:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str = DEVICE_LIMIT_REASON) -> DeviceAuthorization:
        return cls(allowed=False, reason=reason)


class DeviceLockRegistry:
    """Let at most ``max_devices`` distinct fingerprints display one project.

    Each new device claims a free slot; ``(project_id, slot)`` is unique in
    the store, so two devices racing for the last slot cannot both commit.
    """

    def __init__(self, db: Session, max_devices: int = 3) -> None:
        if max_devices < 1:
            raise ValueError("A project must allow at least one device")
        self.db = db
        self.max_devices = max_devices

    def _links(self, project_id: int) -> list[ProjectLink]:
        try:
            return list(
                self.db.scalars(
                    select(ProjectLink)
                    .where(ProjectLink.project_id == project_id)
                    .order_by(ProjectLink.slot)
                )
            )
        except SQLAlchemyError as err:
            logger.error("Failed to read device links for project %s", project_id, exc_info=True)
            raise PersistenceFailureError("Error checking project lock") from err

    def bound_fingerprints(self, project_id: int) -> list[str]:
        """Return the fingerprints bound to ``project_id`` in slot order.

        Raises:
            PersistenceFailureError: If the store cannot be read.
        """
        return [link.fingerprint for link in self._links(project_id)]

    def _decide(
        self, links: list[ProjectLink], fingerprint: str
    ) -> tuple[DeviceAuthorization | None, int | None]:
        """Return a final decision, or the slot to claim when none is reached yet."""
        if any(link.fingerprint == fingerprint for link in links):
            return DeviceAuthorization.allow(), None
        if len({link.fingerprint for link in links}) >= self.max_devices:
            return DeviceAuthorization.deny(), None
        slot = first_free_slot((link.slot for link in links), self.max_devices)
        if slot is None:
            return DeviceAuthorization.deny(), None
        return None, slot

    def authorize(self, project_id: int, fingerprint: str) -> DeviceAuthorization:
        """Allow ``fingerprint`` to display ``project_id`` if it is or can be bound.

        Raises:
            PersistenceFailureError: If the store cannot be read or written;
                callers must treat this as a denial.
            DeviceRegistrationConflictError: If a concurrent registration took
                the slot this device tried to claim while another is still free.
        """
        decision, slot = self._decide(self._links(project_id), fingerprint)
        if decision is not None:
            if not decision.allowed:
                logger.warning("Device limit reached for project %s", project_id)
            return decision

        try:
            self.db.add(ProjectLink(project_id=project_id, fingerprint=fingerprint, slot=slot))
            self.db.commit()
        except IntegrityError as err:
            self.db.rollback()
            logger.info("Lost device slot %s of project %s to a concurrent registration", slot, project_id)
            decision, _ = self._decide(self._links(project_id), fingerprint)
            if decision is not None:
                return decision
            raise DeviceRegistrationConflictError() from err
        except SQLAlchemyError as err:
            self.db.rollback()
            logger.error("Failed to lock project %s to a device", project_id, exc_info=True)
            raise PersistenceFailureError("Error locking project") from err

        logger.info("Bound device slot %s of project %s", slot, project_id)
        return DeviceAuthorization.allow()
