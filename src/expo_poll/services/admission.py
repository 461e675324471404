"""Admission control for scanned vote-authorization tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from expo_poll.core.errors import (
    ExpiredTokenError,
    IdentificationFailureError,
    InvalidSignatureError,
    PersistenceFailureError,
    QuotaExceededError,
    UnknownProjectError,
)
from expo_poll.db.time import epoch_millis
from expo_poll.models import Team, VoteRecord
from expo_poll.schemas.identity import DeviceIdentity
from expo_poll.schemas.payload import VoteAuthorizationPayload
from expo_poll.services.key_rotation import KeyRotator
from expo_poll.services.payload_codec import PayloadCodec
from expo_poll.services.slots import first_free_slot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdmissionOutcome:
    """A vote that was durably recorded."""

    project_id: int
    project_title: str

    @property
    def message(self) -> str:
        return f"Vote recorded successfully for {self.project_title}"


def _mask(fingerprint: str) -> str:
    return f"{fingerprint[:6]}..." if len(fingerprint) > 6 else fingerprint


class VoteAdmissionController:
    """Validate a token and record at most ``max_votes`` votes per voter.

    Every step is terminal: the first failing check raises and nothing is
    retried. The quota is enforced by claiming a ``(fingerprint, vote_slot)``
    row, which the store keeps unique, so duplicate submissions racing each
    other record one vote.
    """

    def __init__(
        self,
        db: Session,
        key_rotator: KeyRotator,
        codec: PayloadCodec,
        *,
        validity_window_buckets: int,
        max_votes: int = 1,
    ) -> None:
        self.db = db
        self.key_rotator = key_rotator
        self.codec = codec
        self.validity_window_buckets = validity_window_buckets
        self.max_votes = max_votes

    def admit(self, token: str, voter: DeviceIdentity | None = None) -> AdmissionOutcome:
        """Admit the vote carried by ``token``.

        Args:
            token: Transport-encoded token from the vote link.
            voter: Identity of the scanning device. When omitted, the
                fingerprint and address sealed in the token identify the voter.

        Returns:
            The recorded outcome naming the voted project.

        Raises:
            MalformedTokenError: Token cannot be decoded (``SchemaMismatchError``
                when the decrypted fields are wrong).
            InvalidSignatureError: Embedded bucket secret is forged or stale.
            ExpiredTokenError: Token bucket is outside the validity window.
            UnknownProjectError: Token names a project that does not exist.
            QuotaExceededError: Voter already used all their votes.
            IdentificationFailureError: An explicit voter identity is empty.
            PersistenceFailureError: The store failed or timed out.
        """
        payload = self.codec.decode(token)
        self.verify_signature(payload)
        self.check_freshness(payload)
        team = self.resolve_project(payload.project_id)
        identity = self._voter_identity(payload, voter)
        self.record_vote(payload.project_id, identity)
        logger.info("Recorded vote for project %s from %s", team.id, _mask(identity.fingerprint))
        return AdmissionOutcome(project_id=team.id, project_title=team.project_title)

    def verify_signature(self, payload: VoteAuthorizationPayload) -> None:
        if not self.key_rotator.matches(payload.bucket, payload.bucket_secret):
            logger.warning("Rejected token with forged secret for bucket %s", payload.bucket)
            raise InvalidSignatureError()

    def check_freshness(self, payload: VoteAuthorizationPayload) -> None:
        now = self.key_rotator.current_bucket()
        age = now - payload.bucket
        if age > self.validity_window_buckets or age < 0:
            logger.warning("Rejected token %d buckets old (window %d)", age, self.validity_window_buckets)
            raise ExpiredTokenError()

    def resolve_project(self, project_id: int) -> Team:
        try:
            team = self.db.get(Team, project_id)
        except SQLAlchemyError as err:
            logger.error("Failed to load project %s", project_id, exc_info=True)
            raise PersistenceFailureError() from err
        if team is None:
            raise UnknownProjectError()
        return team

    @staticmethod
    def _voter_identity(
        payload: VoteAuthorizationPayload, voter: DeviceIdentity | None
    ) -> DeviceIdentity:
        if voter is None:
            return DeviceIdentity(fingerprint=payload.device_fingerprint, address=payload.device_address)
        if not voter.fingerprint:
            raise IdentificationFailureError()
        return voter

    def record_vote(self, project_id: int, voter: DeviceIdentity) -> None:
        """Claim a free vote slot for ``voter`` and commit the vote."""
        try:
            used = self.db.scalars(
                select(VoteRecord.vote_slot).where(VoteRecord.fingerprint == voter.fingerprint)
            ).all()
        except SQLAlchemyError as err:
            logger.error("Failed to count votes", exc_info=True)
            raise PersistenceFailureError() from err

        slot = None if len(used) >= self.max_votes else first_free_slot(used, self.max_votes)
        if slot is None:
            logger.warning("Vote quota exhausted for %s", _mask(voter.fingerprint))
            raise QuotaExceededError()

        try:
            self.db.add(
                VoteRecord(
                    project_id=project_id,
                    fingerprint=voter.fingerprint,
                    ip=voter.address,
                    timestamp=epoch_millis(),
                    vote_slot=slot,
                )
            )
            self.db.commit()
        except IntegrityError as err:
            self.db.rollback()
            logger.warning("Concurrent admission claimed vote slot %d for %s", slot, _mask(voter.fingerprint))
            raise QuotaExceededError() from err
        except SQLAlchemyError as err:
            self.db.rollback()
            logger.error("Failed to record vote for project %s", project_id, exc_info=True)
            raise PersistenceFailureError() from err
