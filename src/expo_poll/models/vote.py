# src/expo_poll/models/vote.py
"""Models capturing recorded votes.

The table keeps the historical name ``projects`` even though each row is a
vote, not a project.
"""

from sqlalchemy import BigInteger, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from expo_poll.db.session import Base
from expo_poll.db.time import epoch_millis


class VoteRecord(Base):
    """Append-only record of one admitted vote."""

    __tablename__ = "projects"
    __table_args__ = (
        # Count-then-insert becomes a single conditional insert on this key.
        UniqueConstraint("fingerprint", "vote_slot", name="uq_projects_voter_slot"),
        Index("ix_projects_fingerprint", "fingerprint"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(Integer, nullable=False)
    fingerprint: Mapped[str] = mapped_column(Text, nullable=False)
    ip: Mapped[str] = mapped_column(Text, nullable=False)

    # Epoch milliseconds at admission.
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=epoch_millis)

    # 0-based index of this vote among the voter's votes, always < MAX_VOTES.
    vote_slot: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
