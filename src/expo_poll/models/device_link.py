# src/expo_poll/models/device_link.py
"""Models binding projects to the devices allowed to display them."""

from sqlalchemy import Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from expo_poll.db.session import Base


class ProjectLink(Base):
    """A device fingerprint allowed to display a project's vote codes."""

    __tablename__ = "project_links"
    __table_args__ = (
        UniqueConstraint("project_id", "fingerprint", name="uq_project_links_fingerprint"),
        # One row per claimed slot; the store rejects a second claim on the same slot.
        UniqueConstraint("project_id", "slot", name="uq_project_links_slot"),
        Index("ix_project_links_project_id", "project_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(Integer, nullable=False)
    fingerprint: Mapped[str] = mapped_column(Text, nullable=False)

    # 0-based position among the project's devices, always < MAX_DEVICES_PER_PROJECT.
    slot: Mapped[int] = mapped_column(Integer, nullable=False)
