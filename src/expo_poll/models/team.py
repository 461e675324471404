# src/expo_poll/models/team.py
"""Reference data describing the projects on show."""

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from expo_poll.db.session import Base


class Team(Base):
    """A team and the project it presents.

    Rows are created by an administrative import and are read-only to the
    display and voting flows.
    """

    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    project_title: Mapped[str] = mapped_column(Text, nullable=False)
