"""initial vote schema

Revision ID: 5c1e2a9d7b40
Revises:
Create Date: 2026-10-18 09:12:44.318204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e2a9d7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create teams, device links and the vote ledger."""
    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("project_title", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "project_links",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("fingerprint", sa.Text(), nullable=False),
        sa.Column("slot", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "fingerprint", name="uq_project_links_fingerprint"),
        sa.UniqueConstraint("project_id", "slot", name="uq_project_links_slot"),
    )
    op.create_index("ix_project_links_project_id", "project_links", ["project_id"])
    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("fingerprint", sa.Text(), nullable=False),
        sa.Column("ip", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("vote_slot", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("fingerprint", "vote_slot", name="uq_projects_voter_slot"),
    )
    op.create_index("ix_projects_fingerprint", "projects", ["fingerprint"])


def downgrade() -> None:
    """Drop the vote schema."""
    op.drop_index("ix_projects_fingerprint", table_name="projects")
    op.drop_table("projects")
    op.drop_index("ix_project_links_project_id", table_name="project_links")
    op.drop_table("project_links")
    op.drop_table("teams")
