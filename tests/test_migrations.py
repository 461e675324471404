"""Apply the Alembic migrations to a scratch SQLite database."""

from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect

from expo_poll.scripts.migrate import run_upgrade_head


def test_upgrade_head_creates_vote_schema(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    url = f"sqlite:///{tmp_path / 'expo.db'}"
    monkeypatch.setenv("ALEMBIC_URL", url)

    run_upgrade_head()

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        assert {"teams", "project_links", "projects"} <= set(inspector.get_table_names())
        link_uniques = {
            tuple(sorted(c["column_names"])) for c in inspector.get_unique_constraints("project_links")
        }
        assert ("project_id", "slot") in link_uniques
        assert ("fingerprint", "project_id") in link_uniques
    finally:
        engine.dispose()
