# src/expo_poll/scripts/seed_teams.py
"""
Administrative import of the teams and project titles on show.

Reads a CSV file with ``id,project_title`` columns and upserts every row
into the ``teams`` table. Device links and votes are never touched.

Usage:
    python -m expo_poll.scripts.seed_teams teams.csv
"""

from __future__ import annotations

import argparse
import csv
import logging
from collections.abc import Iterable
from pathlib import Path

from sqlalchemy.orm import Session

from expo_poll.db.session import SessionLocal, create_tables
from expo_poll.models import Team

logger = logging.getLogger(__name__)


def read_teams(path: Path) -> list[tuple[int, str]]:
    """Parse ``id,project_title`` rows, skipping blank lines."""
    with path.open(newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        rows: list[tuple[int, str]] = []
        for line_no, row in enumerate(reader, start=2):
            raw_id = (row.get("id") or "").strip()
            title = (row.get("project_title") or "").strip()
            if not raw_id and not title:
                continue
            if not raw_id.isdigit() or not title:
                raise ValueError(f"{path}:{line_no}: expected a numeric id and a project title")
            rows.append((int(raw_id), title))
    return rows


def upsert_teams(db: Session, teams: Iterable[tuple[int, str]]) -> int:
    """Insert or rename teams; return how many rows were written."""
    written = 0
    for team_id, title in teams:
        team = db.get(Team, team_id)
        if team is None:
            db.add(Team(id=team_id, project_title=title))
        elif team.project_title != title:
            team.project_title = title
        else:
            continue
        written += 1
    db.commit()
    return written


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Import expo teams from a CSV file.")
    parser.add_argument("csv_path", type=Path)
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables first (development databases only).",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    if args.create_tables:
        create_tables()

    db = SessionLocal()
    try:
        written = upsert_teams(db, read_teams(args.csv_path))
    finally:
        db.close()
    logger.info("Imported %d teams from %s", written, args.csv_path)


if __name__ == "__main__":
    main()
