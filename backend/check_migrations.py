#!/usr/bin/env python3
"""
Schema check for the booking database.

Compares a live database against the SQLModel metadata and the alembic scripts:
- every model table exists
- the slot claim unique constraint (the double-booking guard) is present
- the database is stamped at the alembic head revision

Usage (from backend/):
    python check_migrations.py [--database-url URL]

Exit code 0 when the schema is current, 1 otherwise.
"""

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.config import DATABASE_URL

CLAIM_TABLE = "slotclaim"
CLAIM_CONSTRAINT = "uq_claim_court_date_slot"
BACKEND_ROOT = Path(__file__).resolve().parent


@dataclass
class SchemaStatus:
    missing_tables: List[str] = field(default_factory=list)
    has_claim_constraint: bool = False
    current_revision: Optional[str] = None
    head_revision: Optional[str] = None

    @property
    def is_current(self) -> bool:
        return (
            not self.missing_tables
            and self.has_claim_constraint
            and self.current_revision == self.head_revision
        )


def head_revision() -> str:
    cfg = Config(str(BACKEND_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(BACKEND_ROOT / "alembic"))
    return ScriptDirectory.from_config(cfg).get_current_head()


def inspect_schema(engine: Engine) -> SchemaStatus:
    """Collect table, constraint and revision state for the database behind engine."""
    inspector = inspect(engine)
    existing = set(inspector.get_table_names())

    status = SchemaStatus(head_revision=head_revision())
    status.missing_tables = [t.name for t in SQLModel.metadata.sorted_tables if t.name not in existing]

    if CLAIM_TABLE in existing:
        names = {c["name"] for c in inspector.get_unique_constraints(CLAIM_TABLE)}
        status.has_claim_constraint = CLAIM_CONSTRAINT in names

    with engine.connect() as connection:
        status.current_revision = MigrationContext.configure(connection).get_current_revision()

    return status


def format_report(status: SchemaStatus) -> List[str]:
    lines = []
    if status.missing_tables:
        lines.append(f"Missing tables: {', '.join(status.missing_tables)}")
    if not status.has_claim_constraint:
        lines.append(f"Missing {CLAIM_CONSTRAINT} on {CLAIM_TABLE}: double bookings are not prevented")
    if status.current_revision is None:
        lines.append(f"Database is not stamped (head is {status.head_revision})")
    elif status.current_revision != status.head_revision:
        lines.append(f"Database at {status.current_revision}, head is {status.head_revision}")
    if status.is_current:
        lines.append(f"Schema is current at {status.head_revision}")
    else:
        lines.append("Run migrations with: alembic upgrade head")
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--database-url", default=DATABASE_URL)
    args = parser.parse_args(argv)

    engine = create_engine(args.database_url)
    try:
        status = inspect_schema(engine)
    finally:
        engine.dispose()

    print(f"Database: {engine.url.render_as_string(hide_password=True)}")
    for line in format_report(status):
        print(line)
    return 0 if status.is_current else 1


if __name__ == "__main__":
    sys.exit(main())
