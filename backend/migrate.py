#!/usr/bin/env python3
"""
Create any missing tables for the configured DATABASE_URL.

    python backend/migrate.py
"""

import sys
from pathlib import Path

from sqlalchemy import inspect

# Make `backend.app` importable when run as a script from anywhere.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from backend.app.database import engine, init_db  # noqa: E402


def migrate():
    print("Initializing database with all models...")
    init_db()

    inspector = inspect(engine)
    for table in sorted(inspector.get_table_names()):
        columns = [c["name"] for c in inspector.get_columns(table)]
        print(f"  {table}: {', '.join(columns)}")
    print("✓ Database initialized successfully")


if __name__ == "__main__":
    migrate()
