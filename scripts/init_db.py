"""
Create the pupi schema for the configured database and report its state.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.config import get_settings
from backend.db import create_db_client, resolve_database_url


def main() -> int:
    parser = argparse.ArgumentParser(description="Initialise the pupi database")
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Override DATABASE_URL",
    )
    args = parser.parse_args()

    settings = get_settings()
    database_url = args.database_url or settings.database_url
    kind, _ = resolve_database_url(database_url, settings.default_sqlite_path)
    print(f"Initialising {kind} database")

    # Tables are created and upgraded when the client is constructed.
    db = create_db_client(database_url, settings.default_sqlite_path)
    try:
        print(f"Ready: {db.count_pupi()} pupi stored")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
