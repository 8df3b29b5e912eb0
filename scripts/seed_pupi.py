"""
CLI helper to bulk-import pupi from a seed JSON file into the configured
database.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.dependencies import get_db_client
from backend.importer import ImportValidationError, import_pupi


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the pupi database")
    parser.add_argument(
        "seed_file",
        type=Path,
        nargs="?",
        default=Path("seed-data.json"),
        help="JSON file holding an array of pupi or {\"pupi\": [...]}",
    )
    parser.add_argument(
        "-l",
        "--list",
        action="store_true",
        help="Print every pupo after importing",
    )
    args = parser.parse_args()

    with args.seed_file.open("r", encoding="utf-8") as f:
        payload = json.load(f)

    db = get_db_client()
    try:
        result = import_pupi(db, payload)
        print(
            f"{result.message} ({result.total} pupi in the {db.backend_name} database)"
        )
        if args.list:
            for record in db.list_pupi():
                print(f"  - {record.name} ({record.id})")
    except ImportValidationError as e:
        print(f"Seed failed: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
