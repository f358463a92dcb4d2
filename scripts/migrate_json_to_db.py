#!/usr/bin/env python3
"""
Copy the tracked source list from a JSON-file store into the SQLite store.

Usage:
    python scripts/migrate_json_to_db.py --json data/jobs.json --db data/jobs.db
"""

import argparse
from pathlib import Path

from jobsync.errors import StorageError
from jobsync.registry import STORAGE_KEY, entry_from_dict
from jobsync.storage import JsonFileStore, SqliteStore


def migrate(json_path: Path, db_path: Path, dry_run: bool = False) -> int:
    """
    Migrate the job list from JSON to database.

    Args:
        json_path: Path to JSON store file
        db_path: Path to SQLite database file
        dry_run: If True, don't write to database

    Returns:
        Number of entries migrated (or that would be)
    """
    print(f"Loading job list from {json_path}...")
    stored = JsonFileStore(json_path).get(STORAGE_KEY) or []
    if not isinstance(stored, list):
        raise StorageError(f"'{STORAGE_KEY}' in {json_path} is not a list")

    entries = []
    skipped = 0
    for raw in stored:
        entry = entry_from_dict(raw)
        if entry is None:
            print(f"⚠️  Skipping malformed entry: {raw!r}")
            skipped += 1
            continue
        entries.append(entry)
    print(f"Found {len(entries)} sources ({skipped} skipped)")

    if dry_run:
        print("\n[DRY RUN] Would migrate the following sources:")
        for i, entry in enumerate(entries[:5], 1):
            state = "parsed" if entry.is_parsed else "raw"
            print(f"  {i}. {entry.url} ({state})")
        if len(entries) > 5:
            print(f"  ... and {len(entries) - 5} more")
        return len(entries)

    print(f"\nWriting to database at {db_path}...")
    with SqliteStore(db_path) as store:
        store.set(STORAGE_KEY, [e.to_dict() for e in entries])
    print(f"✅ Migrated {len(entries)} sources")
    return len(entries)


def main():
    parser = argparse.ArgumentParser(description="Migrate job list from JSON to SQLite")
    parser.add_argument("--json", type=Path, default=Path("data/jobs.json"), help="Path to JSON store")
    parser.add_argument("--db", type=Path, default=Path("data/jobs.db"), help="Path to SQLite database")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be migrated without writing")
    args = parser.parse_args()

    if not args.json.exists():
        raise SystemExit(f"JSON file not found: {args.json}")

    try:
        migrate(args.json, args.db, dry_run=args.dry_run)
    except StorageError as e:
        raise SystemExit(str(e))


if __name__ == "__main__":
    main()
