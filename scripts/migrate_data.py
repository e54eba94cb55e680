#!/usr/bin/env python3
"""
Copy gigs, members and commitments from one storage backend to another.

Legacy commitments (``memberId``) are rewritten to ``userId`` on the way.

Usage:
  python scripts/migrate_data.py --from json --data-dir ./data \
      --to sql --database-url postgresql://user:pass@db/gigcalendar
  python scripts/migrate_data.py --from json --data-dir ./old --to json --target-dir ./data
"""
from __future__ import annotations

import argparse
import sys

from gigcalendar.core.config import Settings
from gigcalendar.repositories import build_store
from gigcalendar.services.migration import migrate

BACKENDS = ("json", "sql")


def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="Migrate GigCalendar data between backends")
    ap.add_argument("--from", dest="source", choices=BACKENDS, default="json")
    ap.add_argument("--to", dest="target", choices=BACKENDS, default="sql")
    ap.add_argument("--data-dir", help="Source directory for the json backend")
    ap.add_argument("--target-dir", help="Target directory for the json backend")
    ap.add_argument("--database-url", help="Database URL for the sql backend")
    ap.add_argument(
        "--hash-passwords",
        action="store_true",
        help="Hash plain-text member passwords while copying",
    )
    args = ap.parse_args(argv)

    source_settings = Settings(STORAGE_BACKEND=args.source)
    target_settings = Settings(STORAGE_BACKEND=args.target)
    if args.data_dir:
        source_settings.DATA_DIR = args.data_dir
    if args.target_dir:
        target_settings.DATA_DIR = args.target_dir
    if args.database_url:
        source_settings.DATABASE_URL = args.database_url
        target_settings.DATABASE_URL = args.database_url

    if (args.source, source_settings.DATA_DIR, source_settings.DATABASE_URL) == (
        args.target, target_settings.DATA_DIR, target_settings.DATABASE_URL,
    ):
        raise SystemExit("Source and target are the same store")

    source = build_store(source_settings)
    target = build_store(target_settings)
    try:
        written = migrate(source, target, hash_passwords=args.hash_passwords)
    finally:
        source.close()
        target.close()

    print("OK: migration completed")
    for collection, count in written.items():
        print(f"  {collection}: {count}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
