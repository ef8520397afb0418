#!/usr/bin/env python3
"""
Import a legacy company-relationships.json cache into the relationship ledger.

Usage:
    python scripts/migrate_relationships.py --json data/company-relationships.json --db data/relationships.db
"""

import argparse
import json
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from placementwatch.database import RelationshipLedger
from placementwatch.relatedness import AUTO_DISCOVERED, RelatednessIndex


def load_cache(json_path: Path) -> dict:
    """Parent -> aliases map from the cache file; {} if the file has none."""
    with open(json_path, encoding="utf-8") as f:
        data = json.load(f)
    relationships = data.get("relationships", data)
    return {k: v for k, v in relationships.items() if isinstance(v, list)}


def migrate(json_path: Path, db_path: Path, dry_run: bool = False) -> dict:
    """
    Copy every cached edge into the ledger as an auto-discovered edge.

    Args:
        json_path: Path to the legacy cache file
        db_path: Path to SQLite ledger
        dry_run: If True, don't write to the ledger

    Returns:
        Counts of migrated, skipped (already known) and refused (generic) edges
    """
    print(f"Loading relationships from {json_path}...")
    relationships = load_cache(json_path)
    total = sum(len(v) for v in relationships.values())
    print(f"Found {total} edges under {len(relationships)} parents")

    if dry_run:
        print("\n[DRY RUN] Would migrate the following parents:")
        for i, (parent, aliases) in enumerate(list(relationships.items())[:5], 1):
            print(f"  {i}. {parent}: {', '.join(aliases)}")
        if len(relationships) > 5:
            print(f"  ... and {len(relationships) - 5} more")
        return {"migrated": 0, "skipped": 0, "refused": 0}

    print(f"\nOpening ledger at {db_path}...")
    index = RelatednessIndex(seed={}, ledger=RelationshipLedger(db_path))

    migrated = skipped = 0
    for parent, aliases in relationships.items():
        for alias in aliases:
            if index.add_edge(parent, alias, AUTO_DISCOVERED):
                migrated += 1
            else:
                skipped += 1

    refused = len(index.refused)
    skipped -= refused
    print("\nMigration complete!")
    print(f"   Migrated: {migrated}")
    print(f"   Skipped:  {skipped}")
    print(f"   Refused:  {refused}")
    return {"migrated": migrated, "skipped": skipped, "refused": refused}


def main():
    parser = argparse.ArgumentParser(description="Import legacy relationship cache into the ledger")
    parser.add_argument("--json", type=Path, default=Path("data/company-relationships.json"),
                        help="Path to legacy cache file")
    parser.add_argument("--db", type=Path, default=Path("data/relationships.db"),
                        help="Path to SQLite ledger")
    parser.add_argument("--dry-run", action="store_true",
                        help="Show what would be migrated without writing")

    args = parser.parse_args()

    if not args.json.exists():
        print(f"JSON file not found: {args.json}")
        sys.exit(1)

    migrate(args.json, args.db, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
