#!/usr/bin/env python3
"""
Seed the price_baselines table from a JSON file.

The file lists category-level prices per store:

    [{"category": "vegetables", "stores": {"FreshMart": {"price_per_unit": 0.0032, "unit": "g"}}}]

Name-specific rows can be added with an "ingredient_name" key next to
"category".

Usage:
    python scripts/seed_price_baselines.py [--file data/price_baselines.json] [--replace] [--dry-run]
"""

import argparse
import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path

from mealwise.budget.models import PriceBaseline
from mealwise_web.db.client import get_client

DEFAULT_FILE = Path(__file__).resolve().parent.parent / "data" / "price_baselines.json"


def flatten_baselines(data: list[dict], updated_at: datetime) -> list[dict]:
    """One table row per (category or ingredient, store)."""
    records = []
    for entry in data:
        for store, price in entry["stores"].items():
            price_per_unit = price.get("price_per_unit", price.get("pricePerUnit"))
            # Validate through the same model the estimator uses
            baseline = PriceBaseline(
                store=store,
                unit=price["unit"],
                price_per_unit=float(price_per_unit),
                category=entry.get("category"),
                ingredient_name=entry.get("ingredient_name"),
                updated_at=updated_at,
            )
            records.append({
                "store": baseline.store,
                "unit": baseline.unit,
                "price_per_unit": baseline.price_per_unit,
                "ingredient_category": baseline.category.value if baseline.category else None,
                "ingredient_name": baseline.ingredient_name,
                "updated_at": updated_at.isoformat(),
            })
    return records


async def seed_price_baselines(path: Path, replace: bool = False, dry_run: bool = False) -> None:
    """Insert baselines; with replace, clear the table first."""
    print(f"Seeding price baselines from {path}...")

    data = json.loads(path.read_text(encoding="utf-8"))
    records = flatten_baselines(data, datetime.now(timezone.utc))
    print(f"  Rows to insert: {len(records)}")

    if dry_run:
        print("\nDry run - would insert:")
        for record in records[:10]:
            target = record["ingredient_name"] or record["ingredient_category"]
            print(f"  - {target} @ {record['store']}: {record['price_per_unit']}/{record['unit']}")
        if len(records) > 10:
            print(f"  ... and {len(records) - 10} more")
        return

    client = await get_client()

    if replace:
        await client.table("price_baselines").delete().neq("store", "").execute()
        print("  Cleared existing baselines")

    result = await client.table("price_baselines").insert(records).execute()
    print(f"  Inserted {len(result.data)} baselines")
    print("\nSeeding complete!")


def main():
    parser = argparse.ArgumentParser(description="Seed price baselines into database")
    parser.add_argument("--file", type=Path, default=DEFAULT_FILE, help="Baselines JSON file")
    parser.add_argument("--replace", action="store_true", help="Delete existing rows first")
    parser.add_argument("--dry-run", action="store_true", help="Print what would be inserted")
    args = parser.parse_args()

    asyncio.run(seed_price_baselines(args.file, replace=args.replace, dry_run=args.dry_run))


if __name__ == "__main__":
    main()
