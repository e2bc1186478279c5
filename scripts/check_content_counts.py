#!/usr/bin/env python3
"""Print row counts for the public content tables (quick connectivity check)."""

from __future__ import annotations

from resort.services.infra.supabase_client import get_supabase_client

CONTENT_TABLES = ("experiences", "packages", "blogs")


def main() -> None:
    client = get_supabase_client()
    if not client:
        raise SystemExit("Supabase client not available!")

    for table in CONTENT_TABLES:
        try:
            result = client.table(table).select("id", count="exact").limit(1).execute()
            print(f"{table}: {result.count}")
        except Exception as e:
            print(f"{table}: error {e}")


if __name__ == "__main__":
    main()
