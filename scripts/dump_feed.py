#!/usr/bin/env python3
"""Fetch feed pages and dump what the store holds afterwards.

Useful to check how a live server's payloads land in the store: which
discussions, feed items and contacts end up where.

Usage
-----
Set environment variables and run::

    export GATZ_BASE_URL="https://api.gatz.chat"
    export GATZ_TOKEN="..."
    python scripts/dump_feed.py

Options::

    --active             Fetch active discussions instead of all posts
    --group GID          Only fetch the feed of this group
    --pages N            Number of pages to fetch (default: 1)
    --search TERM        Run a search instead of fetching the feed
    --json               Output as machine-readable JSON
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pygatz import FeedClient, FeedQuery, FeedType, FrontendStore, GatzConfig, HttpGateway  # noqa: E402
from pygatz._redact import redact_for_log  # noqa: E402


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _snapshot(store: FrontendStore) -> dict[str, Any]:
    return {
        "contacts": [c.model_dump(mode="json") for c in store.get_all_contacts()],
        "groups": [g.model_dump(mode="json") for g in store.get_all_groups()],
        "aggregates": [
            {
                "id": a.id,
                "name": a.discussion.name,
                "messages": len(a.messages),
                "users": [u.name for u in a.users],
            }
            for a in store.get_all_aggregates()
        ],
        "feed_items": [
            {"id": i.id, "ref_type": i.ref_type, "created_at": i.created_at.isoformat()}
            for i in store.get_all_feed_items()
        ],
    }


async def main() -> None:
    parser = argparse.ArgumentParser(description="Dump the store after fetching Gatz feed pages.")
    parser.add_argument("--active", action="store_true", help="Fetch active discussions")
    parser.add_argument("--group", help="Only fetch the feed of this group")
    parser.add_argument("--pages", type=int, default=1, help="Number of pages to fetch")
    parser.add_argument("--search", help="Run a search for TERM instead")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = GatzConfig.from_env()
    headers: dict[str, str] = {}
    token = os.environ.get("GATZ_TOKEN")
    if token:
        headers["authorization"] = f"Bearer {token}"

    store = FrontendStore()
    async with HttpGateway(config, headers=headers) as gateway:
        client = FeedClient(store, gateway, config=config)
        if args.search:
            await client.search(FeedQuery(feed_type=FeedType.SEARCH, term=args.search))
        else:
            feed_type = FeedType.ACTIVE_DISCUSSIONS if args.active else FeedType.ALL_POSTS
            query = FeedQuery(feed_type=feed_type, group_id=args.group)
            await client.refresh(query)
            for _ in range(args.pages - 1):
                await client.load_more(query)

    snapshot = _snapshot(store)
    if args.json_mode:
        print(json.dumps(redact_for_log(snapshot), indent=2))
        return

    print(_section("pygatz dump_feed"))
    for key, entries in snapshot.items():
        print(_section(f"{key.upper()} ({len(entries)})"))
        for entry in entries:
            print(f"  {redact_for_log(entry)}")


if __name__ == "__main__":
    asyncio.run(main())
