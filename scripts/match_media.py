#!/usr/bin/env python3
"""
Match Media Files

Submits media files in the given order, waits for analysis and
matching to finish, and prints each item's state and ranked matches.

Usage:
    cd /path/to/media_match
    source .venv/bin/activate
    python scripts/match_media.py clips/a.mp4 clips/b.mp4

Options:
    --config      Path to media_match.yaml
    --threshold   Override the acceptance threshold (0-100)
    --sequential  Wait for each item before submitting the next
    --verbose     Enable debug logging
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from media_match.config import load_config
from media_match.engine.match_engine import MediaMatchSystem
from media_match.models.media_item import ItemState
from media_match.storage.media_store import MediaStore


async def match_files(paths, config_path=None, threshold=None, sequential=False):
    config = load_config(Path(config_path) if config_path else None)
    if threshold is not None:
        config.matching.acceptance_threshold = threshold

    system = MediaMatchSystem(config)
    try:
        item_ids = []
        for path in paths:
            payload = await MediaStore.load_file(path)
            item_ids.append(await system.submit(payload))
            if sequential:
                await system.wait_until_idle()

        await system.wait_until_idle()

        print("=" * 60)
        for item_id in item_ids:
            item = system.get(item_id)
            print(f"{item.display_name} [{item.state}]")
            if item.state == ItemState.FAILED:
                print(f"  error: {item.error}")
                continue
            if not item.matches:
                print("  no matches")
            for match in item.matches:
                target = system.resolve_target(match)
                name = target.display_name if target else str(match.target_id)
                print(f"  {match.similarity:3d}%  {match.kind:<12}  {name}")
                print(f"        {match.reason}")
        print("=" * 60)
    finally:
        await system.close()


def main():
    parser = argparse.ArgumentParser(description="Cross-match faces and voices across media files")
    parser.add_argument("files", nargs="+", help="Media files, submitted in this order")
    parser.add_argument("--config", help="Path to media_match.yaml")
    parser.add_argument("--threshold", type=int, help="Acceptance threshold (0-100)")
    parser.add_argument("--sequential", action="store_true", help="Process one file at a time")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    missing = [f for f in args.files if not Path(f).is_file()]
    if missing:
        parser.error(f"File not found: {', '.join(missing)}")

    asyncio.run(match_files(args.files, args.config, args.threshold, args.sequential))


if __name__ == "__main__":
    main()
