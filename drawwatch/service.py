from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from .cache import CacheStore
from .config import WatchSettings, load_config
from .controller import RefreshController
from .renderer import PlaywrightPageRenderer
from .types import DrawRecord, RefreshOutcome


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )


def build_controller(settings: WatchSettings) -> RefreshController:
    renderer = PlaywrightPageRenderer(settings.render)
    store = CacheStore(settings.cache_file)
    return RefreshController(settings, renderer, store)


def describe_record(record: DrawRecord) -> str:
    winners = "No Winner" if record.jackpot_winners.strip().lower() == "none" else record.jackpot_winners
    lines = [
        f"Draw date:      {record.draw_date_display}",
        f"Numbers:        {' '.join(f'{n:02d}' for n in record.numbers)}  PB {record.special_number:02d}",
        f"Power Play:     {record.multiplier}x",
        f"Jackpot:        {record.jackpot_amount}",
        f"Cash value:     {record.cash_value}",
        f"Jackpot winner: {winners}",
        f"Next drawing:   {record.next_draw_date_display} ({record.next_draw_jackpot})",
    ]
    return "\n".join(lines)


def emit(outcome: RefreshOutcome, as_json: bool) -> None:
    if outcome.record is None:
        return
    if as_json:
        print(json.dumps(outcome.record.to_dict(), indent=2))
    else:
        print(describe_record(outcome.record))


async def run(args: argparse.Namespace) -> int:
    settings = load_config(args.env_file)
    configure_logging(args.verbose)
    logger = logging.getLogger("drawwatch")

    controller = build_controller(settings)
    if args.watch:
        await controller.run_forever()
        return 0

    if args.force:
        outcome = await controller.force_refresh()
    else:
        outcome = await controller.check_cache_and_refresh()

    if outcome.error is not None:
        logger.error("%s", outcome.error)
        print(outcome.error.args[0], file=sys.stderr)
        return 1
    emit(outcome, args.json)
    return 0


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Latest Powerball drawing, cached")
    parser.add_argument("--env-file", type=str, default=None, help="Path to .env file with settings")
    parser.add_argument("--force", action="store_true", help="Fetch even if the cache is current.")
    parser.add_argument("--watch", action="store_true", help="Keep refreshing on the poll interval.")
    parser.add_argument("--json", action="store_true", help="Print the record as JSON.")
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging (default INFO)."
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    try:
        exit_code = asyncio.run(run(args))
    except KeyboardInterrupt:
        print("Stopped by user.")
        return
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
