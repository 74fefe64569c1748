import argparse
import asyncio
import json
import sys
from typing import Optional

from rich.console import Console
from rich.table import Table

from beststories.config import get_settings
from beststories.constants import (
    COUNT_OUT_OF_RANGE_MSG,
    DEFAULT_COUNT,
    MAX_COUNT,
    MIN_COUNT,
)
from beststories.logging_config import configure_logging
from beststories.main import build_aggregator
from beststories.models import FetchError, Story
from beststories.source import SourceClient

console = Console()


def render_table(stories: list[Story]) -> Table:
    table = Table(title=f"Top {len(stories)} Best Stories")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Comments", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("By", style="cyan")
    for rank, story in enumerate(stories, start=1):
        table.add_row(
            str(rank),
            str(story.score),
            "" if story.comment_count is None else str(story.comment_count),
            story.title,
            story.posted_by or "",
        )
    return table


async def main(args: argparse.Namespace) -> int:
    if args.count < MIN_COUNT or args.count > MAX_COUNT:
        console.print(f"[red]Error: {COUNT_OUT_OF_RANGE_MSG}[/]")
        return 2

    overrides = {"base_url": args.base_url, "log_level": args.log_level}
    settings = get_settings(overrides)
    configure_logging(settings.log_level)

    errors: list[FetchError] = []
    async with SourceClient(settings.base_url, timeout=settings.request_timeout) as client:
        aggregator = build_aggregator(settings, client, on_error=errors.append)
        with console.status(f"[cyan]Fetching top {args.count} stories..."):
            stories = await aggregator.top_stories(args.count)

    if args.json:
        for story in stories:
            print(json.dumps(story.to_dict()))
    else:
        console.print(render_table(stories))

    if errors:
        console.print(f"[yellow]{len(errors)} fetch(es) failed and were skipped.[/]")
    return 0


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show the best Hacker News stories by score")
    parser.add_argument(
        "count",
        type=int,
        nargs="?",
        default=DEFAULT_COUNT,
        help=f"Number of stories to show (default: {DEFAULT_COUNT})",
    )
    parser.add_argument("--json", action="store_true", help="Print one JSON object per story")
    parser.add_argument("--base-url", default=None, help="Override the upstream API base URL")
    parser.add_argument("--log-level", default=None, help="Log level (default: INFO)")
    return parser.parse_args(argv)


if __name__ == "__main__":
    sys.exit(asyncio.run(main(parse_args())))
