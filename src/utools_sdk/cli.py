"""``xcatch`` command line front end for the SDK."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Optional, Sequence

from .client import UToolsClient
from .config import load_config
from .errors import ConfigError, UToolsError, truncate

logger = logging.getLogger("utools_sdk.cli")

SUMMARY_PATHS = (
    (),
    ("data", "user", "result", "legacy"),
    ("data", "user", "legacy"),
    ("user", "result", "legacy"),
    ("result", "legacy"),
    ("legacy",),
    ("data",),
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xcatch",
        description="X.com content scraper powered by the uTools API.",
        epilog=(
            "Configuration is read from config.ini ([xcatch] section: api_key, auth_token, ct0, "
            "base_url, timeout_sec, max_retries, rate_limit); XCATCH_* environment variables override it."
        ),
    )
    parser.add_argument("--config", default=None, help="path to the INI file (default: config.ini)")
    sub = parser.add_subparsers(dest="command", required=True)

    user = sub.add_parser("user", help="get user profile by screen name")
    user.add_argument("screen_name")

    tweets = sub.add_parser("tweets", help="get user tweets")
    tweets.add_argument("user_id")
    tweets.add_argument("max_pages", nargs="?", type=_positive_int, default=1)

    tweet = sub.add_parser("tweet", help="get tweet detail with replies")
    tweet.add_argument("tweet_id")

    search = sub.add_parser("search", help="search tweets")
    search.add_argument("query")
    search.add_argument("search_type", nargs="?", default="Latest", help="Latest|Top|People|Photos|Videos")

    for name, help_text in (
        ("followers", "get user followers (first page)"),
        ("followings", "get user followings (first page)"),
        ("likes", "get user liked tweets (first page)"),
    ):
        command = sub.add_parser(name, help=help_text)
        command.add_argument("user_id")

    sub.add_parser("trending", help="get current trending topics")
    return parser


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value <= 0:
        raise argparse.ArgumentTypeError(f"invalid max_pages: {raw!r} (must be a positive integer)")
    return value


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def find_field(data: Any, field: str) -> str:
    for path in SUMMARY_PATHS:
        node = data
        for key in path:
            node = node.get(key) if isinstance(node, dict) else None
        if isinstance(node, dict) and field in node and node[field] is not None:
            return str(node[field])
    return ""


async def _run(client: UToolsClient, args: argparse.Namespace) -> None:
    command = args.command
    if command == "user":
        logger.info("Fetching user profile for @%s ...", args.screen_name)
        data = await client.call("user_by_screen_name_v2", screen_name=args.screen_name)
        print_json(data)
        print("\n--- Summary ---")
        print(f"Name:       {find_field(data, 'name')}")
        print(f"Handle:     @{args.screen_name}")
        print(f"Bio:        {find_field(data, 'description')}")
        print(f"Followers:  {find_field(data, 'followers_count')}")
        print(f"Following:  {find_field(data, 'friends_count')}")
        print(f"Tweets:     {find_field(data, 'statuses_count')}")
    elif command == "tweets":
        logger.info("Fetching tweets for user %s (max %d pages) ...", args.user_id, args.max_pages)
        iterator = client.paginate_endpoint("user_tweets", max_pages=args.max_pages, user_id=args.user_id)
        async for page in iterator:
            print(f"\n=== Page {iterator.pages_fetched} ===")
            print_json(page.data)
            if page.next_cursor:
                print(f"\n[Next cursor: {truncate(page.next_cursor, 50)}]")
        print(f"\nTotal pages fetched: {iterator.pages_fetched}")
    elif command == "tweet":
        logger.info("Fetching tweet detail for %s ...", args.tweet_id)
        print_json(await client.call("tweet_detail", tweet_id=args.tweet_id))
    elif command == "search":
        logger.info("Searching for '%s' (type: %s) ...", args.query, args.search_type)
        print_json(await client.call("search", query=args.query, search_type=args.search_type))
    elif command in ("followers", "followings"):
        logger.info("Fetching %s for user %s ...", command, args.user_id)
        print_json(await client.call(command, user_id=args.user_id))
    elif command == "likes":
        logger.info("Fetching likes for user %s ...", args.user_id)
        print_json(await client.call("user_likes", user_id=args.user_id))
    elif command == "trending":
        logger.info("Fetching trending topics ...")
        print_json(await client.call("trending"))


async def _main_async(args: argparse.Namespace) -> None:
    async with UToolsClient(load_config(args.config)) as client:
        await _run(client, args)


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        args = build_parser().parse_args(argv)
    except SystemExit as exc:
        # usage errors exit 1 like every other failure; --help still exits 0
        return 1 if exc.code else 0
    try:
        asyncio.run(_main_async(args))
    except ConfigError as exc:
        logger.error("config error: %s", exc)
        return 1
    except UToolsError as exc:
        logger.error("error: %s", exc)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
