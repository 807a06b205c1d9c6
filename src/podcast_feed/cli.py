"""
Command-line interface for the podcast feed append step.

Usage:
    podcast-feed append --file feeds/playlist.xml \\
        --feed-title "My Playlist" \\
        --item-link https://cdn.example.com/ep1.mp3 \\
        --item-title "Episode 1" --item-length 52428800 --item-type audio/mpeg
    podcast-feed append --params step.yaml          # parameters from YAML
    podcast-feed append --params step.yaml --output-json
    podcast-feed append ... --debug                 # verbose logging
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

import yaml
from botocore.exceptions import BotoCoreError, ClientError

from podcast_feed.config import get_config, load_feed_yaml
from podcast_feed.errors import FeedParseError, StepParameterError
from podcast_feed.step.params import PARAMETER_NAMES, StepParameters

logger = logging.getLogger("podcast_feed")


def _load_params_file(path: Path) -> Dict[str, Any]:
    """
    Load step parameters from a YAML file.

    The file may hold the parameters at top level or under a ``params`` key.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise StepParameterError(f"Parameter file {path} must contain a mapping")
    return data.get("params", data)


def _collect_params(args) -> StepParameters:
    """Merge feed.yaml params, the --params file and command-line flags (last wins)."""
    try:
        merged: Dict[str, Any] = dict(load_feed_yaml().get("params") or {})
        if args.params:
            merged.update(_load_params_file(Path(args.params)))
    except (OSError, yaml.YAMLError) as exc:
        raise StepParameterError(f"Could not load step parameters: {exc}") from exc

    for name in PARAMETER_NAMES:
        value = getattr(args, name, None)
        if value:
            merged[name] = value

    return StepParameters.from_mapping(merged)


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not debug:
        # boto3/botocore are chatty at INFO
        logging.getLogger("botocore").setLevel(logging.WARNING)
        logging.getLogger("boto3").setLevel(logging.WARNING)


def cmd_append(args):
    """Append items to a feed and print its URL."""
    try:
        config = get_config()
    except (ValueError, OSError, yaml.YAMLError) as exc:
        _configure_logging(args.debug)
        logger.error("Invalid configuration: %s", exc)
        sys.exit(1)
    _configure_logging(args.debug or config.debug)

    from podcast_feed.step.runner import run_step

    try:
        params = _collect_params(args)
        result = run_step(params, config=config)
    except (StepParameterError, FeedParseError, ValueError) as exc:
        logger.error("Feed update failed: %s", exc)
        if args.output_json:
            print(json.dumps({"error": str(exc)}))
        sys.exit(1)
    except (ClientError, BotoCoreError) as exc:
        logger.error("Storage error: %s", exc)
        if args.output_json:
            print(json.dumps({"error": str(exc)}))
        sys.exit(1)

    # JSON output mode (for automation)
    if args.output_json:
        print(result.model_dump_json())
    else:
        print(result.url)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="podcast-feed",
        description="Append items to a podcast RSS feed in object storage",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    sub_append = subparsers.add_parser(
        "append",
        help="Append items to a feed, creating it if needed",
    )
    sub_append.add_argument("--file", action="append", help="Object key of the feed XML file")
    sub_append.add_argument("--feed-title", dest="feed_title", action="append", help="Feed title")
    sub_append.add_argument(
        "--feed-description",
        dest="feed_description",
        action="append",
        help="Feed description",
    )
    sub_append.add_argument("--site-url", dest="site_url", action="append", help="Channel link")
    sub_append.add_argument(
        "--item-link",
        dest="item_link",
        action="append",
        help="Media URL of a new item (repeat for several items)",
    )
    sub_append.add_argument("--item-title", dest="item_title", action="append", help="Item title")
    sub_append.add_argument(
        "--item-content",
        dest="item_content",
        action="append",
        help="Item description",
    )
    sub_append.add_argument(
        "--item-length",
        dest="item_length",
        action="append",
        help="Enclosure size in bytes",
    )
    sub_append.add_argument(
        "--item-type",
        dest="item_type",
        action="append",
        help="Enclosure MIME type (one for all items, or one per item)",
    )
    sub_append.add_argument(
        "--params",
        default=None,
        help="YAML file with step parameters",
    )
    sub_append.add_argument(
        "--output-json",
        action="store_true",
        default=False,
        help="Output result as JSON (for automation)",
    )
    sub_append.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )
    sub_append.set_defaults(func=cmd_append)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    args.func(args)


if __name__ == "__main__":
    main()
