"""
Parsing of a stored feed file into a FeedState.

Uses feedparser to read the channel metadata and every existing item.
Channel fields the step controls (site URL, artwork, author, iTunes
fields) are taken from configuration rather than from the stored file.
"""

import io
import logging
import re
from datetime import datetime
from typing import Any, Optional

import feedparser
from dateutil import parser as date_parser

from podcast_feed.config import Config
from podcast_feed.errors import FeedParseError
from podcast_feed.models.entities import (
    Enclosure,
    FeedItem,
    FeedMetadata,
    FeedState,
    utc_now,
)

logger = logging.getLogger(__name__)

_UNTITLED = re.compile(r"^untitled", re.IGNORECASE)


def parse_date(raw: Optional[str]) -> Optional[datetime]:
    """
    Parse an RSS/Atom date string.

    Args:
        raw: Date string such as "Mon, 01 Jan 2024 12:00:00 GMT"

    Returns:
        Parsed datetime, or None if missing or unparseable
    """
    if not raw:
        return None
    try:
        return date_parser.parse(raw)
    except (ValueError, OverflowError) as exc:
        logger.warning("Failed to parse date '%s': %s", raw, exc)
        return None


def _usable(value: Optional[str]) -> bool:
    """Stored titles that are empty or start with 'untitled' are replaced."""
    return bool(value) and not _UNTITLED.match(value)


def _entry_enclosure(entry: Any) -> Optional[Enclosure]:
    enclosures = entry.get("enclosures") or []
    if not enclosures:
        return None

    first = enclosures[0]
    url = first.get("href") or first.get("url")
    if not url:
        return None

    length = 0
    raw_length = first.get("length")
    if raw_length:
        try:
            length = max(int(raw_length), 0)
        except (ValueError, TypeError):
            logger.warning("Ignoring invalid enclosure length '%s' for %s", raw_length, url)

    return Enclosure(url=url, length=length, type=first.get("type") or "")


def entry_to_item(entry: Any) -> FeedItem:
    """
    Convert a feedparser entry into a FeedItem.

    Args:
        entry: feedparser entry object

    Returns:
        FeedItem carrying title, description, link, date and first enclosure
    """
    raw_date = entry.get("published") or entry.get("updated")
    return FeedItem(
        title=entry.get("title") or "",
        description=entry.get("summary") or entry.get("description") or "",
        link=entry.get("link") or None,
        pub_date=parse_date(raw_date) or utc_now(),
        enclosure=_entry_enclosure(entry),
    )


def read_feed(
    data: bytes,
    config: Config,
    feed_title: str = "",
    feed_description: str = "",
    feed_url: Optional[str] = None,
) -> FeedState:
    """
    Parse stored feed XML into a FeedState.

    The stored title and description are kept unless missing or
    "untitled", in which case the step's feed_title and feed_description
    inputs are used.

    Args:
        data: Raw feed XML
        config: Application configuration (channel defaults)
        feed_title: Replacement for a missing/untitled stored title
        feed_description: Replacement for a missing/untitled stored description
        feed_url: Public URL of the feed file

    Returns:
        FeedState with metadata and the stored items, in stored order

    Raises:
        FeedParseError: If the data is not a recognizable feed document
    """
    # A file object keeps feedparser from treating the payload as a path or URL
    parsed = feedparser.parse(io.BytesIO(data))
    channel = parsed.get("feed") or {}

    # A recognized RSS/Atom document is readable even with an empty channel
    if not parsed.get("version") and not channel and not parsed.entries:
        raise FeedParseError(f"Failed to parse feed: {parsed.get('bozo_exception')}")
    if parsed.get("bozo"):
        logger.warning("Feed parsed with errors: %s", parsed.get("bozo_exception"))

    stored_title = channel.get("title")
    stored_description = channel.get("subtitle") or channel.get("description")
    stored_date = channel.get("published") or channel.get("updated")

    metadata = FeedMetadata(
        title=stored_title if _usable(stored_title) else feed_title,
        description=stored_description if _usable(stored_description) else feed_description,
        site_url=config.site_url,
        feed_url=feed_url,
        pub_date=parse_date(stored_date) or utc_now(),
        language=config.language,
        image_url=config.image_url,
        author=config.author,
        itunes_summary=config.itunes_summary,
        itunes_subtitle=config.itunes_subtitle,
        itunes_explicit=config.itunes_explicit,
        itunes_duration=config.itunes_duration,
        itunes_image=config.image_url,
    )

    items = [entry_to_item(entry) for entry in parsed.entries]
    logger.info("Read feed '%s' with %d item(s)", metadata.title, len(items))

    return FeedState(metadata=metadata, existing_items=items, feed_url=feed_url)
