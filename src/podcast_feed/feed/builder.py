"""
Feed creation, item merging and RSS rendering.

Rendering uses feedgen with its podcast (iTunes) extension. Items are
written new-first, followed by the items already in the stored feed.
Stored items are re-emitted with the channel's default author and iTunes
fields.
"""

import logging
from typing import List, Optional

from feedgen.entry import FeedEntry
from feedgen.feed import FeedGenerator

from podcast_feed.config import Config
from podcast_feed.models.entities import FeedItem, FeedMetadata, FeedState, utc_now

logger = logging.getLogger(__name__)


def create_feed_state(
    config: Config,
    title: str,
    description: str,
    site_url: Optional[str] = None,
) -> FeedState:
    """
    Start a new, empty feed.

    Args:
        config: Application configuration (channel defaults)
        title: Feed title
        description: Feed description
        site_url: Channel link; falls back to ``config.site_url``

    Returns:
        FeedState with fresh metadata and no stored items
    """
    metadata = FeedMetadata(
        title=title,
        description=description,
        site_url=site_url or config.site_url,
        pub_date=utc_now(),
        language=config.language,
        image_url=config.image_url,
        author=config.author,
        itunes_summary=config.itunes_summary,
        itunes_subtitle=config.itunes_subtitle,
        itunes_explicit=config.itunes_explicit,
        itunes_duration=config.itunes_duration,
        itunes_image=config.image_url,
    )
    logger.info("Creating new feed '%s'", title)
    return FeedState(metadata=metadata)


def add_items(state: FeedState, new_items: List[FeedItem]) -> FeedState:
    """
    Attach new items to the state and link the feed back to its own URL.

    Args:
        state: Current feed state
        new_items: Items to add ahead of the stored ones

    Returns:
        The same state, updated in place
    """
    state.new_items.extend(new_items)
    if state.feed_url:
        state.metadata.feed_url = state.feed_url
    logger.info(
        "Adding %d new item(s) to %d existing item(s)",
        len(new_items),
        len(state.existing_items),
    )
    return state


def _explicit(flag: bool) -> str:
    return "yes" if flag else "no"


def _fill_entry(fe: FeedEntry, item: FeedItem, default_type: str) -> None:
    # feedgen refuses items without a title or description
    fe.title(item.title or item.link or "Untitled")
    if item.description:
        fe.description(item.description)
    if item.link:
        fe.link(href=item.link)
    if item.guid:
        fe.guid(item.guid, permalink=False)
    fe.pubDate(item.pub_date)
    if item.enclosure is not None:
        fe.enclosure(
            url=item.enclosure.url,
            length=str(item.enclosure.length),
            type=item.enclosure.type or default_type,
        )


def build_feed(state: FeedState, default_type: str = "audio/mpeg") -> FeedGenerator:
    """
    Build a feedgen FeedGenerator for the state.

    Args:
        state: Feed state with metadata and items
        default_type: Enclosure type for stored items that declare none

    Returns:
        Configured FeedGenerator
    """
    meta = state.metadata

    fg = FeedGenerator()
    fg.load_extension("podcast")

    description = meta.description or meta.title or "Untitled"

    fg.title(meta.title or "Untitled")
    fg.description(description)
    # The RSS <link> is taken from the last link added, so the site link goes last
    if meta.feed_url:
        fg.link(href=meta.feed_url, rel="self")
    fg.link(href=meta.site_url, rel="alternate")
    fg.language(meta.language)
    fg.pubDate(meta.pub_date)
    fg.lastBuildDate(utc_now())

    if meta.image_url:
        fg.image(url=meta.image_url, title=meta.title or "Untitled", link=meta.site_url)

    fg.podcast.itunes_author(meta.author)
    fg.podcast.itunes_summary(meta.itunes_summary)
    # feedparser reads <description> and <itunes:subtitle> into the same key
    fg.podcast.itunes_subtitle(description)
    fg.podcast.itunes_explicit(_explicit(meta.itunes_explicit))
    if meta.itunes_image:
        fg.podcast.itunes_image(meta.itunes_image)

    for item in state.new_items:
        fe = fg.add_entry(order="append")
        _fill_entry(fe, item, default_type)

    for item in state.existing_items:
        fe = fg.add_entry(order="append")
        _fill_entry(fe, item, default_type)
        fe.podcast.itunes_author(meta.author)
        fe.podcast.itunes_explicit(_explicit(meta.itunes_explicit))
        fe.podcast.itunes_duration(str(meta.itunes_duration))
        fe.podcast.itunes_subtitle(meta.itunes_subtitle)
        if meta.itunes_image:
            fe.podcast.itunes_image(meta.itunes_image)

    return fg


def render_feed(state: FeedState, default_type: str = "audio/mpeg") -> bytes:
    """
    Serialize the state as pretty-printed RSS 2.0 XML.

    Returns:
        UTF-8 encoded XML document
    """
    xml = build_feed(state, default_type).rss_str(pretty=True)
    logger.debug("Rendered feed: %d bytes, %d item(s)", len(xml), len(state.items))
    return xml
