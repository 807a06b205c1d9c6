"""
Feed handling: parsing stored feeds and rendering updated ones.
"""

from podcast_feed.feed.builder import add_items, build_feed, create_feed_state, render_feed
from podcast_feed.feed.reader import entry_to_item, read_feed

__all__ = [
    "add_items",
    "build_feed",
    "create_feed_state",
    "render_feed",
    "entry_to_item",
    "read_feed",
]
