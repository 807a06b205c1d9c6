"""
Data models for the feed append step.

Provides Pydantic models for feed channel metadata, feed items and the
transient state object that flows through a single feed update.
"""

from podcast_feed.models.entities import (
    Enclosure,
    FeedItem,
    FeedMetadata,
    FeedState,
    StepResult,
)

__all__ = [
    "Enclosure",
    "FeedItem",
    "FeedMetadata",
    "FeedState",
    "StepResult",
]
