"""
Pydantic data models for feed metadata, items and step state.

A FeedState is created once per step run, carries the channel metadata,
the items already present in the stored feed and the items being added,
and is discarded after the rendered XML has been uploaded.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Enclosure(BaseModel):
    """
    Media attachment of a feed item.

    Maps to the RSS ``<enclosure url length type>`` element.
    """
    url: str
    length: int = Field(default=0, ge=0)
    type: str = "audio/mpeg"


class FeedItem(BaseModel):
    """
    A single RSS item, either new or carried over from the stored feed.
    """
    title: str = ""
    description: str = ""
    link: Optional[str] = None
    pub_date: datetime = Field(default_factory=utc_now)
    enclosure: Optional[Enclosure] = None

    @field_validator("pub_date")
    @classmethod
    def validate_pub_date(cls, v: datetime) -> datetime:
        """Naive dates are taken as UTC."""
        return _ensure_aware(v)

    @property
    def guid(self) -> Optional[str]:
        """Items are identified by their link, falling back to the enclosure URL."""
        if self.link:
            return self.link
        if self.enclosure is not None:
            return self.enclosure.url
        return None


class FeedMetadata(BaseModel):
    """
    Channel-level metadata of a podcast feed.
    """
    title: str
    description: str
    site_url: str
    feed_url: Optional[str] = None
    pub_date: datetime = Field(default_factory=utc_now)
    language: str = "en"
    image_url: Optional[str] = None
    author: str = ""
    itunes_summary: str = ""
    itunes_subtitle: str = ""
    itunes_explicit: bool = False
    itunes_duration: int = 0
    itunes_image: Optional[str] = None

    @field_validator("pub_date")
    @classmethod
    def validate_pub_date(cls, v: datetime) -> datetime:
        """Naive dates are taken as UTC."""
        return _ensure_aware(v)


class FeedState(BaseModel):
    """
    State carried through one feed update.

    ``feed_url`` is set when the public URL of the feed file is already
    known (read path); the create path resolves it after uploading.
    """
    metadata: FeedMetadata
    existing_items: List[FeedItem] = Field(default_factory=list)
    new_items: List[FeedItem] = Field(default_factory=list)
    feed_url: Optional[str] = None

    @property
    def items(self) -> List[FeedItem]:
        """Items in output order: new items first, then stored items."""
        return [*self.new_items, *self.existing_items]


class StepResult(BaseModel):
    """Output of a successful step run."""
    url: str
    item_count: int = 0
    created: bool = False
