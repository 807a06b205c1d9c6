"""
Step input parameters.

Workflow inputs are multi-valued: every parameter arrives as a list of
strings. Feed-level parameters use their first value; item parameters
are indexed in parallel with ``item_link``.

Example:
    >>> params = StepParameters.from_mapping({
    ...     "file": "feeds/playlist.xml",
    ...     "item_link": ["https://cdn.example.com/ep1.mp3"],
    ...     "item_title": ["Episode 1"],
    ...     "item_length": ["52428800"],
    ...     "item_type": "audio/mpeg",
    ... })
    >>> items = build_new_items(params, default_type="audio/mpeg")
"""

import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from podcast_feed.errors import StepParameterError
from podcast_feed.models.entities import Enclosure, FeedItem, utc_now

logger = logging.getLogger(__name__)


PARAMETER_NAMES = (
    "file",
    "feed_title",
    "feed_description",
    "site_url",
    "item_link",
    "item_title",
    "item_content",
    "item_length",
    "item_type",
)


def _as_list(value: Any) -> List[str]:
    """Normalize a scalar, None or sequence input into a list of strings."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return ["" if v is None else str(v) for v in value]
    return [str(value)]


def _first(values: List[str]) -> Optional[str]:
    return values[0] if values else None


def _at(values: List[str], idx: int) -> Optional[str]:
    return values[idx] if idx < len(values) else None


class StepParameters(BaseModel):
    """
    Parameters of one feed append step.

    Attributes:
        file: Object key of the feed XML file
        feed_title: Title for a new feed or replacement for an untitled one
        feed_description: Description, same rules as feed_title
        site_url: Channel link
        item_link: One new item per link
        item_title: Item titles, indexed with item_link
        item_content: Item descriptions, indexed with item_link
        item_length: Enclosure sizes in bytes, indexed with item_link
        item_type: One MIME type for every item, or one per item
    """
    file: List[str] = Field(default_factory=list)
    feed_title: List[str] = Field(default_factory=list)
    feed_description: List[str] = Field(default_factory=list)
    site_url: List[str] = Field(default_factory=list)
    item_link: List[str] = Field(default_factory=list)
    item_title: List[str] = Field(default_factory=list)
    item_content: List[str] = Field(default_factory=list)
    item_length: List[str] = Field(default_factory=list)
    item_type: List[str] = Field(default_factory=list)

    @field_validator("*", mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> List[str]:
        """Accept scalars as single-valued inputs."""
        return _as_list(v)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StepParameters":
        """
        Build parameters from a mapping, ignoring unknown keys.

        Args:
            data: Mapping of parameter name to a value or list of values

        Returns:
            StepParameters instance
        """
        return cls(**{k: data[k] for k in PARAMETER_NAMES if k in data})

    @property
    def file_key(self) -> str:
        """Object key of the feed file; required."""
        key = (_first(self.file) or "").strip()
        if not key:
            raise StepParameterError("Missing required parameter 'file'")
        return key

    @property
    def title(self) -> str:
        return _first(self.feed_title) or ""

    @property
    def description(self) -> str:
        return _first(self.feed_description) or ""

    @property
    def site(self) -> Optional[str]:
        return _first(self.site_url) or None

    def item_type_at(self, idx: int, default: str) -> str:
        """
        MIME type for the item at ``idx``.

        A single type applies to every item; several types are indexed.
        """
        if len(self.item_type) == 1:
            return self.item_type[0] or default
        return _at(self.item_type, idx) or default


def _parse_length(raw: Optional[str], idx: int) -> int:
    if raw is None or not raw.strip():
        return 0
    try:
        length = int(raw.strip())
    except ValueError:
        raise StepParameterError(
            f"item_length[{idx}] is not an integer: {raw!r}"
        ) from None
    if length < 0:
        raise StepParameterError(f"item_length[{idx}] is negative: {length}")
    return length


def build_new_items(
    params: StepParameters,
    default_type: str = "audio/mpeg",
    now: Optional[datetime] = None,
) -> List[FeedItem]:
    """
    Build the new feed items described by the step parameters.

    One item is produced per ``item_link`` value. The link doubles as the
    enclosure URL. Missing titles and contents become empty strings and a
    missing length becomes 0.

    Args:
        params: Step parameters
        default_type: Enclosure type when item_type gives none
        now: Publication date for the items (defaults to current UTC time)

    Returns:
        List of FeedItem in parameter order

    Raises:
        StepParameterError: If an item length is not a non-negative integer
    """
    pub_date = now or utc_now()
    items: List[FeedItem] = []

    for idx, link in enumerate(params.item_link):
        if not link:
            logger.warning("Skipping item %d: empty item_link", idx)
            continue

        title = _at(params.item_title, idx)
        content = _at(params.item_content, idx)
        if title is None:
            logger.warning("item_title[%d] missing, using empty title", idx)

        item = FeedItem(
            title=title or "",
            description=content or "",
            link=link,
            pub_date=pub_date,
            enclosure=Enclosure(
                url=link,
                length=_parse_length(_at(params.item_length, idx), idx),
                type=params.item_type_at(idx, default_type),
            ),
        )
        logger.debug("New item: %s", item.model_dump())
        items.append(item)

    return items
