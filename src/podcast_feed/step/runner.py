"""
Feed append step: read or create the feed, add items, upload, report the URL.

Control flow:

1. **Read path** -- fetch the stored feed and resolve its public URL. If
   either fails before the feed has been read (missing object, storage
   error), the step falls back to the create path.
2. **Create path** -- start an empty feed from the step's feed_title,
   feed_description and site_url parameters.
3. **Add** -- build the new items from the item parameters and put them
   ahead of the stored items.
4. **Write** -- render the RSS XML and upload it through a chunked upload.
5. **Done** -- return the feed's public URL.

Once the stored feed has been read, any later failure (parse, render,
upload) is terminal and propagates to the caller.

Example:
    >>> from podcast_feed.step.runner import run_step
    >>> result = run_step({
    ...     "file": "feeds/playlist.xml",
    ...     "feed_title": "My Playlist",
    ...     "item_link": ["https://cdn.example.com/ep1.mp3"],
    ...     "item_title": ["Episode 1"],
    ...     "item_length": ["52428800"],
    ...     "item_type": ["audio/mpeg"],
    ... })
    >>> print(result.url)
"""

import logging
from typing import Any, Mapping, Optional, Union

from botocore.exceptions import BotoCoreError, ClientError

from podcast_feed.config import Config, get_config
from podcast_feed.errors import FeedNotFoundError
from podcast_feed.feed.builder import add_items, create_feed_state, render_feed
from podcast_feed.feed.reader import read_feed
from podcast_feed.models.entities import FeedState, StepResult
from podcast_feed.step.params import StepParameters, build_new_items
from podcast_feed.storage.s3 import FeedStorage

logger = logging.getLogger(__name__)

# Failures that send the step down the create path when they happen before
# the stored feed was read.
READ_FALLBACK_ERRORS = (FeedNotFoundError, ClientError, BotoCoreError)


class FeedAppendStep:
    """
    One feed update.

    Attributes:
        params: Step parameters
        config: Application configuration
        storage: Feed storage for the configured bucket
        is_read: True once the stored feed was fetched
        state: Feed state of the current run
    """

    def __init__(
        self,
        params: StepParameters,
        config: Optional[Config] = None,
        storage: Optional[FeedStorage] = None,
    ) -> None:
        self.params = params
        self.key = params.file_key
        self.config = config or get_config()
        self.storage = storage or FeedStorage(self.config)
        self.is_read = False
        self.state: Optional[FeedState] = None

    def run(self) -> StepResult:
        """
        Run the step.

        Returns:
            StepResult with the feed's public URL

        Raises:
            FeedParseError: If the stored feed cannot be parsed
            StepParameterError: If item parameters are malformed
            botocore.exceptions.ClientError: If the upload fails
        """
        # Validate item parameters before touching storage.
        new_items = build_new_items(self.params, default_type=self.config.default_item_type)

        created = False
        try:
            state = self.read()
        except READ_FALLBACK_ERRORS as exc:
            if self.is_read:
                raise
            logger.warning("Could not read feed %s (%s); creating a new one", self.key, exc)
            state = self.create()
            created = True

        self.state = add_items(state, new_items)
        self.write(self.state)
        return self.done(created)

    def read(self) -> FeedState:
        """Fetch and parse the stored feed."""
        data = self.storage.read_feed(self.key)
        url = self.storage.public_url(self.key)
        self.is_read = True

        return read_feed(
            data,
            self.config,
            feed_title=self.params.title,
            feed_description=self.params.description,
            feed_url=url,
        )

    def create(self) -> FeedState:
        """Start a new feed from the step parameters."""
        return create_feed_state(
            self.config,
            title=self.params.title,
            description=self.params.description,
            site_url=self.params.site,
        )

    def write(self, state: FeedState) -> int:
        """Render and upload the feed."""
        xml = render_feed(state, default_type=self.config.default_item_type)
        written = self.storage.write_feed(self.key, xml)
        logger.info("Wrote %d bytes to %s", written, self.key)
        return written

    def done(self, created: bool = False) -> StepResult:
        """Resolve the feed URL and build the step result."""
        url = self.state.feed_url if self.state else None
        if not url:
            url = self.storage.public_url(self.key)

        item_count = len(self.state.items) if self.state else 0
        logger.info("Feed %s updated (%d item(s)): %s", self.key, item_count, url)
        return StepResult(url=url, item_count=item_count, created=created)


def run_step(
    params: Union[StepParameters, Mapping[str, Any]],
    config: Optional[Config] = None,
    storage: Optional[FeedStorage] = None,
) -> StepResult:
    """
    Run a feed append step.

    Args:
        params: StepParameters or a mapping of parameter names to values
        config: Application configuration (optional, uses default if None)
        storage: Feed storage (optional, built from config if None)

    Returns:
        StepResult with the feed's public URL
    """
    if not isinstance(params, StepParameters):
        params = StepParameters.from_mapping(params)
    return FeedAppendStep(params, config=config, storage=storage).run()
