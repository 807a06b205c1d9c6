"""
Podcast Feed Append Step

Appends new items to a podcast RSS feed stored as an XML file in
S3-compatible object storage, creating the feed when it does not exist yet.
"""

__version__ = "0.1.0"

from podcast_feed.config import Config
from podcast_feed.step.runner import FeedAppendStep, run_step

__all__ = ["Config", "FeedAppendStep", "run_step", "__version__"]
