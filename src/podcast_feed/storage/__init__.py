"""
Object storage access: feed file reads, public URLs and chunked uploads.
"""

from podcast_feed.storage.chunked_upload import ChunkedUploader, UploadCursor
from podcast_feed.storage.s3 import FeedStorage, create_client

__all__ = ["ChunkedUploader", "UploadCursor", "FeedStorage", "create_client"]
