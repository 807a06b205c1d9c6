"""
Feed file access on S3-compatible object storage.

Wraps a boto3 S3 client bound to one bucket: reading the stored feed,
resolving its public URL and writing the rendered feed through a
ChunkedUploader.
"""

import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from podcast_feed.config import Config
from podcast_feed.errors import FeedNotFoundError
from podcast_feed.storage.chunked_upload import ChunkedUploader

logger = logging.getLogger(__name__)

FEED_CONTENT_TYPE = "application/rss+xml"

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


def create_client(config: Config) -> Any:
    """
    Create a boto3 S3 client from configuration.

    Explicit credentials are used when configured, otherwise boto3's
    default credential chain applies.
    """
    return boto3.client("s3", **config.storage_client_kwargs())


class FeedStorage:
    """
    Read and write feed XML files in a single bucket.

    Attributes:
        config: Application configuration
        client: boto3 S3 client
        bucket: Bucket name from configuration
    """

    def __init__(self, config: Config, client: Optional[Any] = None) -> None:
        if not config.bucket:
            raise ValueError(
                "No bucket configured. Set PODCAST_FEED_BUCKET or add bucket to feed.yaml."
            )
        self.config = config
        self.bucket = config.bucket
        self.client = client if client is not None else create_client(config)

    def read_feed(self, key: str) -> bytes:
        """
        Fetch the stored feed file.

        Args:
            key: Object key of the feed file

        Returns:
            Raw XML bytes

        Raises:
            FeedNotFoundError: If the object does not exist
            botocore.exceptions.ClientError: For any other storage error
        """
        logger.debug("Reading s3://%s/%s", self.bucket, key)
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                raise FeedNotFoundError(key) from exc
            raise

        body = response["Body"]
        try:
            data = body.read()
        finally:
            body.close()
        logger.debug("Read %d bytes from %s", len(data), key)
        return data

    def public_url(self, key: str) -> str:
        """
        Public URL of the feed file.

        Uses ``public_base_url`` when configured, otherwise a presigned
        GET URL valid for ``url_expiry_seconds``.
        """
        if self.config.public_base_url:
            return f"{self.config.public_base_url.rstrip('/')}/{key.lstrip('/')}"
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=self.config.url_expiry_seconds,
        )

    def open_upload(self, key: str) -> ChunkedUploader:
        """Open a chunked upload of a feed file."""
        return ChunkedUploader(
            self.client,
            self.bucket,
            key,
            part_size=self.config.part_size,
            content_type=FEED_CONTENT_TYPE,
        )

    def write_feed(self, key: str, data: bytes) -> int:
        """
        Upload a feed file through a chunked upload.

        The data is streamed in ``write_chunk_size`` slices; segments are
        sent whenever ``part_size`` bytes have accumulated.

        Args:
            key: Object key of the feed file
            data: Rendered XML

        Returns:
            Number of bytes uploaded
        """
        step = self.config.write_chunk_size
        view = memoryview(data)
        with self.open_upload(key) as uploader:
            for offset in range(0, len(view), step):
                uploader.write(view[offset:offset + step])
        return uploader.bytes_uploaded
