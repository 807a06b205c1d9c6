"""
Shared test fixtures.

Provides pytest fixtures for common test resources including:
- Test configuration bound to a fake bucket
- A mocked boto3 S3 client
- Sample stored feed XML
"""

import io
from pathlib import Path
import tempfile
from unittest.mock import MagicMock

import pytest

from podcast_feed.config import Config
from podcast_feed.storage.s3 import FeedStorage


SAMPLE_FEED_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd">
  <channel>
    <title>Morning Playlist</title>
    <link>https://example.com</link>
    <description>Tracks collected every morning</description>
    <pubDate>Mon, 01 Jan 2024 12:00:00 GMT</pubDate>
    <item>
      <title>Old Episode 2</title>
      <description>Second stored item</description>
      <link>https://cdn.example.com/old2.mp3</link>
      <pubDate>Tue, 02 Jan 2024 08:00:00 GMT</pubDate>
      <enclosure url="https://cdn.example.com/old2.mp3" length="2048" type="audio/mpeg"/>
    </item>
    <item>
      <title>Old Episode 1</title>
      <description>First stored item</description>
      <link>https://cdn.example.com/old1.mp3</link>
      <pubDate>Mon, 01 Jan 2024 08:00:00 GMT</pubDate>
      <enclosure url="https://cdn.example.com/old1.mp3" length="1024" type="audio/mpeg"/>
    </item>
  </channel>
</rss>
"""


@pytest.fixture
def temp_dir():
    """
    Create temporary directory for test files.

    Yields:
        Path: Temporary directory path
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config() -> Config:
    """
    Create test configuration bound to a fake bucket.

    Returns:
        Config: Test configuration with presigned URLs
    """
    return Config(
        bucket="test-bucket",
        region="us-east-1",
        public_base_url=None,
        debug=False,
    )


@pytest.fixture
def s3_client() -> MagicMock:
    """
    Mocked boto3 S3 client.

    Multipart calls return deterministic upload ids and ETags; get_object
    returns the sample feed.
    """
    client = MagicMock()
    client.get_object.side_effect = lambda **kwargs: {"Body": io.BytesIO(SAMPLE_FEED_XML)}
    client.generate_presigned_url.return_value = (
        "https://test-bucket.s3.amazonaws.com/feeds/playlist.xml?X-Amz-Signature=abc"
    )
    client.create_multipart_upload.return_value = {"UploadId": "upload-1"}
    client.upload_part.side_effect = lambda **kwargs: {"ETag": f'"etag-{kwargs["PartNumber"]}"'}
    return client


@pytest.fixture
def storage(test_config: Config, s3_client: MagicMock) -> FeedStorage:
    """FeedStorage over the mocked client."""
    return FeedStorage(test_config, client=s3_client)


def _uploaded_body(client: MagicMock) -> bytes:
    """Concatenate every part (or the single put) sent to the mocked client."""
    parts = [c.kwargs["Body"] for c in client.upload_part.call_args_list]
    if not parts and client.put_object.called:
        parts = [client.put_object.call_args.kwargs["Body"]]
    return b"".join(bytes(p) for p in parts)


@pytest.fixture
def uploaded_body():
    """Helper returning the bytes uploaded through a mocked client."""
    return _uploaded_body
