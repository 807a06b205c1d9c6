"""
Threshold-triggered buffer over an S3 multipart (resumable) upload.

Incoming chunks are absorbed into memory. Once the buffered size reaches
``part_size`` the buffer is sent as one upload segment and the returned
cursor token (part number and ETag) is recorded. Closing the uploader
flushes the remainder and finalizes the upload with every recorded token.

Writes block until the segment upload returns; there is no other
backpressure and no concurrency.

Example:
    >>> uploader = ChunkedUploader(client, "my-bucket", "feeds/playlist.xml")
    >>> with uploader:
    ...     for chunk in chunks:
    ...         uploader.write(chunk)
    >>> uploader.bytes_uploaded
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from podcast_feed.config import DEFAULT_PART_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadCursor:
    """Token returned by storage for one uploaded segment."""

    part_number: int
    etag: str

    def to_part(self) -> Dict[str, Any]:
        return {"PartNumber": self.part_number, "ETag": self.etag}


class ChunkedUploader:
    """
    Single-consumer chunk buffer writing one object through a multipart upload.

    The multipart session is opened lazily at the first flush, so an
    upload that never reaches the threshold costs exactly one segment.

    Attributes:
        bucket: Target bucket
        key: Target object key
        part_size: Buffered size that triggers a segment upload
        cursors: Tokens of the segments uploaded so far
        bytes_uploaded: Total bytes sent to storage
    """

    def __init__(
        self,
        client: Any,
        bucket: str,
        key: str,
        part_size: int = DEFAULT_PART_SIZE,
        content_type: Optional[str] = None,
    ) -> None:
        self.client = client
        self.bucket = bucket
        self.key = key
        self.part_size = part_size
        self.content_type = content_type

        self.upload_id: Optional[str] = None
        self.cursors: List[UploadCursor] = []
        self.bytes_uploaded = 0
        self.closed = False

        self._buffers: List[bytes] = []
        self._buffered = 0

    # -------------------------------------------------------------------
    #  Buffer
    # -------------------------------------------------------------------

    @property
    def buffered(self) -> int:
        """Bytes absorbed but not yet uploaded."""
        return self._buffered

    def absorb(self, chunk: bytes) -> None:
        """Add a chunk to the in-memory buffer."""
        self._buffers.append(bytes(chunk))
        self._buffered += len(chunk)

    def write(self, chunk: bytes) -> None:
        """
        Absorb a chunk and flush once the threshold is reached.

        Raises:
            ValueError: If the uploader is already closed
        """
        if self.closed:
            raise ValueError("write to closed uploader")
        if not chunk:
            return
        self.absorb(chunk)
        if self._buffered >= self.part_size:
            self.flush()

    def flush(self) -> Optional[UploadCursor]:
        """
        Upload the buffer as the next segment.

        Returns:
            The cursor of the uploaded segment, or None if the buffer was empty
        """
        if not self._buffered:
            return None

        if self.upload_id is None:
            self._start()

        segment = b"".join(self._buffers)
        part_number = len(self.cursors) + 1
        logger.debug("Uploading part %d of %s (%d bytes)", part_number, self.key, len(segment))

        # The buffer is reset before the call returns; a failed segment is not retried.
        self._buffers = []
        self._buffered = 0

        response = self.client.upload_part(
            Bucket=self.bucket,
            Key=self.key,
            PartNumber=part_number,
            UploadId=self.upload_id,
            Body=segment,
        )
        cursor = UploadCursor(part_number=part_number, etag=response["ETag"])
        self.cursors.append(cursor)
        self.bytes_uploaded += len(segment)
        logger.debug("Uploaded part %d of %s", part_number, self.key)
        return cursor

    # -------------------------------------------------------------------
    #  Session
    # -------------------------------------------------------------------

    def _start(self) -> None:
        kwargs: Dict[str, Any] = {"Bucket": self.bucket, "Key": self.key}
        if self.content_type:
            kwargs["ContentType"] = self.content_type
        response = self.client.create_multipart_upload(**kwargs)
        self.upload_id = response["UploadId"]
        logger.debug("Started upload %s for %s", self.upload_id, self.key)

    def close(self) -> int:
        """
        Flush the remainder and finalize the upload.

        Returns:
            Total bytes uploaded
        """
        if self.closed:
            return self.bytes_uploaded

        self.flush()

        if self.upload_id is None:
            # Nothing was ever written: store an empty object.
            kwargs: Dict[str, Any] = {"Bucket": self.bucket, "Key": self.key, "Body": b""}
            if self.content_type:
                kwargs["ContentType"] = self.content_type
            self.client.put_object(**kwargs)
        else:
            self.client.complete_multipart_upload(
                Bucket=self.bucket,
                Key=self.key,
                UploadId=self.upload_id,
                MultipartUpload={"Parts": [c.to_part() for c in self.cursors]},
            )

        self.closed = True
        logger.info(
            "Finished upload of %s (%d bytes, %d part(s))",
            self.key,
            self.bytes_uploaded,
            len(self.cursors),
        )
        return self.bytes_uploaded

    def abort(self) -> None:
        """Discard buffered data and cancel the upload session, if any."""
        self._buffers = []
        self._buffered = 0
        self.closed = True

        if self.upload_id is None:
            return

        logger.warning("Aborting upload %s for %s", self.upload_id, self.key)
        self.client.abort_multipart_upload(
            Bucket=self.bucket,
            Key=self.key,
            UploadId=self.upload_id,
        )
        self.upload_id = None

    def __enter__(self) -> "ChunkedUploader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.close()
            except Exception:
                self._abort_quietly()
                raise
        else:
            self._abort_quietly()

    def _abort_quietly(self) -> None:
        # The original error must win over a failing abort.
        try:
            self.abort()
        except Exception as abort_exc:
            logger.error("Could not abort upload for %s: %s", self.key, abort_exc)
