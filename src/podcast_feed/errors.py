"""
Exceptions raised by the feed append step.

Storage transport failures are not wrapped: they surface as the
``botocore.exceptions`` errors raised by the client.
"""


class FeedNotFoundError(LookupError):
    """The feed file does not exist in the bucket."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Feed file not found: {key}")
        self.key = key


class FeedParseError(ValueError):
    """The stored feed file could not be parsed as RSS/Atom."""


class StepParameterError(ValueError):
    """A step parameter is missing or malformed."""
