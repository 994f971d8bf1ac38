"""
Error taxonomy for the application summary pipeline.

Every error aborts processing of the current queue message only. The message
is left on the queue and redelivery is the retry mechanism.
"""


class ApplicationSummaryError(Exception):
    """Base class for all pipeline errors."""


class InvalidReferenceError(ApplicationSummaryError):
    """A storage key or case reference does not have the expected shape."""


class DeserializationError(ApplicationSummaryError):
    """The source application document could not be parsed."""


class RenderError(ApplicationSummaryError):
    """The document content is structurally invalid for rendering."""


class UnsupportedContentTypeError(ApplicationSummaryError):
    """The object store returned an object with an unexpected content type."""

    def __init__(self, key: str, content_type: str, expected: str = "application/json"):
        self.key = key
        self.content_type = content_type
        self.expected = expected
        super().__init__(
            f"Object '{key}' has content type '{content_type}', expected '{expected}'"
        )


class ObjectNotFoundError(ApplicationSummaryError):
    """The requested object does not exist in the bucket."""

    def __init__(self, bucket: str, key: str):
        self.bucket = bucket
        self.key = key
        super().__init__(f"Object '{key}' not found in bucket '{bucket}'")


class FetchError(ApplicationSummaryError):
    """The object store failed while reading an object."""


class UploadError(ApplicationSummaryError):
    """The object store failed while writing an object."""


class NotifyError(ApplicationSummaryError):
    """Sending a downstream notification failed."""


class DeleteError(ApplicationSummaryError):
    """Acknowledging (deleting) a consumed queue message failed."""


class ReceiveError(ApplicationSummaryError):
    """Receiving messages from the source queue failed."""
