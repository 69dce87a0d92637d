"""
Exception types for the CMS content service.

Whole-operation failures are raised as one of these and carry a
display-ready message. Item-level failures inside batch loops are caught,
logged and counted by the caller instead of being raised.
"""


class CMSError(Exception):
    """Base class for all CMS errors."""

    pass


class NetworkError(CMSError):
    """Transport-level failure while talking to a remote host."""

    pass


class NavigationTimeoutError(NetworkError):
    """A page did not finish loading within the navigation timeout."""

    pass


class DownloadError(NetworkError):
    """
    A remote resource could not be downloaded.

    Raised for non-2xx responses, timeouts and undecodable bodies while
    rehosting an image. The image pipeline converts it into an unsuccessful
    RehostedImage rather than letting it escape a batch.
    """

    pass


class ExtractionWarning(UserWarning):
    """
    Non-fatal extraction problem (selector not found, no content root).

    Recorded on the extracted page and logged, never raised.
    """

    pass


class InvalidStateError(CMSError):
    """An operation was attempted on a crawl job in the wrong state."""

    pass


class ValidationError(CMSError):
    """Caller input failed validation (URL format, document shape)."""

    pass


class PersistenceConflict(CMSError):
    """A write collided with existing data."""

    pass


class UniqueConstraintError(PersistenceConflict):
    """A write violated a unique key (slug, setting key)."""

    pass


class NotFoundError(CMSError):
    """The requested record does not exist."""

    pass


class PartialBatchFailure(CMSError):
    """
    A batch finished but some of its items failed.

    Batch operations only report failures through their result tally; this
    is raised by callers that opt into treating any failure as fatal.
    """

    def __init__(self, message, failed=0):
        super().__init__(message)
        self.failed = failed
