class ThumbnailError(Exception):
    """Base class for every error raised by the thumbnail function"""


class ConfigurationError(ThumbnailError):
    """Invalid or missing configuration. Fatal at cold start."""


class ValidationError(ThumbnailError):
    """Malformed event or empty image input"""


class DecodeError(ThumbnailError):
    """The source bytes could not be decoded as an image"""


class EncodeError(ThumbnailError):
    """The resized image could not be encoded"""


class StorageError(ThumbnailError):
    """Download or upload failure.

    ``transient`` is True for throttling, server errors, connection problems
    and timeouts; False for missing objects/buckets and access denials.
    """

    def __init__(self, message: str, *, transient: bool = False):
        super().__init__(message)
        self.transient = transient
