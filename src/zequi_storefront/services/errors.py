"""Exceptions raised by services and repositories.

The HTTP layer maps each of these to a status code and a short message for
the user; nothing here is fatal to the process.
"""


class StorefrontError(Exception):
    """Base class for expected storefront failures."""


class StorageError(StorefrontError):
    """A write against the document store failed."""


class NotFoundError(StorefrontError):
    """The requested document does not exist."""


class ValidationFailedError(StorefrontError):
    """Input was rejected before any write happened."""


class InvalidTransitionError(StorefrontError):
    """The requested order status change is not in the workflow table."""


class ImageProcessingError(StorefrontError):
    """An uploaded image could not be read or decoded."""
