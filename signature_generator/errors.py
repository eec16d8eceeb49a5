"""
Error kinds raised by the crop session and the settings backends.

Crop errors are synchronous and local: the session is left exactly as it
was before the failing call.  Backend errors wrap transport and
authorization failures so the UI can show one notice per kind.
"""


class SignatureError(Exception):
    """Base class for all application errors."""


class InvalidImageError(SignatureError, ValueError):
    """Image data is undecodable or has zero / non-finite dimensions."""


class InvalidZoomError(SignatureError, ValueError):
    """A non-positive or non-finite zoom factor was requested."""


class NoImageLoadedError(SignatureError, RuntimeError):
    """The crop session has no image to work on yet."""


class SessionAlreadyConsumedError(SignatureError, RuntimeError):
    """The crop session was already committed or cancelled."""


class AuthorizationError(SignatureError, PermissionError):
    """The admin credential was rejected by the settings backend."""


class StorageError(SignatureError, RuntimeError):
    """The settings backend or asset storage failed."""
