# app/core/errors.py
"""Error taxonomy shared by the store adapters and the services.

Callers can fix ``InvalidInput`` and ``PermissionDenied`` themselves;
``StorageFailure`` is an operational fault and is never detailed further.
"""


class PortalError(Exception):
    """Base class for every error raised by the portal core."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFound(PortalError):
    status_code = 404


class PermissionDenied(PortalError):
    status_code = 403


class InvalidInput(PortalError):
    status_code = 400


class AuthenticationFailed(PortalError):
    status_code = 401


class StorageFailure(PortalError):
    status_code = 500


__all__ = [
    "PortalError",
    "NotFound",
    "PermissionDenied",
    "InvalidInput",
    "AuthenticationFailed",
    "StorageFailure",
]
