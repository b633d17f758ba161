"""Typed service errors shared by the purchase and match pool flows.

Each error carries a stable ``code`` and the HTTP status it maps to. Routers do
not translate them; ``app.main`` renders any ``ServiceError`` as
``{"detail": <message>, "code": <code>}``.
"""

from fastapi import status


class ServiceError(Exception):
    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(ServiceError):
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidArgument(ServiceError):
    code = "invalid-argument"
    status_code = status.HTTP_400_BAD_REQUEST


class AlreadyExists(ServiceError):
    code = "already-exists"
    status_code = status.HTTP_409_CONFLICT


class NotFound(ServiceError):
    code = "not-found"
    status_code = status.HTTP_404_NOT_FOUND


class Internal(ServiceError):
    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ConfigurationError(ServiceError):
    """Required runtime configuration (e.g. a remote config key) is missing."""

    code = "configuration-error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
