"""
Domain exceptions.

Services raise these instead of ``HTTPException`` so that business rules stay
independent of the web layer. The server registers a handler that turns each
of them into a JSON response with ``status_code``.
"""

from fastapi import status


class MundoTangoError(Exception):
    """Base class for all expected, client-facing failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(MundoTangoError):
    status_code = status.HTTP_404_NOT_FOUND

    @classmethod
    def for_entity(cls, entity: str, entity_id: object) -> "NotFoundError":
        return cls(f"{entity} {entity_id} not found")


class ConflictError(MundoTangoError):
    status_code = status.HTTP_409_CONFLICT


class PermissionDeniedError(MundoTangoError):
    status_code = status.HTTP_403_FORBIDDEN


class AuthenticationError(MundoTangoError):
    status_code = status.HTTP_401_UNAUTHORIZED


class BusinessRuleError(MundoTangoError):
    """A request that is well formed but violates a domain rule."""

    status_code = status.HTTP_400_BAD_REQUEST
