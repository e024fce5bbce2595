# core/exceptions.py
from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Trip, user, collaborator or event does not exist."""

    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class AccessDeniedError(HTTPException):
    """Caller's trip role is insufficient for the operation."""

    def __init__(self, detail: str = "You do not have access to this trip"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ValidationFailedError(HTTPException):
    """Request is well-formed JSON but violates a domain rule."""

    def __init__(self, detail: str = "Validation failed"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ConflictError(HTTPException):
    """The trip changed since the caller last read it."""

    def __init__(self, detail: str = "Trip was modified by someone else, reload and retry"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InternalError(HTTPException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
