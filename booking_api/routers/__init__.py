"""API routers."""

from fastapi import HTTPException, status

from booking_api.services.errors import (
    BookingPersistenceError,
    ConflictError,
    NotFoundError,
    SchedulingError,
    ValidationError,
)


def http_error(exc: SchedulingError) -> HTTPException:
    """Map a service error onto the HTTP status clients should see."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, BookingPersistenceError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
