from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app_logger import get_logger

log = get_logger("errors")


class RoomBookingError(Exception):
    """Base class for domain/service errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str | None = None

    def __init__(self, message: str, error: str | None = None):
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.error:
            body = {"error": self.error, **body}
        return body


class ValidationError(RoomBookingError):
    status_code = status.HTTP_400_BAD_REQUEST


class OverlapError(ValidationError):
    def __init__(self, room_id: int, start_time: datetime, end_time: datetime):
        super().__init__(
            f"Room {room_id} is already booked between "
            f"{start_time.isoformat()} and {end_time.isoformat()}"
        )
        self.room_id = room_id
        self.start_time = start_time
        self.end_time = end_time

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "room_id": self.room_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
        }


class NotFoundError(RoomBookingError):
    status_code = status.HTTP_404_NOT_FOUND


class PermissionDenied(RoomBookingError):
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(RoomBookingError):
    status_code = status.HTTP_409_CONFLICT


class AuthenticationError(RoomBookingError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Invalid JWT"

    def __init__(self, message: str = "The provided token is invalid."):
        super().__init__(message)


async def _domain_error_handler(request: Request, exc: RoomBookingError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _unhandled_error_handler(request: Request, exc: Exception):
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RoomBookingError, _domain_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
