"""
API error types and the handlers that render them.

Every error leaves the service as ``{"message": ..., "errors": {...}}``,
where ``errors`` is a per-field message map and is omitted when empty.
"""
import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("spotbnb.errors")


class APIError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, errors: Optional[Dict[str, str]] = None):
        self.message = message or self.message
        self.errors = errors or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationFailed(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Bad Request"


class AuthenticationRequired(APIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authentication required"


class Forbidden(APIError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Forbidden"


class BookingConflict(Forbidden):
    message = "Sorry, this spot is already booked for the specified dates"


class DuplicateReview(Forbidden):
    message = "User already has a review for this spot"


class NotFound(APIError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource couldn't be found"


class SpotNotFound(NotFound):
    message = "Spot couldn't be found"


class TooManyRequests(APIError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests"


# Messages reported for request fields that fail schema validation, keyed by
# the field's wire name.
FIELD_MESSAGES = {
    "name": "Name is required",
    "address": "Street address is required",
    "city": "City is required",
    "state": "State is required",
    "country": "Country is required",
    "lat": "Latitude must be within -90 and 90",
    "lng": "Longitude must be within -180 and 180",
    "description": "Description is required",
    "price": "Price per day must be a positive number",
    "url": "Image url is required",
    "preview": "Preview must be a boolean",
    "review": "Review text is required",
    "stars": "Stars must be an integer from 1 to 5",
    "startDate": "Invalid or missing startDate",
    "endDate": "Invalid or missing endDate",
    "page": "Page must be greater than or equal to 1",
    "size": "Size must be between 1 and 20",
    "minLat": "Minimum latitude is invalid",
    "maxLat": "Maximum latitude is invalid",
    "minLng": "Minimum longitude is invalid",
    "maxLng": "Maximum longitude is invalid",
    "minPrice": "Minimum price must be greater than or equal to 0",
    "maxPrice": "Maximum price must be greater than or equal to 0",
    "spot_id": "Spot id must be an integer",
    "firstName": "First Name is required",
    "lastName": "Last Name is required",
    "email": "Invalid email",
    "username": "Username must be between 4 and 30 characters",
    "password": "Password must be 6 characters or more",
    "credential": "Email or username is required",
}


def validation_errors_to_fields(exc: RequestValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ()
        field = loc[-1] if loc and isinstance(loc[-1], str) else "body"
        # First failure per field wins
        errors.setdefault(field, FIELD_MESSAGES.get(field, error.get("msg", "Invalid value")))
    return errors


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    failure = ValidationFailed(errors=validation_errors_to_fields(exc))
    return JSONResponse(status_code=failure.status_code, content=failure.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
