"""Domain errors raised by the booking core and rendered by the app's error handler."""


class ApiError(Exception):
    status = 400
    code = "BAD_REQUEST"
    message = "Bad request."

    def __init__(self, message: str | None = None, details=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details


class NotFound(ApiError):
    status = 404
    code = "NOT_FOUND"
    message = "Not found."


class NoAvailabilitySet(NotFound):
    code = "NO_AVAILABILITY"
    message = "No availability set for this date."


class SlotNotFound(NotFound):
    code = "SLOT_NOT_FOUND"
    message = "Time slot not found."


class ValidationFailed(ApiError):
    status = 422
    code = "VALIDATION_ERROR"
    message = "Invalid input."


class SlotUnavailable(ApiError):
    status = 409
    code = "SLOT_UNAVAILABLE"
    message = "Selected time slot is no longer available."


class SlotInUse(ApiError):
    status = 409
    code = "SLOT_IN_USE"
    message = "Time slot has active reservations."


class InvalidTransition(ApiError):
    status = 409
    code = "INVALID_TRANSITION"
    message = "Reservation status cannot be changed."


class Unauthorized(ApiError):
    status = 401
    code = "UNAUTHORIZED"
    message = "Missing or invalid bearer token."


class Forbidden(ApiError):
    status = 403
    code = "FORBIDDEN"
    message = "Access denied."
