# app/utils/exceptions.py
"""
Typed errors raised by the booking engine and the vehicle/driver registries.
Each carries a machine code, an HTTP status and enough detail (field,
current status, ...) for the caller to render a specific message.
"""

from typing import Iterable, Optional


class BookingEngineError(Exception):
    """Base exception for booking engine errors"""
    def __init__(self, code: str, message: str, status_code: int = 400, field: str = None, details: dict = None):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.field = field
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "field": self.field, "details": self.details}


class ValidationError(BookingEngineError):
    def __init__(self, message: str, field: str = None, details: dict = None):
        super().__init__("VALIDATION_ERROR", message, 400, field, details)


class NotFoundError(BookingEngineError):
    def __init__(self, resource: str, resource_id=None):
        message = f"{resource} not found"
        if resource_id is not None:
            message += f": {resource_id}"
        super().__init__("NOT_FOUND", message, 404, details={"resource": resource, "resource_id": resource_id})


class NoAvailabilityError(BookingEngineError):
    def __init__(self, message: str, field: str = None, details: dict = None):
        super().__init__("NO_AVAILABILITY", message, 409, field, details)


def _status_text(status) -> Optional[str]:
    return getattr(status, "value", status)


class InvalidStateError(BookingEngineError):
    """Operation attempted while the booking is in the wrong status."""
    code = "INVALID_STATE"

    def __init__(self, action: str, expected: Iterable, actual, message: str = None):
        self.expected = sorted(_status_text(s) for s in expected)
        self.actual = _status_text(actual)
        message = message or (
            f"Cannot {action} a booking in status '{self.actual}' "
            f"(expected: {', '.join(self.expected) or 'none'})"
        )
        super().__init__(
            self.code,
            message,
            409,
            details={"action": action, "expected": self.expected, "actual": self.actual},
        )


class InvalidTransitionError(InvalidStateError):
    """Requested target status is not reachable from the current one."""
    code = "INVALID_TRANSITION"

    def __init__(self, current_status, requested_status, allowed: Iterable = ()):
        current, requested = _status_text(current_status), _status_text(requested_status)
        super().__init__(
            f"move to {requested}",
            allowed,
            current,
            message=f"Invalid status transition from {current} to {requested}",
        )
        self.details["requested"] = requested


class ConflictViolationError(BookingEngineError):
    """Uniqueness constraint hit (plate, license number, protocol)."""
    def __init__(self, field: str, value: str, message: str = None):
        message = message or f"A record with {field} '{value}' already exists"
        super().__init__("CONFLICT_VIOLATION", message, 409, field, details={"field": field, "value": value})


class ResourceInUseError(BookingEngineError):
    def __init__(self, resource: str, resource_id, booking_ids: Iterable[int] = ()):
        booking_ids = list(booking_ids)
        message = f"{resource} {resource_id} is referenced by active bookings"
        super().__init__(
            "RESOURCE_IN_USE",
            message,
            409,
            details={"resource": resource, "resource_id": resource_id, "booking_ids": booking_ids},
        )
