"""
Reservation engine error taxonomy.

Every error carries a machine-readable ``kind``, the HTTP status it maps to,
a human-readable message and optional context that is rendered alongside it
(for example the conflicting bookings of a ``RoomUnavailable``).
"""

from typing import Any


class ReservationError(Exception):
    """Base class for all business and infrastructure failures of the engine."""

    kind = "reservation_error"
    status_code = 500

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message, **self.context}


class ValidationError(ReservationError):
    """Malformed or contradictory input. Never retried automatically."""

    kind = "validation_error"
    status_code = 400


class InvalidDate(ValidationError):
    kind = "invalid_date"


class InvalidRange(ValidationError):
    kind = "invalid_range"


class InvalidAmount(ValidationError):
    kind = "invalid_amount"


class OccupancyExceeded(ReservationError):
    kind = "occupancy_exceeded"
    status_code = 400


class NotFound(ReservationError):
    kind = "not_found"
    status_code = 404


class RoomNotFound(NotFound):
    kind = "room_not_found"


class BookingNotFound(NotFound):
    kind = "booking_not_found"


class ServiceNotFound(NotFound):
    kind = "service_not_found"


class BookingAccessDenied(ReservationError):
    kind = "booking_access_denied"
    status_code = 403


class RoomUnavailable(ReservationError):
    """The room already has an active booking that overlaps the requested dates."""

    kind = "room_unavailable"
    status_code = 409


class InvalidStateTransition(ReservationError):
    kind = "invalid_state_transition"
    status_code = 409


class BookingNotPayable(ReservationError):
    kind = "booking_not_payable"
    status_code = 400


class BookingNotModifiable(ReservationError):
    kind = "booking_not_modifiable"
    status_code = 400


class PaymentExceedsOutstanding(ReservationError):
    kind = "payment_exceeds_outstanding"
    status_code = 400


class ServiceUnavailable(ReservationError):
    kind = "service_unavailable"
    status_code = 400


class BookingCreationFailed(ReservationError):
    """Transient/infrastructure failure. Nothing was committed; safe to retry."""

    kind = "booking_creation_failed"
    status_code = 500
