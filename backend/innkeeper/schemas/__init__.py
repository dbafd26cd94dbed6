from innkeeper.schemas.availability import AvailabilityResponse
from innkeeper.schemas.booking import BookingCreate, BookingCreatedResponse, BookingDetailResponse, BookingResponse
from innkeeper.schemas.payment import PaymentCreate, PaymentHistoryResponse, PaymentRecordedResponse
from innkeeper.schemas.service import ServiceAdd, ServiceChangeResponse

__all__ = [
    "AvailabilityResponse",
    "BookingCreate", "BookingCreatedResponse", "BookingDetailResponse", "BookingResponse",
    "PaymentCreate", "PaymentHistoryResponse", "PaymentRecordedResponse",
    "ServiceAdd", "ServiceChangeResponse",
]
