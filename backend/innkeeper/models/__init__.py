from innkeeper.models.hotel import Branch, Guest, RoomType, Room
from innkeeper.models.booking import Booking
from innkeeper.models.payment import Payment
from innkeeper.models.service import ServiceCatalog, ServiceUsage

__all__ = [
    "Branch", "Guest", "RoomType", "Room",
    "Booking", "Payment",
    "ServiceCatalog", "ServiceUsage",
]
