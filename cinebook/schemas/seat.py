from pydantic import BaseModel, UUID4
from decimal import Decimal


# One entry of the availability projection (GET /shows/{id}/availability)
class SeatView(BaseModel):
    seat_id: str  # label, e.g. "A1"
    row: str
    col: int
    category: str  # Standard, Premium, VIP
    price: Decimal
    reserved: bool


# POST /admin/shows/{id}/provision
class ProvisionResponse(BaseModel):
    show_id: UUID4
    created_count: int
