"""Service catalog DTOs."""
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ServicePriceDTO(BaseModel):
    """DTO for changing a catalog price. Existing bookings keep their snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    base_price: Decimal = Field(..., alias="basePrice", ge=0, max_digits=10, decimal_places=2)
