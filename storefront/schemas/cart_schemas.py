# storefront/schemas/cart_schemas.py
from pydantic import BaseModel, Field
from typing import List, Optional
from typing_extensions import Annotated
from decimal import Decimal

NonNegativeDecimal = Annotated[Decimal, Field(ge=0, max_digits=14, decimal_places=2)]
Percentage = Annotated[Decimal, Field(ge=0, le=100)]


class CartLineItemIn(BaseModel):
    product_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    price: NonNegativeDecimal
    quantity: int = Field(..., ge=1)
    color: Optional[str] = None
    size: Optional[str] = None
    discount: Optional[Percentage] = None


class CartQuoteRequest(BaseModel):
    items: List[CartLineItemIn] = Field(default_factory=list)
    discount_code: Optional[str] = None


class PriceBreakdownOut(BaseModel):
    subtotal: Decimal
    discount: Decimal
    delivery_fee: Decimal
    total: Decimal
    discount_code: Optional[str] = None
    percentage: Optional[int] = None

    model_config = {"from_attributes": True}
