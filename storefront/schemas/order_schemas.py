from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from storefront.models.order_models import OrderStatus, PaymentMethod
from storefront.schemas.cart_schemas import CartLineItemIn


# =====================================================
# Input / Request Schemas
# =====================================================
class ShippingAddress(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    postal_code: Optional[str] = None
    country: str = Field(..., min_length=1)


class OrderCreate(BaseModel):
    items: List[CartLineItemIn] = Field(..., min_length=1)
    discount_code: Optional[str] = None
    shipping_address: ShippingAddress
    payment_method: PaymentMethod = PaymentMethod.COD
    notes: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    notes: Optional[str] = None
    tracking_number: Optional[str] = None
    courier_service: Optional[str] = None
    estimated_delivery: Optional[datetime] = None


class OrderNotesUpdate(BaseModel):
    admin_notes: Optional[str] = None


# =====================================================
# Response Schemas
# =====================================================
class OrderItemOut(BaseModel):
    product_id: str
    name: str
    price: Decimal
    quantity: int
    color: Optional[str] = None
    size: Optional[str] = None

    model_config = {"from_attributes": True}


class StatusHistoryOut(BaseModel):
    id: int
    status: OrderStatus
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class OrderOut(BaseModel):
    id: int
    user_id: int
    status: OrderStatus
    payment_method: PaymentMethod
    subtotal: Decimal
    discount: Decimal
    delivery_fee: Decimal
    total: Decimal
    discount_code: Optional[str] = None

    shipping_name: str
    shipping_email: str
    shipping_phone: Optional[str] = None
    shipping_address: str
    shipping_city: str
    shipping_postal_code: Optional[str] = None
    shipping_country: str

    notes: Optional[str] = None
    tracking_number: Optional[str] = None
    courier_service: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    actual_delivery: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut] = []

    model_config = {"from_attributes": True}


class AdminOrderOut(OrderOut):
    admin_notes: Optional[str] = None
    status_history: List[StatusHistoryOut] = []


class TrackingHistoryOut(BaseModel):
    status: OrderStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class OrderTrackingOut(BaseModel):
    id: int
    status: OrderStatus
    tracking_number: Optional[str] = None
    courier_service: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    actual_delivery: Optional[datetime] = None
    status_history: List[TrackingHistoryOut] = []

    model_config = {"from_attributes": True}


class OrderStatusMessage(BaseModel):
    success: bool = True
    message: str
    order: AdminOrderOut
