# storefront/models/order_models.py
from decimal import Decimal
import enum
from sqlalchemy import (
    Column, Integer, String, ForeignKey, Numeric, DateTime, Enum, Index, Text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.core.db import Base


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, enum.Enum):
    COD = "COD"
    STRIPE = "STRIPE"
    PAYPAL = "PAYPAL"


order_status_enum = Enum(OrderStatus, name="order_status")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    discount_code_id = Column(Integer, ForeignKey("discount_codes.id", ondelete="SET NULL"), nullable=True)

    # Financial snapshot
    subtotal = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    discount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    delivery_fee = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    total = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    discount_code = Column(String(50), nullable=True)  # code text at checkout time

    status = Column(order_status_enum, default=OrderStatus.PENDING, nullable=False)
    payment_method = Column(Enum(PaymentMethod, name="payment_method"), default=PaymentMethod.COD, nullable=False)

    # Shipping snapshot
    shipping_name = Column(String, nullable=False)
    shipping_email = Column(String, nullable=False)
    shipping_phone = Column(String, nullable=True)
    shipping_address = Column(String, nullable=False)
    shipping_city = Column(String, nullable=False)
    shipping_postal_code = Column(String, nullable=True)
    shipping_country = Column(String, nullable=False)

    notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)

    # Fulfilment
    tracking_number = Column(String, unique=True, nullable=True, index=True)
    courier_service = Column(String, nullable=True)
    estimated_delivery = Column(DateTime(timezone=True), nullable=True)
    actual_delivery = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancel_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", lazy="selectin")
    status_history = relationship(
        "OrderStatusHistory",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderStatusHistory.id",
    )

    __table_args__ = (
        Index("ix_order_user_status", "user_id", "status"),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, status='{self.status}', total={self.total})>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String, nullable=False)
    name = Column(String, nullable=False)
    price = Column(Numeric(14, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    color = Column(String, nullable=True)
    size = Column(String, nullable=True)

    order = relationship("Order", back_populates="items")


class OrderStatusHistory(Base):
    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(order_status_enum, nullable=False)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="status_history")
