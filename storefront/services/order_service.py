# storefront/services/order_service.py
from datetime import datetime, timezone
from typing import Optional
import logging
import secrets

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import DELIVERY_FEE
from storefront.models.order_models import Order, OrderItem, OrderStatusHistory, OrderStatus
from storefront.schemas.cart_schemas import CartLineItemIn, CartQuoteRequest
from storefront.schemas.order_schemas import OrderCreate, OrderStatusUpdate, OrderNotesUpdate
from storefront.services.discount_service import resolve_discount, consume_discount_use
from storefront.services.pricing import Cart, CartLineItem, PriceBreakdown
from storefront.utils.activity_helpers import log_user_activity

logger = logging.getLogger(__name__)

# Linear fulfilment path; CANCELLED is reachable from any non-terminal state
NEXT_STATUS = {
    OrderStatus.PENDING: OrderStatus.PROCESSING,
    OrderStatus.PROCESSING: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.DELIVERED,
}
TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    if current in TERMINAL_STATUSES:
        return False
    if target == OrderStatus.CANCELLED:
        return True
    return NEXT_STATUS.get(current) == target


def _build_cart(items: list[CartLineItemIn]) -> Cart:
    cart = Cart()
    for item in items:
        cart.add_item(CartLineItem(**item.model_dump()))
    return cart


def _generate_tracking_number() -> str:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d")
    return f"SF-{ts}-{secrets.token_hex(4).upper()}"


# =====================================================
# QUOTE
# =====================================================
async def quote_cart(db: AsyncSession, payload: CartQuoteRequest) -> PriceBreakdown:
    cart = _build_cart(payload.items)
    if payload.discount_code:
        record, _ = await resolve_discount(db, payload.discount_code)
        # record already validated; the lookup just hands it back
        cart.apply_discount_code(record.code, lambda _code: record, datetime.now(timezone.utc))
    return cart.breakdown(DELIVERY_FEE)


# =====================================================
# PLACE ORDER
# =====================================================
async def place_order(db: AsyncSession, payload: OrderCreate, _user) -> Order:
    cart = _build_cart(payload.items)

    discount_record = None
    if payload.discount_code:
        discount_record, applied = await resolve_discount(db, payload.discount_code)
        cart.applied_discount = applied

    prices = cart.breakdown(DELIVERY_FEE)
    shipping = payload.shipping_address

    order = Order(
        user_id=_user.id,
        discount_code_id=discount_record.id if discount_record else None,
        discount_code=prices.discount_code,
        subtotal=prices.subtotal,
        discount=prices.discount,
        delivery_fee=prices.delivery_fee,
        total=prices.total,
        status=OrderStatus.PENDING,
        payment_method=payload.payment_method,
        shipping_name=shipping.full_name,
        shipping_email=shipping.email,
        shipping_phone=shipping.phone,
        shipping_address=shipping.address,
        shipping_city=shipping.city,
        shipping_postal_code=shipping.postal_code,
        shipping_country=shipping.country,
        notes=payload.notes,
        tracking_number=_generate_tracking_number(),
        items=[
            OrderItem(
                product_id=item.product_id,
                name=item.name,
                price=item.price,
                quantity=item.quantity,
                color=item.color,
                size=item.size,
            )
            for item in cart.items
        ],
        status_history=[
            OrderStatusHistory(status=OrderStatus.PENDING, notes="Order placed", created_by=_user.id)
        ],
    )

    if discount_record:
        await consume_discount_use(db, discount_record.id)

    db.add(order)
    await db.commit()
    await db.refresh(order)

    logger.info(
        "Order %s placed by user %s: subtotal=%s discount=%s total=%s",
        order.id, _user.id, order.subtotal, order.discount, order.total,
    )
    return order


# =====================================================
# READ
# =====================================================
async def get_order_by_id(db: AsyncSession, order_id: int) -> Order:
    order = await db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


async def get_order_for_user(db: AsyncSession, order_id: int, _user) -> Order:
    order = await get_order_by_id(db, order_id)
    if order.user_id != _user.id and _user.role != "admin":
        # do not leak other shoppers' order ids
        raise HTTPException(status_code=404, detail="Order not found")
    return order


async def get_orders_for_user(db: AsyncSession, user_id: int) -> list[Order]:
    result = await db.execute(
        select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc(), Order.id.desc())
    )
    return result.scalars().all()


async def get_all_orders(db: AsyncSession, status: Optional[OrderStatus] = None) -> list[Order]:
    query = select(Order).order_by(Order.created_at.desc(), Order.id.desc())
    if status:
        query = query.where(Order.status == status)
    result = await db.execute(query)
    return result.scalars().all()


async def track_order(db: AsyncSession, tracking_number: str, _user) -> Order:
    result = await db.execute(
        select(Order).where(
            Order.tracking_number == tracking_number.strip(),
            Order.user_id == _user.id,
        )
    )
    order = result.scalars().first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


async def get_status_history(db: AsyncSession, order_id: int) -> list[OrderStatusHistory]:
    await get_order_by_id(db, order_id)
    result = await db.execute(
        select(OrderStatusHistory)
        .where(OrderStatusHistory.order_id == order_id)
        .order_by(OrderStatusHistory.created_at.desc(), OrderStatusHistory.id.desc())
    )
    return result.scalars().all()


# =====================================================
# ADMIN: STATUS TRANSITION
# =====================================================
async def update_order_status(db: AsyncSession, order_id: int, payload: OrderStatusUpdate, _user) -> Order:
    order = await get_order_by_id(db, order_id)
    current = OrderStatus(order.status)

    if current in TERMINAL_STATUSES:
        raise HTTPException(status_code=409, detail=f"Order is {current.value} and can no longer change status")
    if not can_transition(current, payload.status):
        raise HTTPException(
            status_code=409,
            detail=f"Cannot move order from {current.value} to {payload.status.value}",
        )

    if payload.tracking_number is not None:
        clash = await db.execute(
            select(Order.id).where(Order.tracking_number == payload.tracking_number, Order.id != order.id)
        )
        if clash.first():
            raise HTTPException(status_code=409, detail="Tracking number already in use")

    now = datetime.now(timezone.utc)
    order.status = payload.status

    if payload.tracking_number is not None:
        order.tracking_number = payload.tracking_number
    if payload.courier_service is not None:
        order.courier_service = payload.courier_service
    if payload.estimated_delivery is not None:
        order.estimated_delivery = payload.estimated_delivery

    if payload.status == OrderStatus.DELIVERED:
        order.actual_delivery = now
    if payload.status == OrderStatus.CANCELLED:
        order.cancelled_at = now
        if payload.notes:
            order.cancel_reason = payload.notes

    order.status_history.append(
        OrderStatusHistory(status=payload.status, notes=payload.notes, created_by=_user.id)
    )

    await log_user_activity(
        db=db,
        user_id=_user.id,
        username=_user.username,
        message=f"Order {order.id} moved from {current.value} to {payload.status.value}"
    )

    await db.commit()
    await db.refresh(order)

    logger.info("Order %s: %s -> %s by %s", order.id, current.value, payload.status.value, _user.username)
    return order


async def update_admin_notes(db: AsyncSession, order_id: int, payload: OrderNotesUpdate, _user) -> Order:
    order = await get_order_by_id(db, order_id)
    order.admin_notes = payload.admin_notes

    await log_user_activity(
        db=db,
        user_id=_user.id,
        username=_user.username,
        message=f"Updated notes on order {order.id}"
    )

    await db.commit()
    await db.refresh(order)
    return order


# =====================================================
# ADMIN: DELETE
# =====================================================
async def delete_order(db: AsyncSession, order_id: int, _user) -> Order:
    order = await get_order_by_id(db, order_id)

    await db.delete(order)

    await log_user_activity(
        db=db,
        user_id=_user.id,
        username=_user.username,
        message=f"Deleted order {order.id} ({order.status.value}, total {order.total})"
    )

    await db.commit()
    logger.info("Order %s deleted by %s", order.id, _user.username)
    return order
