from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from storefront.core.db import get_db
from storefront.models.order_models import OrderStatus
from storefront.schemas.order_schemas import (
    AdminOrderOut,
    OrderNotesUpdate,
    OrderStatusMessage,
    OrderStatusUpdate,
    StatusHistoryOut,
)
from storefront.services.order_service import (
    get_all_orders,
    get_order_by_id,
    get_status_history,
    update_order_status,
    update_admin_notes,
    delete_order,
)
from storefront.utils.check_roles import require_role
from storefront.utils.get_user import get_current_user

router = APIRouter(prefix="/orders", tags=["Admin: Orders"])


# GET all orders
@router.get("/", response_model=List[AdminOrderOut])
@require_role(["admin"])
async def route_list_orders(
    db: AsyncSession = Depends(get_db),
    status: Optional[OrderStatus] = Query(None, description="Filter by order status"),
    _user = Depends(get_current_user),
):
    return await get_all_orders(db, status=status)


# GET order by ID
@router.get("/{order_id}", response_model=AdminOrderOut)
@require_role(["admin"])
async def route_get_order(order_id: int, db: AsyncSession = Depends(get_db), _user = Depends(get_current_user)):
    return await get_order_by_id(db, order_id)


# POST status transition
@router.post("/{order_id}/status", response_model=OrderStatusMessage)
@require_role(["admin"])
async def route_update_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: AsyncSession = Depends(get_db),
    _user = Depends(get_current_user)
):
    order = await update_order_status(db, order_id, payload, _user)
    return {
        "success": True,
        "message": f"Order status updated to {order.status.value}",
        "order": AdminOrderOut.model_validate(order, from_attributes=True),
    }


# PATCH admin notes (allowed in every state)
@router.patch("/{order_id}/notes", response_model=AdminOrderOut)
@require_role(["admin"])
async def route_update_notes(
    order_id: int,
    payload: OrderNotesUpdate,
    db: AsyncSession = Depends(get_db),
    _user = Depends(get_current_user)
):
    return await update_admin_notes(db, order_id, payload, _user)


# GET status history
@router.get("/{order_id}/history", response_model=List[StatusHistoryOut])
@require_role(["admin"])
async def route_status_history(order_id: int, db: AsyncSession = Depends(get_db), _user = Depends(get_current_user)):
    return await get_status_history(db, order_id)


# DELETE order
@router.delete("/{order_id}")
@require_role(["admin"])
async def route_delete_order(order_id: int, db: AsyncSession = Depends(get_db), _user = Depends(get_current_user)):
    order = await delete_order(db, order_id, _user)
    return {"message": f"Order {order.id} deleted successfully"}
