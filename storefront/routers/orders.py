from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from storefront.core.db import get_db
from storefront.schemas.order_schemas import OrderCreate, OrderOut, OrderTrackingOut
from storefront.services.order_service import (
    place_order,
    get_orders_for_user,
    get_order_for_user,
    track_order,
)
from storefront.utils.get_user import get_current_user

router = APIRouter(prefix="/orders", tags=["Orders"])


# POST place order
@router.post("/", response_model=OrderOut, status_code=201)
async def route_place_order(
    payload: OrderCreate,
    db: AsyncSession = Depends(get_db),
    _user = Depends(get_current_user)
):
    return await place_order(db, payload, _user)


# GET my orders
@router.get("/", response_model=List[OrderOut])
async def route_my_orders(db: AsyncSession = Depends(get_db), _user = Depends(get_current_user)):
    return await get_orders_for_user(db, _user.id)


# GET tracking lookup, scoped to the caller's own orders
@router.get("/track", response_model=OrderTrackingOut)
async def route_track_order(
    tracking_number: str = Query(..., min_length=1, description="Tracking number printed on the receipt"),
    db: AsyncSession = Depends(get_db),
    _user = Depends(get_current_user),
):
    return await track_order(db, tracking_number, _user)


# GET order by ID
@router.get("/{order_id}", response_model=OrderOut)
async def route_get_order(order_id: int, db: AsyncSession = Depends(get_db), _user = Depends(get_current_user)):
    return await get_order_for_user(db, order_id, _user)
