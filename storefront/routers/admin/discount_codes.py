from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from storefront.core.db import get_db
from storefront.schemas.discount_schemas import DiscountCodeCreate, DiscountCodeUpdate, DiscountCodeAdminOut
from storefront.services.discount_service import (
    create_discount_code,
    get_all_discount_codes,
    get_discount_code_by_id,
    update_discount_code,
    delete_discount_code,
    to_admin_out,
)
from storefront.utils.check_roles import require_role
from storefront.utils.get_user import get_current_user

router = APIRouter(prefix="/discount-codes", tags=["Admin: Discount Codes"])


@router.post("/", response_model=DiscountCodeAdminOut, status_code=201)
@require_role(["admin"])
async def route_create_discount_code(
    payload: DiscountCodeCreate,
    db: AsyncSession = Depends(get_db),
    _user = Depends(get_current_user)
):
    """
    Create a discount code. The code is stored upper-case and must be unique.
    """
    return to_admin_out(await create_discount_code(db, payload, _user))


@router.get("/", response_model=List[DiscountCodeAdminOut])
@require_role(["admin"])
async def route_get_all_discount_codes(
    db: AsyncSession = Depends(get_db),
    active: bool | None = Query(None, description="Filter by active flag"),
    code: str | None = Query(None, description="Filter by code (partial match)"),
    _user = Depends(get_current_user),
):
    """
    List codes, newest first, each with whether it is usable right now
    and, if not, why.
    """
    codes = await get_all_discount_codes(db, active=active, code=code)
    return [to_admin_out(c) for c in codes]


@router.get("/{discount_id}", response_model=DiscountCodeAdminOut)
@require_role(["admin"])
async def route_get_discount_code(discount_id: int, db: AsyncSession = Depends(get_db), _user = Depends(get_current_user)):
    discount = await get_discount_code_by_id(db, discount_id)
    if not discount:
        raise HTTPException(status_code=404, detail="Discount code not found")
    return to_admin_out(discount)


@router.put("/{discount_id}", response_model=DiscountCodeAdminOut)
@require_role(["admin"])
async def route_update_discount_code(
    discount_id: int,
    payload: DiscountCodeUpdate,
    db: AsyncSession = Depends(get_db),
    _user = Depends(get_current_user)
):
    """Partial update; send `expires_at: null` to remove an expiry."""
    updated = await update_discount_code(db, discount_id, payload, _user)
    if not updated:
        raise HTTPException(status_code=404, detail="Discount code not found")
    return to_admin_out(updated)


@router.delete("/{discount_id}")
@require_role(["admin"])
async def route_delete_discount_code(
    discount_id: int,
    db: AsyncSession = Depends(get_db),
    _user = Depends(get_current_user)
):
    deleted = await delete_discount_code(db, discount_id, _user)
    if not deleted:
        raise HTTPException(status_code=404, detail="Discount code not found")
    return {"success": True}
