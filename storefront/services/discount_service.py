# storefront/services/discount_service.py
from datetime import datetime, timezone
from typing import Optional
import logging

from fastapi import HTTPException
from sqlalchemy import select, update, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.discount_models import DiscountCode
from storefront.schemas.discount_schemas import (
    DiscountCodeCreate,
    DiscountCodeUpdate,
    DiscountCodeAdminOut,
)
from storefront.services.pricing import (
    AppliedDiscount,
    INVALID_CODE_MESSAGE,
    discount_rejection,
    normalize_code,
    validate_discount_code,
)
from storefront.utils.activity_helpers import log_user_activity

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def get_discount_by_code(db: AsyncSession, code: str) -> Optional[DiscountCode]:
    result = await db.execute(select(DiscountCode).where(DiscountCode.code == normalize_code(code)))
    return result.scalar_one_or_none()


# -----------------------
# SHOPPER SIDE
# -----------------------
async def resolve_discount(db: AsyncSession, code: str, now: Optional[datetime] = None) -> tuple[DiscountCode, AppliedDiscount]:
    """
    Find a code and check it can be applied right now.
    Every failure, unknown code included, is the same 400.
    """
    now = now or _now()
    record = await get_discount_by_code(db, code) if code and code.strip() else None
    if record is None:
        logger.info("Unknown discount code %r", code)
        raise HTTPException(status_code=400, detail=INVALID_CODE_MESSAGE)
    if not validate_discount_code(record, now):
        raise HTTPException(status_code=400, detail=INVALID_CODE_MESSAGE)
    return record, AppliedDiscount(code=record.code, percentage=record.percentage)


async def validate_code(db: AsyncSession, code: str) -> dict:
    _, applied = await resolve_discount(db, code)
    return {
        "success": True,
        "code": applied.code,
        "percentage": applied.percentage,
        "message": f"{applied.percentage}% discount applied!",
    }


async def consume_discount_use(db: AsyncSession, discount_id: int) -> None:
    """
    Increment the usage counter without exceeding max_uses.

    Conditional UPDATE so two checkouts racing for the last use cannot both
    win. Does not commit.
    """
    result = await db.execute(
        update(DiscountCode)
        .where(
            DiscountCode.id == discount_id,
            DiscountCode.active == True,
            or_(DiscountCode.max_uses.is_(None), DiscountCode.current_uses < DiscountCode.max_uses),
        )
        .values(current_uses=DiscountCode.current_uses + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise HTTPException(status_code=400, detail=INVALID_CODE_MESSAGE)


# -----------------------
# ADMIN: CREATE
# -----------------------
async def create_discount_code(db: AsyncSession, payload: DiscountCodeCreate, _user) -> DiscountCode:
    if await get_discount_by_code(db, payload.code):
        raise HTTPException(status_code=400, detail="Discount code already exists")

    discount = DiscountCode(**payload.model_dump())
    db.add(discount)
    await db.flush()

    await log_user_activity(
        db=db,
        user_id=_user.id,
        username=_user.username,
        message=f"Created discount code {discount.code} ({discount.percentage}%)"
    )

    await db.commit()
    await db.refresh(discount)
    logger.info("Discount code %s created by %s", discount.code, _user.username)
    return discount


# -----------------------
# ADMIN: READ
# -----------------------
async def get_all_discount_codes(
    db: AsyncSession,
    active: bool | None = None,
    code: str | None = None,
):
    filters = []
    if active is not None:
        filters.append(DiscountCode.active == active)
    if code:
        filters.append(DiscountCode.code.ilike(f"%{code}%"))

    query = select(DiscountCode).where(and_(*filters)).order_by(DiscountCode.created_at.desc(), DiscountCode.id.desc())
    result = await db.execute(query)
    return result.scalars().all()


async def get_discount_code_by_id(db: AsyncSession, discount_id: int) -> Optional[DiscountCode]:
    return await db.get(DiscountCode, discount_id)


def to_admin_out(discount: DiscountCode, now: Optional[datetime] = None) -> DiscountCodeAdminOut:
    reason = discount_rejection(discount, now or _now())
    return DiscountCodeAdminOut.model_validate(
        {
            **{c.name: getattr(discount, c.name) for c in DiscountCode.__table__.columns},
            "usable": reason is None,
            "rejection": reason.value if reason else None,
        }
    )


# -----------------------
# ADMIN: UPDATE
# -----------------------
async def update_discount_code(db: AsyncSession, discount_id: int, payload: DiscountCodeUpdate, _user) -> Optional[DiscountCode]:
    discount = await get_discount_code_by_id(db, discount_id)
    if not discount:
        return None

    update_data = payload.model_dump(exclude_unset=True)

    for key in ("code", "percentage", "active"):
        if key in update_data and update_data[key] is None:
            raise HTTPException(status_code=400, detail=f"'{key}' cannot be null")

    if "code" in update_data:
        existing = await get_discount_by_code(db, update_data["code"])
        if existing and existing.id != discount.id:
            raise HTTPException(status_code=400, detail="Discount code already exists")

    if "max_uses" in update_data and update_data["max_uses"] is not None:
        if update_data["max_uses"] < discount.current_uses:
            raise HTTPException(status_code=400, detail="max_uses cannot be lower than current uses")

    for key, value in update_data.items():
        setattr(discount, key, value)

    await log_user_activity(
        db=db,
        user_id=_user.id,
        username=_user.username,
        message=f"Updated discount code {discount.code} (ID: {discount.id})"
    )

    await db.commit()
    await db.refresh(discount)
    return discount


# -----------------------
# ADMIN: DELETE
# -----------------------
async def delete_discount_code(db: AsyncSession, discount_id: int, _user) -> Optional[DiscountCode]:
    discount = await get_discount_code_by_id(db, discount_id)
    if not discount:
        return None

    await db.delete(discount)

    await log_user_activity(
        db=db,
        user_id=_user.id,
        username=_user.username,
        message=f"Deleted discount code {discount.code} (ID: {discount.id})"
    )

    await db.commit()
    return discount
