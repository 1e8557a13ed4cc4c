from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.db import get_db
from storefront.schemas.discount_schemas import DiscountValidateRequest, DiscountValidateResponse
from storefront.services.discount_service import validate_code

router = APIRouter(prefix="/discount", tags=["Discount"])


@router.post("/validate", response_model=DiscountValidateResponse)
async def route_validate_discount(payload: DiscountValidateRequest, db: AsyncSession = Depends(get_db)):
    """Check a code without consuming a use. Usage is counted at checkout."""
    return await validate_code(db, payload.code)
