from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.db import get_db
from storefront.schemas.cart_schemas import CartQuoteRequest, PriceBreakdownOut
from storefront.services.order_service import quote_cart

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.post("/quote", response_model=PriceBreakdownOut)
async def route_quote_cart(payload: CartQuoteRequest, db: AsyncSession = Depends(get_db)):
    """
    Price a cart: subtotal, discount, delivery fee and total.
    An invalid discount code fails the whole quote with a 400.
    """
    return await quote_cart(db, payload)
