from fastapi import APIRouter
from .discount_codes import router as discount_codes_router
from .orders import router as orders_router

router = APIRouter(prefix="/admin")

router.include_router(discount_codes_router)
router.include_router(orders_router)
