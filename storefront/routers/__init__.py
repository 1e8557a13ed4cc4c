# storefront/routers/__init__.py
from .auth import router as auth_router
from .cart import router as cart_router
from .discount import router as discount_router
from .orders import router as orders_router
from .admin import router as admin_router

__all__ = [
    "auth_router",
    "cart_router",
    "discount_router",
    "orders_router",
    "admin_router",
]
