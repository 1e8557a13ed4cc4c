# storefront/models/__init__.py
from storefront.models.user_models import User, RefreshToken
from storefront.models.activity_models import UserActivity
from storefront.models.discount_models import DiscountCode
from storefront.models.order_models import (
    Order,
    OrderItem,
    OrderStatusHistory,
    OrderStatus,
    PaymentMethod,
)
