# storefront/services/pricing.py
"""
Cart pricing and discount-code rules.

Everything here is pure: no database, no clock reads (callers pass `now`),
no I/O. Amounts are Decimal; rounding to cents happens only in `money()`
and `price_breakdown()`, so the raw helpers keep exact arithmetic.
"""
import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Protocol

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")

INVALID_CODE_MESSAGE = "Invalid or expired discount code"


class DiscountRejection(str, enum.Enum):
    INACTIVE = "inactive"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"


class DiscountCodeLike(Protocol):
    """Anything carrying the discount-code fields (ORM row or schema)."""
    code: str
    percentage: int
    active: bool
    expires_at: Optional[datetime]
    max_uses: Optional[int]
    current_uses: int


@dataclass
class CartLineItem:
    product_id: str
    name: str
    price: Decimal
    quantity: int = 1
    color: Optional[str] = None
    size: Optional[str] = None
    discount: Optional[Decimal] = None  # sale percentage, already reflected in price

    def __post_init__(self):
        self.price = Decimal(str(self.price))
        if self.price < 0:
            raise ValueError("Line item price must not be negative")
        if self.quantity < 1:
            raise ValueError("Line item quantity must be at least 1")

    def matches(self, product_id: str, color: Optional[str] = None, size: Optional[str] = None) -> bool:
        return self.product_id == product_id and self.color == color and self.size == size

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class AppliedDiscount:
    code: str
    percentage: int


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    discount: Decimal
    delivery_fee: Decimal
    total: Decimal
    discount_code: Optional[str] = None
    percentage: Optional[int] = None


# --------------------------
# Arithmetic
# --------------------------
def money(value) -> Decimal:
    """Round to cents, half-up, the way amounts are shown and stored."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_subtotal(items: Iterable[CartLineItem]) -> Decimal:
    return sum((Decimal(str(item.price)) * item.quantity for item in items), ZERO)


def apply_discount(subtotal, percentage) -> Decimal:
    subtotal = Decimal(str(subtotal))
    percentage = Decimal(str(percentage))
    if subtotal < 0:
        raise ValueError("Subtotal must not be negative")
    if not (0 <= percentage <= 100):
        raise ValueError("Percentage must be between 0 and 100")
    return subtotal * percentage / 100


def compute_total(subtotal, discount, delivery_fee) -> Decimal:
    return Decimal(str(subtotal)) - Decimal(str(discount)) + Decimal(str(delivery_fee))


def price_breakdown(
    items: Iterable[CartLineItem],
    applied: Optional[AppliedDiscount] = None,
    delivery_fee=ZERO,
) -> PriceBreakdown:
    """
    Price a cart for display or persistence.

    Subtotal, discount and delivery fee are rounded individually and the
    total is derived from the rounded parts, so
    `total == subtotal - discount + delivery_fee` holds to the cent.
    """
    subtotal = money(compute_subtotal(items))
    discount = money(apply_discount(subtotal, applied.percentage)) if applied else money(ZERO)
    fee = money(delivery_fee)
    return PriceBreakdown(
        subtotal=subtotal,
        discount=discount,
        delivery_fee=fee,
        total=compute_total(subtotal, discount, fee),
        discount_code=applied.code if applied else None,
        percentage=applied.percentage if applied else None,
    )


# --------------------------
# Discount code rules
# --------------------------
def normalize_code(code: str) -> str:
    return code.strip().upper()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def discount_rejection(code: DiscountCodeLike, now: datetime) -> Optional[DiscountRejection]:
    """Return the first rule the code fails, or None if it can be applied."""
    if not code.active:
        return DiscountRejection.INACTIVE
    if code.expires_at is not None and _as_utc(code.expires_at) <= _as_utc(now):
        return DiscountRejection.EXPIRED
    if code.max_uses is not None and (code.current_uses or 0) >= code.max_uses:
        return DiscountRejection.EXHAUSTED
    return None


def validate_discount_code(code: DiscountCodeLike, now: datetime) -> bool:
    reason = discount_rejection(code, now)
    if reason is not None:
        logger.info("Discount code %s rejected: %s", code.code, reason.value)
        return False
    return True


# --------------------------
# Cart
# --------------------------
class DiscountLookup(Protocol):
    def __call__(self, code: str) -> Optional[DiscountCodeLike]: ...


@dataclass
class Cart:
    """In-memory shopper cart; mirrors what a storefront keeps client-side."""
    items: List[CartLineItem] = field(default_factory=list)
    applied_discount: Optional[AppliedDiscount] = None

    def _find(self, product_id, color=None, size=None) -> Optional[CartLineItem]:
        return next((i for i in self.items if i.matches(product_id, color, size)), None)

    def add_item(self, item: CartLineItem) -> None:
        existing = self._find(item.product_id, item.color, item.size)
        if existing:
            existing.quantity += item.quantity
        else:
            self.items.append(item)

    def remove_item(self, product_id: str, color: Optional[str] = None, size: Optional[str] = None) -> None:
        self.items = [i for i in self.items if not i.matches(product_id, color, size)]

    def update_quantity(self, product_id: str, quantity: int, color: Optional[str] = None, size: Optional[str] = None) -> None:
        if quantity <= 0:
            self.remove_item(product_id, color, size)
            return
        existing = self._find(product_id, color, size)
        if existing:
            existing.quantity = quantity

    def clear(self) -> None:
        self.items = []
        self.applied_discount = None

    def apply_discount_code(self, code: str, lookup: DiscountLookup, now: datetime) -> bool:
        """
        Look the code up and keep it if it validates.

        Returns False for unknown, inactive, expired or used-up codes and
        leaves any previously applied code in place.
        """
        if not code or not code.strip():
            return False
        record = lookup(normalize_code(code))
        if record is None or not validate_discount_code(record, now):
            return False
        self.applied_discount = AppliedDiscount(code=record.code, percentage=record.percentage)
        return True

    def remove_discount_code(self) -> None:
        self.applied_discount = None

    @property
    def subtotal(self) -> Decimal:
        return compute_subtotal(self.items)

    @property
    def discount(self) -> Decimal:
        if self.applied_discount is None:
            return ZERO
        return apply_discount(self.subtotal, self.applied_discount.percentage)

    def total(self, delivery_fee=ZERO) -> Decimal:
        return compute_total(self.subtotal, self.discount, delivery_fee)

    def breakdown(self, delivery_fee=ZERO) -> PriceBreakdown:
        return price_breakdown(self.items, self.applied_discount, delivery_fee)
