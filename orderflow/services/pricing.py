"""
Pricing & Coupon Engine

compute_totals is a pure function over a cart snapshot and an optional
coupon. Coupon eligibility (active, validity window, minimum order) is
checked by the caller with check_coupon_applicable before pricing.
"""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from pydantic import BaseModel

from orderflow.config import Settings, settings as default_settings
from orderflow.exceptions import CouponNotApplicable
from orderflow.models.coupon import Coupon, CouponType
from orderflow.utils import as_utc

MINOR_UNIT = Decimal("0.01")
ZERO = Decimal("0")


def quantize_money(amount) -> Decimal:
    """Round to the currency minor unit"""
    return Decimal(str(amount)).quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Amount in paise/cents, as payment gateways expect"""
    return int((quantize_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


class PricingConfig(BaseModel):
    """Pricing constants"""
    free_shipping_threshold: Decimal = Decimal("500")
    flat_shipping_cost: Decimal = Decimal("50")
    tax_rate: Decimal = Decimal("0.18")

    @classmethod
    def from_settings(cls, settings: Settings) -> "PricingConfig":
        return cls(
            free_shipping_threshold=settings.FREE_SHIPPING_THRESHOLD,
            flat_shipping_cost=settings.FLAT_SHIPPING_COST,
            tax_rate=settings.TAX_RATE,
        )


class LineItem(BaseModel):
    """Price and quantity of one cart line"""
    price: Decimal
    quantity: int


class OrderTotals(BaseModel):
    """Result of pricing a cart"""
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal


def compute_discount(coupon: Optional[Coupon], subtotal: Decimal, shipping: Decimal) -> Decimal:
    if coupon is None:
        return ZERO

    value = Decimal(str(coupon.value or 0))

    if coupon.type == CouponType.PERCENTAGE:
        discount = subtotal * value / Decimal("100")
        if coupon.max_discount_amount is not None:
            discount = min(discount, Decimal(str(coupon.max_discount_amount)))
        return quantize_money(discount)

    if coupon.type == CouponType.FIXED_AMOUNT:
        return quantize_money(value)

    if coupon.type == CouponType.FREE_SHIPPING:
        return shipping

    return ZERO


def compute_totals(items: Iterable[LineItem], coupon: Optional[Coupon] = None,
                   config: Optional[PricingConfig] = None) -> OrderTotals:
    """
    Compute subtotal, shipping, tax, discount and total for a cart

    Args:
        items: Lines with price and quantity
        coupon: Coupon already checked with check_coupon_applicable
        config: Pricing constants (defaults to application settings)

    Returns:
        OrderTotals where total = subtotal + shipping + tax - discount and
        the discount never exceeds the bill, so total is never negative
    """
    config = config or PricingConfig.from_settings(default_settings)

    subtotal = quantize_money(sum((Decimal(str(item.price)) * item.quantity for item in items), ZERO))
    shipping = ZERO if subtotal > config.free_shipping_threshold else quantize_money(config.flat_shipping_cost)
    tax = quantize_money(subtotal * config.tax_rate)
    # Discount is capped at the bill
    discount = min(compute_discount(coupon, subtotal, shipping), subtotal + shipping + tax)
    total = subtotal + shipping + tax - discount

    return OrderTotals(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        discount=discount,
        total=quantize_money(total),
    )


def check_coupon_applicable(coupon: Coupon, subtotal: Decimal, now: datetime) -> None:
    """
    Raise CouponNotApplicable unless the coupon can be applied to this cart
    """
    if not coupon.is_active:
        raise CouponNotApplicable(coupon.code, "coupon is not active")

    if coupon.valid_from is not None and now < as_utc(coupon.valid_from):
        raise CouponNotApplicable(coupon.code, "coupon is not yet valid")

    if coupon.valid_until is not None and now > as_utc(coupon.valid_until):
        raise CouponNotApplicable(coupon.code, "coupon has expired")

    if coupon.min_order_amount is not None and subtotal < Decimal(str(coupon.min_order_amount)):
        raise CouponNotApplicable(
            coupon.code,
            f"minimum order amount is {quantize_money(coupon.min_order_amount)}"
        )
