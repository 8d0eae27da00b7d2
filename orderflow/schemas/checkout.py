"""
Pydantic schemas for checkout quotes
"""
from typing import List, Optional

from pydantic import Field

from orderflow.models.coupon import CouponType
from orderflow.schemas.base import CamelModel, Money


class QuoteItemRequest(CamelModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)


class CheckoutCalculateRequest(CamelModel):
    """Schema for pricing a cart without placing an order"""
    items: List[QuoteItemRequest] = Field(..., min_length=1)
    coupon_code: Optional[str] = Field(None, max_length=64)


class QuoteLine(CamelModel):
    product_id: int
    name: str
    price: Money
    mrp: Money
    quantity: int
    subtotal: Money


class QuotePricing(CamelModel):
    subtotal: Money
    total_mrp: Money
    total_savings: Money
    shipping_cost: Money
    tax_amount: Money
    discount_amount: Money
    total: Money


class CouponDetails(CamelModel):
    code: str
    name: Optional[str] = None
    type: CouponType
    value: Money
    discount: Money


class QuoteBreakdown(CamelModel):
    item_count: int
    total_quantity: int
    free_shipping_eligible: bool
    coupon_applied: bool
    coupon_details: Optional[CouponDetails] = None


class CheckoutQuoteResponse(CamelModel):
    """Schema for a checkout quote"""
    items: List[QuoteLine]
    pricing: QuotePricing
    breakdown: QuoteBreakdown


class CheckoutValidateRequest(CamelModel):
    """Schema for checking a cart against the catalog and stock"""
    items: List[QuoteItemRequest] = Field(..., min_length=1)


class ValidatedProduct(CamelModel):
    id: int
    name: str
    price: Money
    mrp: Money


class ValidatedLine(CamelModel):
    """Result for one cart line"""
    product_id: int
    is_valid: bool
    error: Optional[str] = None
    available_stock: Optional[int] = None
    requested_quantity: Optional[int] = None
    product: Optional[ValidatedProduct] = None


class CheckoutValidateResponse(CamelModel):
    is_valid: bool
    items: List[ValidatedLine]
