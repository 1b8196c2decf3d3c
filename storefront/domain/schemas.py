# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime


class AddressIn(BaseModel):
    """
    Address as sent by the client. Every field is optional here,
    required fields are checked by the checkout service so the error names the field.
    """

    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    line1: str | None = None
    line2: str | None = None
    postal_code: str | None = None
    city: str | None = None
    country: str | None = None


class CheckoutIn(BaseModel):
    """Schema for checkout. Billing falls back to shipping."""

    shipping: AddressIn = Field(default_factory=AddressIn)
    billing: AddressIn | None = None
    promo_code: str | None = Field(None, max_length=64)


class CheckoutOut(BaseModel):
    ok: bool = True
    order_id: int = Field(..., serialization_alias="orderId")
    total: Decimal


class SettleOut(BaseModel):
    ok: bool = True
    paid: bool = True


class ItemIn(BaseModel):
    """Schema for adding a variation to the cart."""

    variation_id: int = Field(..., gt=0, description="Variation id (must be > 0)")
    quantity: int = Field(1, description="Quantity, floored at 1 and capped at 999")


class ItemQuantityIn(BaseModel):
    """Sets a line quantity; <= 0 removes the line."""

    quantity: int = 0


class CartItemOut(BaseModel):
    variation_id: int
    product_id: int
    product_name: str
    sku: str
    size: str | None = None
    color: str | None = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    stock_available: int


class CartTotalsOut(BaseModel):
    count_items: int
    total_qty: int
    total_amount: Decimal


class CartOut(BaseModel):
    ok: bool = True
    items: List[CartItemOut]
    totals: CartTotalsOut


class OrderSummaryOut(BaseModel):
    id: int
    status: str
    total: Decimal
    currency: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderListOut(BaseModel):
    ok: bool = True
    items: List[OrderSummaryOut]


class AddressOut(BaseModel):
    first_name: str
    last_name: str
    phone: str | None = None
    line1: str
    line2: str | None = None
    postal_code: str
    city: str
    country: str


class OrderOut(BaseModel):
    id: int
    user_id: int
    status: str
    total: Decimal
    currency: str
    paid: bool
    shipping: AddressOut
    billing: AddressOut
    created_at: datetime


class OrderLineOut(BaseModel):
    id: int
    product_id: int
    variation_id: int
    product_name: str
    variation_label: str | None = None
    unit_price: Decimal
    quantity: int
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class PaymentOut(BaseModel):
    id: int
    amount: Decimal
    method: str
    status: str
    provider: str
    transaction_ref: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderDetailOut(BaseModel):
    ok: bool = True
    order: OrderOut
    items: List[OrderLineOut]
    payments: List[PaymentOut]


class UserCreate(BaseModel):
    """Schema for registering a user provisioned by the auth gateway."""

    id: int = Field(..., gt=0, description="User id (must be > 0)")
    name: str = Field(..., min_length=1, max_length=100)
    email: str | None = Field(None, max_length=255)
    role: str = Field("client", pattern="^(client|admin)$")


class UserRead(BaseModel):
    id: int
    name: str
    email: str | None = None
    role: str

    model_config = ConfigDict(from_attributes=True)
