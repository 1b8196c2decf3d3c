# storefront/domain/values.py
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class RequestContext:
    user_id: int = 0
    role: str = "client"

    @property
    def is_authenticated(self) -> bool:
        return self.user_id > 0

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True)
class Address:
    first_name: str
    last_name: str
    line1: str
    postal_code: str
    city: str
    country: str
    phone: str | None = None
    line2: str | None = None


@dataclass(frozen=True)
class CartLine:
    """Cart line joined with live variation/product state."""

    variation_id: int
    product_id: int
    product_name: str
    variation_label: str | None
    quantity: int
    unit_price: Decimal
    stock: int


@dataclass(frozen=True)
class Promotion:
    kind: str  # percentage, fixed
    value: Decimal
    active: bool
