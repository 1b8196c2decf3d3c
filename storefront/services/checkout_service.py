# storefront/services/checkout_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from storefront.domain.errors import (
    CartEmpty,
    InvalidAddress,
    OutOfStock,
    ServerError,
    StoreError,
    Unauthenticated,
)
from storefront.domain.schemas import AddressIn
from storefront.domain.values import Address, RequestContext
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.promotion_repo import PromotionRepo
from storefront.services.notification_service import NotificationService
from storefront.services.pricing import apply_promotion, cart_total, line_total
from storefront.utils.settings import CURRENCY, DEFAULT_COUNTRY, PAYMENT_METHOD, SETTLEMENT_PROVIDER
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_ADDRESS_FIELDS = ("first_name", "last_name", "line1", "postal_code", "city")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def to_address(kind: str, payload: AddressIn) -> Address:
    for field in REQUIRED_ADDRESS_FIELDS:
        if not _clean(getattr(payload, field)):
            raise InvalidAddress(f"{kind} address: {field} missing", missing=field, address=kind)

    return Address(
        first_name=_clean(payload.first_name),
        last_name=_clean(payload.last_name),
        line1=_clean(payload.line1),
        postal_code=_clean(payload.postal_code),
        city=_clean(payload.city),
        country=_clean(payload.country) or DEFAULT_COUNTRY,
        phone=_clean(payload.phone),
        line2=_clean(payload.line2),
    )


class CheckoutService:
    """
    Turns the caller's cart into a pending order.

    Validation (auth, addresses, empty cart, stock) happens before any write.
    The write phase (order, lines, stock, payment, cart clearing) is one
    transaction: it either commits as a whole or is rolled back as a whole.
    """

    def __init__(self, db: Session, notification_service: NotificationService | None = None):
        self.db = db
        self.carts = CartRepo(db)
        self.orders = OrderRepo(db)
        self.promotions = PromotionRepo(db)
        self.notification_service = notification_service or NotificationService()

    def checkout(
        self,
        ctx: RequestContext,
        shipping: AddressIn,
        billing: AddressIn | None = None,
        promo_code: str | None = None,
    ) -> Dict[str, Any]:
        if not ctx.is_authenticated:
            raise Unauthenticated()

        shipping_address = to_address("shipping", shipping)
        billing_address = to_address("billing", billing) if billing is not None else shipping_address

        try:
            order_id, total = self._place_order(ctx.user_id, shipping_address, billing_address, _clean(promo_code))
        except StoreError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.exception(f"Checkout failed for user {ctx.user_id}")
            raise ServerError()

        logger.info(f"Order {order_id} created for user {ctx.user_id}, total {total}")
        self.notification_service.send_order_placed(ctx.user_id, order_id, total)

        return {"ok": True, "order_id": order_id, "total": total}

    def _place_order(
        self,
        user_id: int,
        shipping: Address,
        billing: Address,
        promo_code: str | None,
    ) -> tuple[int, Decimal]:
        # 1) caller cart
        cart = self.carts.get_user_cart(user_id)
        if not cart:
            raise CartEmpty()

        # 2) lines with live price and stock
        lines = self.carts.get_checkout_lines(cart.id)
        if not lines:
            raise CartEmpty()

        # 3) stock check, first bad line aborts everything
        for li in lines:
            if li.quantity < 1 or li.quantity > li.stock:
                logger.warning(
                    f"Checkout rejected for user {user_id}: variation {li.variation_id} "
                    f"wants {li.quantity}, stock {li.stock}"
                )
                raise OutOfStock(variation_id=li.variation_id)

        # 4) total + optional promotion, unknown/inactive codes are ignored
        total = cart_total(lines)
        if promo_code:
            promo = self.promotions.get_promotion(promo_code)
            total = apply_promotion(total, promo)

        # 5) writes, single transaction
        order = self.orders.create_order(
            user_id=user_id,
            cart_id=cart.id,
            shipping=shipping,
            billing=billing,
            total=total,
            currency=CURRENCY,
        )

        for li in lines:
            self.orders.insert_order_line(order.id, li, line_total(li))
            if not self.orders.decrement_stock(li.variation_id, li.quantity):
                #stock changed after the check (concurrent checkout)
                logger.warning(
                    f"Stock race on variation {li.variation_id} during checkout of user {user_id}"
                )
                raise OutOfStock(variation_id=li.variation_id)

        self.orders.insert_pending_payment(order.id, total, method=PAYMENT_METHOD, provider=SETTLEMENT_PROVIDER)
        self.carts.clear_lines(cart.id)
        self.carts.touch(cart)

        order_id = order.id
        self.db.commit()

        return order_id, total
