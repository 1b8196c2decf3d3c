# storefront/services/cart_service.py
import secrets
from decimal import Decimal
from typing import Dict, Any, Tuple

from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_line import CartLineModel
from storefront.domain.errors import NotFound
from storefront.domain.values import RequestContext
from storefront.repos.cart_repo import CartRepo
from storefront.services.pricing import ZERO, round_money
from storefront.utils.settings import MAX_LINE_QUANTITY
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Use cases for the cart.
    commands (add, update, remove, clear) change state, query (get) only reads.

    A logged-in user works on their most recent cart, a guest on the cart behind
    the cart token cookie. Every method returns (snapshot, new_token); new_token
    is set only when a guest cart was just created.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)

    #query
    def get_cart(self, ctx: RequestContext, token: str | None) -> Tuple[Dict[str, Any], str | None]:
        cart, new_token = self._ensure_cart(ctx, token)
        return self._snapshot(cart.id), new_token

    #commands
    def add_item(
        self,
        ctx: RequestContext,
        token: str | None,
        variation_id: int,
        quantity: int,
    ) -> Tuple[Dict[str, Any], str | None]:
        quantity = max(1, quantity)

        cart, new_token = self._ensure_cart(ctx, token)

        if not self.repo.get_active_variation(variation_id):
            #cart may have just been created, keep it
            self.repo.commit()
            raise NotFound(f"Variation {variation_id} not found")

        line = self.repo.get_line(cart.id, variation_id)
        if line:
            line.quantity = min(line.quantity + quantity, MAX_LINE_QUANTITY)
        else:
            self.repo.add_line(
                CartLineModel(
                    cart_id=cart.id,
                    variation_id=variation_id,
                    quantity=min(quantity, MAX_LINE_QUANTITY),
                )
            )

        self.repo.touch(cart)
        self.repo.commit()

        logger.info(f"Variation {variation_id} x{quantity} added to cart {cart.id}")

        return self._snapshot(cart.id), new_token

    def update_item(
        self,
        ctx: RequestContext,
        token: str | None,
        variation_id: int,
        quantity: int,
    ) -> Tuple[Dict[str, Any], str | None]:
        cart, new_token = self._ensure_cart(ctx, token)

        if quantity <= 0:
            self.repo.delete_line(cart.id, variation_id)
            logger.info(f"Variation {variation_id} removed from cart {cart.id}")
        else:
            if not self.repo.get_active_variation(variation_id):
                self.repo.commit()
                raise NotFound(f"Variation {variation_id} not found")

            line = self.repo.get_line(cart.id, variation_id)
            if line:
                line.quantity = min(quantity, MAX_LINE_QUANTITY)
            else:
                self.repo.add_line(
                    CartLineModel(
                        cart_id=cart.id,
                        variation_id=variation_id,
                        quantity=min(quantity, MAX_LINE_QUANTITY),
                    )
                )
            logger.info(f"Variation {variation_id} set to x{quantity} in cart {cart.id}")

        self.repo.touch(cart)
        self.repo.commit()

        return self._snapshot(cart.id), new_token

    def remove_item(
        self,
        ctx: RequestContext,
        token: str | None,
        variation_id: int,
    ) -> Tuple[Dict[str, Any], str | None]:
        return self.update_item(ctx, token, variation_id, 0)

    def clear(self, ctx: RequestContext, token: str | None) -> Tuple[Dict[str, Any], str | None]:
        cart, new_token = self._ensure_cart(ctx, token)

        removed = self.repo.clear_lines(cart.id)
        self.repo.touch(cart)
        self.repo.commit()

        logger.info(f"Cart {cart.id} cleared ({removed} lines)")

        return self._snapshot(cart.id), new_token

    #helpers
    def _ensure_cart(self, ctx: RequestContext, token: str | None) -> Tuple[CartModel, str | None]:
        if ctx.is_authenticated:
            cart = self.repo.get_user_cart(ctx.user_id)
            if cart:
                return cart, None

            cart = self.repo.create_cart(CartModel(user_id=ctx.user_id))
            self.repo.commit()
            logger.info(f"Created cart {cart.id} for user {ctx.user_id}")
            return cart, None

        if token:
            cart = self.repo.get_guest_cart(token)
            if cart:
                return cart, None

        new_token = secrets.token_hex(16)
        cart = self.repo.create_cart(CartModel(token=new_token))
        self.repo.commit()
        logger.info(f"Created guest cart {cart.id}")
        return cart, new_token

    def _snapshot(self, cart_id: int) -> Dict[str, Any]:
        rows = self.repo.get_snapshot_rows(cart_id)

        items = []
        total_qty = 0
        total_amount = ZERO
        for r in rows:
            line_total = Decimal(r.unit_price) * r.quantity
            total_qty += r.quantity
            total_amount += line_total
            items.append(
                {
                    "variation_id": r.variation_id,
                    "product_id": r.product_id,
                    "product_name": r.product_name,
                    "sku": r.sku,
                    "size": r.size,
                    "color": r.color,
                    "quantity": r.quantity,
                    "unit_price": r.unit_price,
                    "line_total": round_money(line_total),
                    "stock_available": r.stock_available,
                }
            )

        return {
            "ok": True,
            "items": items,
            "totals": {
                "count_items": len(items),
                "total_qty": total_qty,
                "total_amount": round_money(total_amount),
            },
        }
