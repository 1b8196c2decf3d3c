# storefront/repos/cart_repo.py
from datetime import datetime, timezone
from typing import List

from sqlalchemy import select, delete, func
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_line import CartLineModel
from storefront.data.models.catalog import ProductModel, VariationModel
from storefront.domain.values import CartLine


def _unit_price():
    return func.coalesce(VariationModel.price, ProductModel.price)


def _variation_label(size: str | None, color: str | None) -> str | None:
    parts = [p for p in (size, color) if p]
    return " / ".join(parts) or None


class CartRepo:
    """Cart reads (used by checkout) and the small set of cart writes."""

    def __init__(self, db: Session):
        self.db = db

    #reads
    def get_user_cart(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel)
            .where(CartModel.user_id == user_id)
            .order_by(CartModel.updated_at.desc(), CartModel.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def get_guest_cart(self, token: str) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.token == token)
        ).scalar_one_or_none()

    def get_checkout_lines(self, cart_id: int) -> List[CartLine]:
        rows = self.db.execute(
            select(
                CartLineModel.variation_id,
                CartLineModel.quantity,
                VariationModel.stock,
                VariationModel.size,
                VariationModel.color,
                _unit_price().label("unit_price"),
                ProductModel.id.label("product_id"),
                ProductModel.name.label("product_name"),
            )
            .join(VariationModel, VariationModel.id == CartLineModel.variation_id)
            .join(ProductModel, ProductModel.id == VariationModel.product_id)
            .where(CartLineModel.cart_id == cart_id)
            .order_by(CartLineModel.id)
        ).all()

        return [
            CartLine(
                variation_id=r.variation_id,
                product_id=r.product_id,
                product_name=r.product_name,
                variation_label=_variation_label(r.size, r.color),
                quantity=r.quantity,
                unit_price=r.unit_price,
                stock=r.stock,
            )
            for r in rows
        ]

    def get_snapshot_rows(self, cart_id: int):
        return self.db.execute(
            select(
                CartLineModel.variation_id,
                CartLineModel.quantity,
                VariationModel.sku,
                VariationModel.size,
                VariationModel.color,
                VariationModel.stock.label("stock_available"),
                ProductModel.id.label("product_id"),
                ProductModel.name.label("product_name"),
                _unit_price().label("unit_price"),
            )
            .join(VariationModel, VariationModel.id == CartLineModel.variation_id)
            .join(ProductModel, ProductModel.id == VariationModel.product_id)
            .where(CartLineModel.cart_id == cart_id)
            .order_by(ProductModel.name.asc(), VariationModel.size.asc(), VariationModel.color.asc())
        ).all()

    def get_line(self, cart_id: int, variation_id: int) -> CartLineModel | None:
        return self.db.execute(
            select(CartLineModel).where(
                CartLineModel.cart_id == cart_id,
                CartLineModel.variation_id == variation_id,
            )
        ).scalar_one_or_none()

    def get_active_variation(self, variation_id: int) -> VariationModel | None:
        return self.db.execute(
            select(VariationModel).where(
                VariationModel.id == variation_id,
                VariationModel.is_active.is_(True),
            )
        ).scalar_one_or_none()

    #writes, caller commits
    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.flush()
        return cart

    def add_line(self, line: CartLineModel) -> None:
        self.db.add(line)

    def delete_line(self, cart_id: int, variation_id: int) -> int:
        result = self.db.execute(
            delete(CartLineModel).where(
                CartLineModel.cart_id == cart_id,
                CartLineModel.variation_id == variation_id,
            )
        )
        return result.rowcount

    def clear_lines(self, cart_id: int) -> int:
        result = self.db.execute(
            delete(CartLineModel).where(CartLineModel.cart_id == cart_id)
        )
        return result.rowcount

    def touch(self, cart: CartModel) -> None:
        cart.updated_at = datetime.now(timezone.utc)

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
