# storefront/repos/order_repo.py
from decimal import Decimal
from typing import List
from uuid import uuid4

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.data.models.catalog import VariationModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_line import OrderLineModel
from storefront.data.models.payment import PaymentModel
from storefront.domain.values import Address, CartLine


def _address_columns(prefix: str, address: Address) -> dict:
    return {
        f"{prefix}_first_name": address.first_name,
        f"{prefix}_last_name": address.last_name,
        f"{prefix}_phone": address.phone,
        f"{prefix}_line1": address.line1,
        f"{prefix}_line2": address.line2,
        f"{prefix}_postal_code": address.postal_code,
        f"{prefix}_city": address.city,
        f"{prefix}_country": address.country,
    }


def new_transaction_ref() -> str:
    return f"pi_{uuid4().hex}"


class OrderRepo:
    """
    Order writer + order reads.
    Write methods never commit, they run inside the caller's transaction
    and do not re-check business rules.
    """

    def __init__(self, db: Session):
        self.db = db

    # =====================================================
    # WRITES
    # =====================================================
    def create_order(
        self,
        user_id: int,
        cart_id: int | None,
        shipping: Address,
        billing: Address,
        total: Decimal,
        currency: str,
    ) -> OrderModel:
        order = OrderModel(
            user_id=user_id,
            cart_id=cart_id,
            status="pending",
            total=total,
            currency=currency,
            **_address_columns("shipping", shipping),
            **_address_columns("billing", billing),
        )
        self.db.add(order)
        self.db.flush()
        return order

    def insert_order_line(self, order_id: int, line: CartLine, line_total: Decimal) -> OrderLineModel:
        order_line = OrderLineModel(
            order_id=order_id,
            product_id=line.product_id,
            variation_id=line.variation_id,
            product_name=line.product_name,
            variation_label=line.variation_label,
            unit_price=line.unit_price,
            quantity=line.quantity,
            line_total=line_total,
        )
        self.db.add(order_line)
        return order_line

    def decrement_stock(self, variation_id: int, quantity: int) -> bool:
        # stock >= quantity in WHERE, rowcount 0 means someone else took it first
        result = self.db.execute(
            update(VariationModel)
            .where(
                VariationModel.id == variation_id,
                VariationModel.stock >= quantity,
            )
            .values(stock=VariationModel.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def insert_pending_payment(self, order_id: int, amount: Decimal, method: str, provider: str) -> PaymentModel:
        payment = PaymentModel(
            order_id=order_id,
            amount=amount,
            method=method,
            status="pending",
            provider=provider,
        )
        self.db.add(payment)
        return payment

    def insert_validated_payment(self, order_id: int, amount: Decimal, method: str, provider: str) -> PaymentModel:
        payment = PaymentModel(
            order_id=order_id,
            amount=amount,
            method=method,
            status="validated",
            provider=provider,
            transaction_ref=new_transaction_ref(),
        )
        self.db.add(payment)
        return payment

    def set_order_paid(self, order: OrderModel) -> None:
        order.status = "paid"

    # =====================================================
    # READS
    # =====================================================
    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_for_update(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.id == order_id).with_for_update()
        ).scalar_one_or_none()

    def list_for_user(self, user_id: int) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.id.desc())
            ).scalars().all()
        )

    def get_order_lines(self, order_id: int) -> List[OrderLineModel]:
        return list(
            self.db.execute(
                select(OrderLineModel)
                .where(OrderLineModel.order_id == order_id)
                .order_by(OrderLineModel.id)
            ).scalars().all()
        )

    def get_payments(self, order_id: int) -> List[PaymentModel]:
        return list(
            self.db.execute(
                select(PaymentModel)
                .where(PaymentModel.order_id == order_id)
                .order_by(PaymentModel.id)
            ).scalars().all()
        )
