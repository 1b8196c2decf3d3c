# storefront/services/order_service.py
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.domain.errors import Forbidden, NotFound, Unauthenticated
from storefront.domain.schemas import OrderLineOut, PaymentOut
from storefront.domain.values import RequestContext
from storefront.repos.order_repo import OrderRepo


_ADDRESS_FIELDS = ("first_name", "last_name", "phone", "line1", "line2", "postal_code", "city", "country")


def _address(order: OrderModel, prefix: str) -> dict:
    return {f: getattr(order, f"{prefix}_{f}") for f in _ADDRESS_FIELDS}


class OrderService:
    """
    Read side of orders (order history, order detail).
    Orders are created by CheckoutService and paid by PaymentService.
    """

    def __init__(self, db: Session):
        self.repo = OrderRepo(db)

    def list_orders(self, ctx: RequestContext):
        """
        Use Case: caller's orders, newest first (Query).
        """
        if not ctx.is_authenticated:
            raise Unauthenticated()

        orders = self.repo.list_for_user(ctx.user_id)
        return {
            "ok": True,
            "items": [
                {
                    "id": o.id,
                    "status": o.status,
                    "total": o.total,
                    "currency": o.currency,
                    "created_at": o.created_at,
                }
                for o in orders
            ],
        }

    def get_order(self, ctx: RequestContext, order_id: int):
        """
        Use Case: order detail with lines and payments (Query).
        Visible to its owner and to admins.
        """
        if not ctx.is_authenticated:
            raise Unauthenticated()

        order = self.repo.get_order(order_id)

        if not order:
            raise NotFound()

        if not ctx.is_admin and order.user_id != ctx.user_id:
            raise Forbidden()

        lines = self.repo.get_order_lines(order_id)
        payments = self.repo.get_payments(order_id)
        paid = any(p.status == "validated" for p in payments)

        return {
            "ok": True,
            "order": {
                "id": order.id,
                "user_id": order.user_id,
                "status": order.status,
                "total": order.total,
                "currency": order.currency,
                "paid": paid,
                "shipping": _address(order, "shipping"),
                "billing": _address(order, "billing"),
                "created_at": order.created_at,
            },
            "items": [OrderLineOut.model_validate(li) for li in lines],
            "payments": [PaymentOut.model_validate(p) for p in payments],
        }
