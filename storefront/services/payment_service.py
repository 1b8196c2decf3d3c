# storefront/services/payment_service.py
from typing import Any, Dict

from sqlalchemy.orm import Session

from storefront.domain.errors import AlreadyPaid, Forbidden, NotFound, ServerError, StoreError, Unauthenticated
from storefront.domain.values import RequestContext
from storefront.repos.order_repo import OrderRepo
from storefront.services.notification_service import NotificationService
from storefront.utils.settings import PAYMENT_METHOD, SETTLEMENT_PROVIDER
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentService:
    """
    Settlement of pending orders (mock provider).
    The order row is locked for the whole transaction, so two settlements
    of the same order run one after the other and the second one sees "paid".
    """

    def __init__(self, db: Session, notification_service: NotificationService | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.notification_service = notification_service or NotificationService()

    def settle(self, ctx: RequestContext, order_id: int) -> Dict[str, Any]:
        if not ctx.is_authenticated:
            raise Unauthenticated()

        try:
            order = self.repo.get_order_for_update(order_id)

            if not order:
                raise NotFound()

            if order.user_id != ctx.user_id:
                raise Forbidden()

            if order.status == "paid":
                logger.warning(f"Order {order_id} already paid, settlement rejected")
                raise AlreadyPaid(order_id=order_id)

            self.repo.set_order_paid(order)
            payment = self.repo.insert_validated_payment(
                order.id,
                order.total,
                method=PAYMENT_METHOD,
                provider=SETTLEMENT_PROVIDER,
            )
            self.db.flush()
            transaction_ref = payment.transaction_ref

            self.db.commit()
        except StoreError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.exception(f"Settlement failed for order {order_id}")
            raise ServerError()

        logger.info(f"Order {order_id} settled by user {ctx.user_id}, ref {transaction_ref}")
        self.notification_service.send_order_paid(ctx.user_id, order_id)

        return {"ok": True, "paid": True}
