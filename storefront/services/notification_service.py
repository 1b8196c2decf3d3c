# storefront/services/notification_service.py
from decimal import Decimal

from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger
from storefront.utils.retry import broker_retry

logger = get_logger(__name__)


class NotificationService:
    """
    Order notifications, processed asynchronously by Celery.
    Called only after commit: a failed dispatch never touches the order.
    """

    def send_order_placed(self, user_id: int, order_id: int, total: Decimal):
        self._dispatch(send_order_placed_task, user_id, order_id, str(total))

    def send_order_paid(self, user_id: int, order_id: int):
        self._dispatch(send_order_paid_task, user_id, order_id)

    def _dispatch(self, task, *args):
        try:
            self._delay(task, *args)
        except Exception as e:
            logger.warning(f"Failed to dispatch {task.name} {args}: {e}")

    @broker_retry()
    def _delay(self, task, *args):
        return task.delay(*args)


@celery_app.task(name="storefront.services.notification_service.send_order_placed_task")
def send_order_placed_task(user_id: int, order_id: int, total: str):
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} placed, total {total}")
    return {"user_id": user_id, "order_id": order_id, "event": "placed"}


@celery_app.task(name="storefront.services.notification_service.send_order_paid_task")
def send_order_paid_task(user_id: int, order_id: int):
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} paid")
    return {"user_id": user_id, "order_id": order_id, "event": "paid"}
