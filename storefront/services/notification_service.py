# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Order notifications, processed asynchronously by Celery.
    """

    @staticmethod
    def send_order_notification(order_id: int, customer_email: str, user_id: int | None = None):
        send_order_notification_task.delay(order_id, customer_email, user_id)


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(order_id: int, customer_email: str, user_id: int | None = None):
    """
    Announces a new pending order. Delivery channels (mail, push) plug in here.
    """
    logger.info(f"[NOTIFICATION] Order {order_id} placed for {customer_email} (user {user_id})")
    return {"order_id": order_id, "customer_email": customer_email, "status": "sent"}
