from unittest.mock import patch

from storefront.services.notification_service import NotificationService, send_order_notification_task


def test_service_queues_task():
    with patch("storefront.services.notification_service.send_order_notification_task.delay") as delay:
        NotificationService.send_order_notification(10, "a@example.com", 42)

    delay.assert_called_once_with(10, "a@example.com", 42)


def test_task_body():
    result = send_order_notification_task.run(10, "a@example.com")

    assert result == {"order_id": 10, "customer_email": "a@example.com", "status": "sent"}
