# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Serwis do wysylania powiadomien.
    Uzywa Celery do asynchronicznego przetwarzania, blad wysylki nie psuje zamowienia.
    """

    def send_order_confirmation(self, order_id: int, customer_email: str) -> bool:
        try:
            send_order_confirmation_task.delay(order_id, customer_email)
            return True
        except Exception as e:
            logger.error(f"Failed to enqueue confirmation for order {order_id}: {e}")
            return False

    def send_cart_recovery(self, abandoned_cart_id: int, customer_email: str, recovery_url: str,
                           discount_code: str, stage: int) -> bool:
        try:
            send_cart_recovery_task.delay(abandoned_cart_id, customer_email, recovery_url, discount_code, stage)
            return True
        except Exception as e:
            logger.error(f"Failed to enqueue recovery reminder for cart {abandoned_cart_id}: {e}")
            return False

    def send_refund_confirmation(self, order_id: int, customer_email: str) -> bool:
        try:
            send_refund_confirmation_task.delay(order_id, customer_email)
            return True
        except Exception as e:
            logger.error(f"Failed to enqueue refund confirmation for order {order_id}: {e}")
            return False

    def send_low_stock_alert(self, store_id: int, items: list[dict]) -> bool:
        try:
            send_low_stock_alert_task.delay(store_id, items)
            return True
        except Exception as e:
            logger.error(f"Failed to enqueue low stock alert for store {store_id}: {e}")
            return False

@celery_app.task(name="storefront.services.notification_service.send_order_confirmation_task")
def send_order_confirmation_task(order_id: int, customer_email: str):
    """
    Celery task - dostarczanie maili jest poza tym serwisem, tutaj tylko log.
    """
    logger.info(f"[NOTIFICATION] Order {order_id} confirmation for {customer_email}")
    return {"order_id": order_id, "status": "sent"}


@celery_app.task(name="storefront.services.notification_service.send_cart_recovery_task")
def send_cart_recovery_task(abandoned_cart_id: int, customer_email: str, recovery_url: str,
                            discount_code: str, stage: int):
    logger.info(
        f"[NOTIFICATION] Cart recovery reminder #{stage} for cart {abandoned_cart_id} "
        f"to {customer_email}: {recovery_url} (code {discount_code})"
    )
    return {"abandoned_cart_id": abandoned_cart_id, "stage": stage, "status": "sent"}


@celery_app.task(name="storefront.services.notification_service.send_refund_confirmation_task")
def send_refund_confirmation_task(order_id: int, customer_email: str):
    logger.info(f"[NOTIFICATION] Order {order_id} refund confirmation for {customer_email}")
    return {"order_id": order_id, "status": "sent"}


@celery_app.task(name="storefront.services.notification_service.send_low_stock_alert_task")
def send_low_stock_alert_task(store_id: int, items: list[dict]):
    names = ", ".join(f"{item['name']} ({item['quantity']} left)" for item in items)
    logger.info(f"[NOTIFICATION] Low stock alert for store {store_id}: {names}")
    return {"store_id": store_id, "items": len(items), "status": "sent"}
