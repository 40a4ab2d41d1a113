# storefront/tasks/abandoned_carts.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.data.redis_client import get_redis
from storefront.repos.cart_repo import CartRepo
from storefront.services.abandoned_cart_service import AbandonedCartService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.abandoned_carts.send_abandoned_cart_reminders_task")
def send_abandoned_cart_reminders_task():
    logger.info("Abandoned cart reminders task started")

    db = SessionLocal()
    try:
        svc = AbandonedCartService(db, CartRepo(get_redis()))
        return svc.dispatch_due_reminders()
    finally:
        db.close()
