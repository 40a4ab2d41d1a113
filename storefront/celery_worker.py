# storefront/celery_worker.py
from celery import Celery
from celery.schedules import crontab

from storefront.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAZNE: explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "storefront.tasks.abandoned_carts",
    "storefront.tasks.maintenance",
    "storefront.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "abandoned-cart-reminders-hourly": {
        "task": "storefront.tasks.abandoned_carts.send_abandoned_cart_reminders_task",
        "schedule": 60.0 * 60,
    },
    "reset-tenant-order-usage-monthly": {
        "task": "storefront.tasks.maintenance.reset_tenant_order_usage_task",
        "schedule": crontab(minute=0, hour=0, day_of_month=1),
    },
    "reconcile-store-aggregates-nightly": {
        "task": "storefront.tasks.maintenance.reconcile_store_aggregates_task",
        "schedule": crontab(minute=30, hour=3),
    },
    "check-low-stock-daily": {
        "task": "storefront.tasks.maintenance.check_low_stock_task",
        "schedule": crontab(minute=0, hour=9),
    },
}

celery_app.conf.timezone = "UTC"
