# storefront/tasks/maintenance.py
from sqlalchemy import select

from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.data.models.vendor_store import VendorStoreModel
from storefront.data.redis_client import get_redis
from storefront.repos.cart_repo import CartRepo
from storefront.repos.catalog_repo import CatalogRepo
from storefront.services.inventory_service import InventoryService
from storefront.services.order_service import OrderService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.maintenance.reset_tenant_order_usage_task")
def reset_tenant_order_usage_task():
    """Poczatek okresu rozliczeniowego, licznik zamowien tenantow od zera."""
    db = SessionLocal()
    try:
        count = CatalogRepo(db).reset_order_usage()
        db.commit()
        logger.info(f"Reset monthly order usage for {count} tenants")
        return {"tenants": count}
    finally:
        db.close()


@celery_app.task(name="storefront.tasks.maintenance.reconcile_store_aggregates_task")
def reconcile_store_aggregates_task():
    logger.info("Reconcile store aggregates task started")

    db = SessionLocal()
    try:
        svc = OrderService(db, CartRepo(get_redis()))
        store_ids = db.execute(select(VendorStoreModel.id).order_by(VendorStoreModel.id)).scalars().all()

        repaired = 0
        for store_id in store_ids:
            try:
                svc.reconcile_store_aggregates(store_id)
                repaired += 1
            except Exception as e:
                db.rollback()
                logger.error(f"Failed to reconcile aggregates for store {store_id}: {e}")

        return {"stores": len(store_ids), "reconciled": repaired}
    finally:
        db.close()


@celery_app.task(name="storefront.tasks.maintenance.check_low_stock_task")
def check_low_stock_task():
    logger.info("Low stock check task started")

    db = SessionLocal()
    try:
        return InventoryService(db).send_low_stock_alerts()
    finally:
        db.close()
