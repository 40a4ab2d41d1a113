# storefront/services/inventory_service.py
from dataclasses import dataclass, asdict
from itertools import groupby

from sqlalchemy.orm import Session

from storefront.repos.catalog_repo import CatalogRepo
from storefront.services.notification_service import NotificationService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LowStockItem:
    store_id: int
    product_id: int
    variant_id: int | None
    combination_id: int | None
    name: str
    quantity: int
    threshold: int


class InventoryService:
    """
    Alerty niskiego stanu dla sprzedawcow.
    Sprawdzamy kazdy sledzony licznik: produkt bez wariantow, wariant, kombinacje.
    """

    def __init__(self, db: Session, notification_service: NotificationService | None = None):
        self.catalog = CatalogRepo(db)
        self.notification_service = notification_service or NotificationService()

    def low_stock(self, store_id: int | None = None) -> list[LowStockItem]:
        items = [
            LowStockItem(
                store_id=product.store_id,
                product_id=product.id,
                variant_id=None,
                combination_id=None,
                name=product.name,
                quantity=product.quantity,
                threshold=product.low_stock_threshold,
            )
            for product in self.catalog.low_stock_products(store_id)
        ]
        items += [
            LowStockItem(
                store_id=product.store_id,
                product_id=product.id,
                variant_id=variant.id,
                combination_id=None,
                name=f"{product.name} - {variant.name}",
                quantity=variant.quantity,
                threshold=threshold,
            )
            for variant, product, threshold in self.catalog.low_stock_variants(store_id)
        ]
        items += [
            LowStockItem(
                store_id=product.store_id,
                product_id=product.id,
                variant_id=None,
                combination_id=combination.id,
                name=f"{product.name} - {combination.name}",
                quantity=combination.quantity,
                threshold=threshold,
            )
            for combination, product, threshold in self.catalog.low_stock_combinations(store_id)
        ]
        return sorted(items, key=lambda item: (item.store_id, item.quantity, item.product_id))

    def send_low_stock_alerts(self) -> dict:
        """One alert per store with everything at or below its threshold."""
        items = self.low_stock()
        sent = failed = 0
        for store_id, group in groupby(items, key=lambda item: item.store_id):
            payload = [asdict(item) for item in group]
            if self.notification_service.send_low_stock_alert(store_id, payload):
                sent += 1
            else:
                failed += 1
                logger.error(f"Low stock alert for store {store_id} was not sent")

        logger.info(f"Low stock check: {len(items)} items, {sent} stores alerted, {failed} failed")
        return {"items": len(items), "sent": sent, "failed": failed}
