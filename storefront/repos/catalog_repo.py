# storefront/repos/catalog_repo.py
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel, VariantModel, VariantCombinationModel
from storefront.data.models.tenant import TenantModel
from storefront.data.models.vendor_store import VendorStoreModel


class CatalogRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_active_product(self, product_id: int) -> ProductModel | None:
        return self.db.execute(
            select(ProductModel).where(
                ProductModel.id == product_id,
                ProductModel.status == "ACTIVE",
            )
        ).scalar_one_or_none()

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_variant(self, product_id: int, variant_id: int) -> VariantModel | None:
        return self.db.execute(
            select(VariantModel).where(
                VariantModel.id == variant_id,
                VariantModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def get_combination(self, product_id: int, combination_id: int) -> VariantCombinationModel | None:
        return self.db.execute(
            select(VariantCombinationModel).where(
                VariantCombinationModel.id == combination_id,
                VariantCombinationModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def get_categories(self, product_ids: list[int]) -> dict[int, str | None]:
        if not product_ids:
            return {}
        rows = self.db.execute(
            select(ProductModel.id, ProductModel.category).where(ProductModel.id.in_(product_ids))
        ).all()
        return {row.id: row.category for row in rows}

    def get_store(self, store_id: int) -> VendorStoreModel | None:
        return self.db.get(VendorStoreModel, store_id)

    def get_tenant(self, tenant_id: int) -> TenantModel | None:
        return self.db.get(TenantModel, tenant_id)

    def next_order_sequence(self, store_id: int) -> int:
        # update bierze lock na wierszu sklepu, select widzi nasza wartosc
        self.db.execute(
            update(VendorStoreModel)
            .where(VendorStoreModel.id == store_id)
            .values(order_sequence=VendorStoreModel.order_sequence + 1)
        )
        return self.db.execute(
            select(VendorStoreModel.order_sequence).where(VendorStoreModel.id == store_id)
        ).scalar_one()

    def add_store_sales(self, store_id: int, orders: int, sales) -> None:
        self.db.execute(
            update(VendorStoreModel)
            .where(VendorStoreModel.id == store_id)
            .values(
                total_orders=VendorStoreModel.total_orders + orders,
                total_sales=VendorStoreModel.total_sales + sales,
            )
        )

    def set_store_aggregates(self, store_id: int, orders: int, sales) -> None:
        self.db.execute(
            update(VendorStoreModel)
            .where(VendorStoreModel.id == store_id)
            .values(total_orders=orders, total_sales=sales)
        )

    def consume_order_quota(self, tenant_id: int) -> int:
        """Conditional increment; 0 rows means the monthly quota is used up."""
        result = self.db.execute(
            update(TenantModel)
            .where(
                TenantModel.id == tenant_id,
                (TenantModel.max_orders.is_(None)) | (TenantModel.current_orders < TenantModel.max_orders),
            )
            .values(current_orders=TenantModel.current_orders + 1)
        )
        return result.rowcount

    def reset_order_usage(self) -> int:
        result = self.db.execute(
            update(TenantModel).where(TenantModel.current_orders != 0).values(current_orders=0)
        )
        return result.rowcount

    def add_sales_count(self, product_id: int, quantity: int) -> None:
        self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(sales_count=ProductModel.sales_count + quantity)
        )

    def set_sales_counts(self, store_id: int, counts: dict[int, int]) -> None:
        """Overwrite sales counters of the store's products; products not in ``counts`` drop to 0."""
        self.db.execute(
            update(ProductModel).where(ProductModel.store_id == store_id).values(sales_count=0)
        )
        for product_id, sold in counts.items():
            self.db.execute(
                update(ProductModel)
                .where(ProductModel.id == product_id, ProductModel.store_id == store_id)
                .values(sales_count=sold)
            )

    def low_stock_products(self, store_id: int | None = None):
        # produkt z wariantami liczy sie po wariantach
        has_variants = select(VariantModel.id).where(VariantModel.product_id == ProductModel.id).exists()
        has_combinations = (
            select(VariantCombinationModel.id)
            .where(VariantCombinationModel.product_id == ProductModel.id)
            .exists()
        )
        stmt = select(ProductModel).where(
            ProductModel.status == "ACTIVE",
            ProductModel.track_inventory.is_(True),
            ProductModel.quantity <= ProductModel.low_stock_threshold,
            ~has_variants,
            ~has_combinations,
        )
        if store_id is not None:
            stmt = stmt.where(ProductModel.store_id == store_id)
        return self.db.execute(stmt.order_by(ProductModel.id)).scalars().all()

    def low_stock_variants(self, store_id: int | None = None):
        threshold = func.coalesce(VariantModel.low_stock_threshold, ProductModel.low_stock_threshold)
        stmt = (
            select(VariantModel, ProductModel, threshold)
            .join(ProductModel, VariantModel.product_id == ProductModel.id)
            .where(
                ProductModel.status == "ACTIVE",
                VariantModel.track_inventory.is_(True),
                VariantModel.quantity <= threshold,
            )
        )
        if store_id is not None:
            stmt = stmt.where(ProductModel.store_id == store_id)
        return self.db.execute(stmt.order_by(VariantModel.id)).all()

    def low_stock_combinations(self, store_id: int | None = None):
        threshold = func.coalesce(VariantCombinationModel.low_stock_threshold, ProductModel.low_stock_threshold)
        stmt = (
            select(VariantCombinationModel, ProductModel, threshold)
            .join(ProductModel, VariantCombinationModel.product_id == ProductModel.id)
            .where(
                ProductModel.status == "ACTIVE",
                VariantCombinationModel.available.is_(True),
                VariantCombinationModel.track_inventory.is_(True),
                VariantCombinationModel.quantity <= threshold,
            )
        )
        if store_id is not None:
            stmt = stmt.where(ProductModel.store_id == store_id)
        return self.db.execute(stmt.order_by(VariantCombinationModel.id)).all()
