from sqlalchemy import Column, Integer, ForeignKey, String, Numeric, Boolean
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class VendorStoreModel(Base):
    __tablename__ = "vendor_stores"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, default=True)

    shipping_flat_rate = Column(Numeric(12, 2), nullable=False, default=0)
    free_shipping_threshold = Column(Numeric(12, 2), nullable=True)
    tax_rate = Column(Numeric(5, 3), nullable=False, default=0)

    # agregaty, aktualizowane w tej samej transakcji co zamowienie
    total_orders = Column(Integer, nullable=False, default=0)
    total_sales = Column(Numeric(14, 2), nullable=False, default=0)
    order_sequence = Column(Integer, nullable=False, default=0)

    tenant = relationship("TenantModel")
