from sqlalchemy import Column, Integer, ForeignKey, String, Numeric, Boolean
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    store_id = Column(Integer, ForeignKey("vendor_stores.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=True)
    status = Column(String, nullable=False, default="ACTIVE")

    price = Column(Numeric(12, 2), nullable=False)
    track_inventory = Column(Boolean, nullable=False, default=True)
    quantity = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=5)
    # sztuki sprzedane w zamowieniach ktore nie sa anulowane
    sales_count = Column(Integer, nullable=False, default=0)

    variants = relationship("VariantModel", back_populates="product")
    combinations = relationship("VariantCombinationModel", back_populates="product")


class VariantModel(Base):
    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)

    price = Column(Numeric(12, 2), nullable=True)
    track_inventory = Column(Boolean, nullable=False, default=True)
    quantity = Column(Integer, nullable=False, default=0)
    # None = prog produktu
    low_stock_threshold = Column(Integer, nullable=True)

    product = relationship("ProductModel", back_populates="variants")


class VariantCombinationModel(Base):
    __tablename__ = "variant_combinations"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    available = Column(Boolean, nullable=False, default=True)

    price = Column(Numeric(12, 2), nullable=True)
    track_inventory = Column(Boolean, nullable=False, default=True)
    quantity = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=True)

    product = relationship("ProductModel", back_populates="combinations")
