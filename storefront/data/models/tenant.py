from sqlalchemy import Column, Integer, String, Numeric

from storefront.data.database import Base


class TenantModel(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)

    platform_fee_percent = Column(Numeric(5, 2), nullable=False, default=0)

    # limity planu, None = bez limitu
    max_orders = Column(Integer, nullable=True)
    current_orders = Column(Integer, nullable=False, default=0)
    max_products = Column(Integer, nullable=True)
    current_products = Column(Integer, nullable=False, default=0)
