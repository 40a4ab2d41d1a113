#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from storefront.data.models.tenant import TenantModel
from storefront.data.models.vendor_store import VendorStoreModel
from storefront.data.models.product import ProductModel, VariantModel, VariantCombinationModel
from storefront.data.models.coupon import CouponModel
from storefront.data.models.order import OrderModel, OrderStatus, PaymentStatus, FulfillmentStatus
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.abandoned_cart import AbandonedCartModel
from storefront.data.models.review import ReviewModel

__all__ = [
    "TenantModel",
    "VendorStoreModel",
    "ProductModel",
    "VariantModel",
    "VariantCombinationModel",
    "CouponModel",
    "OrderModel",
    "OrderStatus",
    "PaymentStatus",
    "FulfillmentStatus",
    "OrderItemModel",
    "AbandonedCartModel",
    "ReviewModel",
]
