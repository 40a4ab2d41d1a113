# storefront/api/deps.py
import redis

from storefront.data import redis_client
from storefront.data.database import get_db
from storefront.services.notification_service import NotificationService
from storefront.services.tax_client import TaxRateProvider, default_tax_provider

__all__ = ["get_db", "get_redis", "get_notification_service", "get_tax_provider"]


def get_redis() -> redis.Redis:
    return redis_client.get_redis()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_tax_provider() -> TaxRateProvider:
    return default_tax_provider()
