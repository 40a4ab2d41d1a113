# storefront/services/tax_client.py
from decimal import Decimal
from typing import Protocol

import requests

from storefront.data.models.vendor_store import VendorStoreModel
from storefront.domain.money import to_decimal
from storefront.utils.retry import http_retry
from storefront.utils.settings import TAX_SERVICE_URL, HTTP_TIMEOUT
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class TaxRateProvider(Protocol):
    def rate_for(self, store: VendorStoreModel, shipping_address: dict) -> Decimal:
        """Tax rate in percent for the store and destination."""


class StoreTaxRates:
    """Stawka skonfigurowana na sklepie."""

    def rate_for(self, store: VendorStoreModel, shipping_address: dict) -> Decimal:
        return to_decimal(store.tax_rate)


class TaxServiceClient:
    def __init__(self, base_url: str | None = None, timeout: float = HTTP_TIMEOUT):
        self.base_url = (base_url or TAX_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def fetch_rate(self, store_id: int, zip_code: str, state: str | None) -> dict:
        url = f"{self.base_url}/rates"
        logger.info(f"TaxServiceClient GET {url} store={store_id} zip={zip_code}")

        resp = requests.get(
            url,
            params={"store_id": store_id, "zip_code": zip_code, "state": state},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def rate_for(self, store: VendorStoreModel, shipping_address: dict) -> Decimal:
        data = self.fetch_rate(store.id, shipping_address.get("zip_code"), shipping_address.get("state"))
        return to_decimal(data["rate"])


def default_tax_provider() -> TaxRateProvider:
    if TAX_SERVICE_URL:
        return TaxServiceClient()
    return StoreTaxRates()
