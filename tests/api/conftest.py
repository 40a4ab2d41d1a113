import pytest
from fastapi.testclient import TestClient
from storefront.api.deps import get_db, get_redis, get_notification_service, get_tax_provider
from storefront.main import create_app


@pytest.fixture()
def client(db, fake_redis, notifier, tax):
    app = create_app()
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_notification_service] = lambda: notifier
    app.dependency_overrides[get_tax_provider] = lambda: tax
    return TestClient(app)


@pytest.fixture()
def checkout_body():
    return {
        "customer_email": "jane@example.com",
        "customer_name": "Jane Doe",
        "shipping_address": {
            "full_name": "Jane Doe",
            "address_line1": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "zip_code": "62701",
        },
        "payment_method_ref": "card_tok_123",
    }
