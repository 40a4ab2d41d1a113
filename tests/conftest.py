import os
from decimal import Decimal
from pathlib import Path

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.data.database import Base
from storefront.data.models import (
    TenantModel,
    VendorStoreModel,
    ProductModel,
    VariantModel,
    VariantCombinationModel,
)
from storefront.domain.schemas import CheckoutIn
from storefront.repos.cart_repo import CartRepo
from storefront.services.cart_service import CartService
from storefront.services.lock_service import CheckoutLockService
from storefront.services.order_service import OrderService


def pytest_collection_modifyitems(config, items):
    """Mark tests by directory."""
    for item in items:
        test_path = str(Path(item.fspath))
        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/services/" in test_path:
            item.add_marker(pytest.mark.services)
        elif "/api/" in test_path:
            item.add_marker(pytest.mark.api)


class FakeRedis:
    """In-memory stand-in for the handful of redis commands the engine uses."""

    def __init__(self):
        self.data = {}
        self.ttls = {}
        self.down = False

    def _check(self):
        if self.down:
            raise RedisConnectionError("redis is down")

    def get(self, name):
        self._check()
        return self.data.get(name)

    def set(self, name, value, nx=False, ex=None):
        self._check()
        if nx and name in self.data:
            return None
        self.data[name] = value
        self.ttls[name] = ex
        return True

    def setex(self, name, time, value):
        self._check()
        self.data[name] = value
        self.ttls[name] = time
        return True

    def delete(self, *names):
        self._check()
        removed = 0
        for name in names:
            if self.data.pop(name, None) is not None:
                removed += 1
            self.ttls.pop(name, None)
        return removed

    def eval(self, script, numkeys, *args):
        # tylko compare-and-delete
        self._check()
        key, expected = args[0], args[1]
        if self.data.get(key) == expected:
            return self.delete(key)
        return 0

    def ping(self):
        self._check()
        return True

    def advance(self, seconds):
        """Move the clock forward, dropping keys whose TTL ran out."""
        for name, ttl in list(self.ttls.items()):
            if ttl is None:
                continue
            if ttl <= seconds:
                self.data.pop(name, None)
                self.ttls.pop(name)
            else:
                self.ttls[name] = ttl - seconds


class RecordingNotifier:
    def __init__(self):
        self.confirmations = []
        self.recoveries = []
        self.refunds = []
        self.low_stock_alerts = []

    def send_order_confirmation(self, order_id, customer_email):
        self.confirmations.append((order_id, customer_email))
        return True

    def send_cart_recovery(self, abandoned_cart_id, customer_email, recovery_url, discount_code, stage):
        self.recoveries.append(
            {
                "abandoned_cart_id": abandoned_cart_id,
                "customer_email": customer_email,
                "recovery_url": recovery_url,
                "discount_code": discount_code,
                "stage": stage,
            }
        )
        return True

    def send_refund_confirmation(self, order_id, customer_email):
        self.refunds.append((order_id, customer_email))
        return True

    def send_low_stock_alert(self, store_id, items):
        self.low_stock_alerts.append((store_id, items))
        return True


class FixedTaxRate:
    def __init__(self, rate="0"):
        self.rate = Decimal(rate)

    def rate_for(self, store, shipping_address):
        return self.rate


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite: SAVEPOINT dziala dopiero gdy sami wysylamy BEGIN
    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    session = sessionmaker(bind=engine, autoflush=True, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture()
def fake_redis():
    return FakeRedis()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def tax():
    return FixedTaxRate("0")


@pytest.fixture()
def cart_repo(fake_redis):
    return CartRepo(fake_redis)


@pytest.fixture()
def cart_service(db, cart_repo):
    return CartService(db=db, repo=cart_repo)


@pytest.fixture()
def order_service(db, cart_repo, fake_redis, notifier, tax):
    return OrderService(
        db=db,
        cart_repo=cart_repo,
        lock_service=CheckoutLockService(fake_redis),
        notification_service=notifier,
        tax_provider=tax,
    )


@pytest.fixture()
def tenant(db):
    tenant = TenantModel(name="Acme", platform_fee_percent=Decimal("5"), max_orders=100, current_orders=0)
    db.add(tenant)
    db.commit()
    return tenant


@pytest.fixture()
def make_store(db, tenant):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "tenant_id": tenant.id,
            "name": f"Store {counter['n']}",
            "slug": f"store-{counter['n']}",
            "shipping_flat_rate": Decimal("5.00"),
            "free_shipping_threshold": Decimal("100.00"),
            "tax_rate": Decimal("0"),
        }
        fields.update(overrides)
        store = VendorStoreModel(**fields)
        db.add(store)
        db.commit()
        return store

    return _make


@pytest.fixture()
def store(make_store):
    return make_store()


@pytest.fixture()
def make_product(db, store):
    def _make(price="29.99", quantity=5, track_inventory=True, category=None, store_id=None, name="Mug",
              low_stock_threshold=5):
        product = ProductModel(
            store_id=store_id or store.id,
            name=name,
            category=category,
            price=Decimal(price),
            track_inventory=track_inventory,
            quantity=quantity,
            low_stock_threshold=low_stock_threshold,
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture()
def make_variant(db):
    def _make(product, name="Large", price=None, quantity=5, track_inventory=True, low_stock_threshold=None):
        variant = VariantModel(
            product_id=product.id,
            name=name,
            price=Decimal(price) if price is not None else None,
            track_inventory=track_inventory,
            quantity=quantity,
            low_stock_threshold=low_stock_threshold,
        )
        db.add(variant)
        db.commit()
        return variant

    return _make


@pytest.fixture()
def make_combination(db):
    def _make(product, name="Red / Large", price=None, quantity=5, track_inventory=True, available=True):
        combination = VariantCombinationModel(
            product_id=product.id,
            name=name,
            price=Decimal(price) if price is not None else None,
            track_inventory=track_inventory,
            quantity=quantity,
            available=available,
        )
        db.add(combination)
        db.commit()
        return combination

    return _make


@pytest.fixture()
def checkout_payload():
    def _make(**overrides):
        data = {
            "customer_id": "cust-001",
            "customer_email": "jane@example.com",
            "customer_name": "Jane Doe",
            "shipping_address": {
                "full_name": "Jane Doe",
                "address_line1": "1 Main St",
                "city": "Springfield",
                "state": "IL",
                "zip_code": "62701",
            },
            "shipping_method": "standard",
            "payment_method_ref": "card_tok_123",
        }
        data.update(overrides)
        return CheckoutIn(**data)

    return _make
