# storefront/services/order_service.py
from decimal import Decimal

import requests
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel, OrderStatus, PaymentStatus, FulfillmentStatus
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.cart import Cart
from storefront.domain.errors import (
    BusinessLogicError,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    QuotaExceededError,
    StoreUnavailableError,
)
from storefront.domain.money import ZERO, to_decimal
from storefront.domain.schemas import CheckoutIn
from storefront.repos.cart_repo import CartRepo
from storefront.repos.catalog_repo import CatalogRepo
from storefront.repos.coupon_repo import CouponRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.coupon_service import CouponService, CouponContext
from storefront.services.lock_service import CheckoutLockService, is_pending
from storefront.services.notification_service import NotificationService
from storefront.services.pricing import compute_totals, shipping_cost_for
from storefront.services.stock_ledger import StockLedger, StockResult
from storefront.services.tax_client import TaxRateProvider, default_tax_provider
from storefront.utils.clock import utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_FULFILLMENT_ORDER = [
    FulfillmentStatus.UNFULFILLED.value,
    FulfillmentStatus.PROCESSING.value,
    FulfillmentStatus.SHIPPED.value,
    FulfillmentStatus.DELIVERED.value,
]


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.
    create_order to jedna transakcja: stan magazynu, kupon, zamowienie,
    agregaty sklepu i limit tenanta commitowane razem albo wcale.
    """

    def __init__(
        self,
        db: Session,
        cart_repo: CartRepo,
        lock_service: CheckoutLockService | None = None,
        notification_service: NotificationService | None = None,
        tax_provider: TaxRateProvider | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.catalog = CatalogRepo(db)
        self.coupons = CouponRepo(db)
        self.coupon_service = CouponService(db)
        self.ledger = StockLedger(db)
        self.cart_repo = cart_repo
        self.lock_service = lock_service
        self.notification_service = notification_service or NotificationService()
        self.tax_provider = tax_provider or default_tax_provider()

    def create_order(self, cart_session_id: str | None, checkout: CheckoutIn,
                     idempotency_key: str | None = None) -> OrderModel:
        """
        Use Case: checkout koszyka.

        1. Ponowna weryfikacja stanow w transakcji
        2. Subtotal, wysylka, rabat, podatek, total, prowizja, wyplata
        3. Limit zamowien tenanta
        4. Zamowienie + snapshot pozycji
        5. Rezerwacja (warunkowy UPDATE) dla kazdej pozycji
        6. Agregaty sklepu i licznik tenanta
        7. Usuniecie koszyka po commicie
        """
        if not cart_session_id:
            raise NotFoundError("Cart not found")

        token = None
        if idempotency_key:
            replayed = self._replay(idempotency_key)
            if replayed:
                logger.info(f"Checkout {idempotency_key} replayed, returning order {replayed.id}")
                return replayed
            if self.lock_service:
                token = self.lock_service.acquire(idempotency_key)
                if not token:
                    raise ConflictError("A checkout with this idempotency key is already in progress")

        order = None
        try:
            order = self._assemble(cart_session_id, checkout, idempotency_key)
        finally:
            # takze przy BaseException, np. anulowanym requescie
            if token and order is None:
                self.lock_service.release(idempotency_key, token)

        if token:
            self.lock_service.complete(idempotency_key, order.id)

        # 7. koszyk znika dopiero gdy zamowienie jest zapisane
        try:
            self.cart_repo.delete(cart_session_id)
        except StoreUnavailableError:
            logger.error(f"Order {order.order_number} committed but cart {cart_session_id} was not cleared")

        self.notification_service.send_order_confirmation(order.id, order.customer_email)
        return order

    def _replay(self, idempotency_key: str) -> OrderModel | None:
        existing = self.repo.get_by_idempotency_key(idempotency_key)
        if existing:
            return existing
        if not self.lock_service:
            return None

        marker = self.lock_service.lookup(idempotency_key)
        if is_pending(marker):
            raise ConflictError("A checkout with this idempotency key is already in progress")
        if marker and marker.isdigit():
            return self.repo.get_order(int(marker))
        return None

    def _assemble(self, cart_session_id: str, checkout: CheckoutIn, idempotency_key: str | None) -> OrderModel:
        # odczyt scisly, awaria redis przerywa checkout
        cart = self.cart_repo.load(cart_session_id)
        if not cart:
            raise NotFoundError("Cart not found")
        if cart.is_empty:
            raise BusinessLogicError("Cart is empty")

        try:
            order = self._build_order(cart, checkout, idempotency_key)
            self.repo.commit()
        except IntegrityError as e:
            self.repo.rollback()
            raise ConflictError("This checkout has already been submitted") from e
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Checkout of cart {cart_session_id} aborted: {e}")
            raise StoreUnavailableError("Checkout could not be completed, please try again") from e
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"Order {order.order_number} created from cart {cart_session_id}, "
            f"total {order.total}, payout {order.vendor_payout}"
        )
        return order

    def _build_order(self, cart: Cart, checkout: CheckoutIn, idempotency_key: str | None) -> OrderModel:
        store = self.catalog.get_store(cart.store_id)
        if not store or not store.is_active:
            raise NotFoundError("Store not found")
        tenant = self.catalog.get_tenant(store.tenant_id)
        if not tenant:
            raise NotFoundError("Store not found")

        shipping_address = checkout.shipping_address.model_dump()

        # 1. stany jeszcze raz, koszyk mogl byc zbudowany dawno temu
        for line in cart.lines:
            check = self.ledger.check(line.product_id, line.quantity, line.variant_id, line.combination_id)
            if not check.available:
                raise InsufficientStockError(
                    line.product_id,
                    check.quantity or 0,
                    f"Only {check.quantity or 0} of {line.product_name} available",
                )

        # 2. pieniadze
        subtotal = cart.subtotal
        shipping_cost = shipping_cost_for(store, subtotal, checkout.shipping_method)

        coupon = None
        discount_amount: Decimal = ZERO
        discount_on_shipping = False
        if checkout.coupon_code:
            validation = self.coupon_service.validate_and_calculate(
                CouponContext(
                    code=checkout.coupon_code,
                    store_id=store.id,
                    lines=self.coupon_service.lines_from_cart(cart.lines),
                    subtotal=subtotal,
                    shipping_cost=shipping_cost,
                    customer_id=checkout.customer_id,
                    customer_email=checkout.customer_email,
                )
            )
            if not validation.valid:
                raise BusinessLogicError(validation.error)
            coupon = validation.coupon
            discount_amount = validation.discount_amount
            discount_on_shipping = validation.applies_to_shipping

        try:
            tax_rate = self.tax_provider.rate_for(store, shipping_address)
        except requests.RequestException as e:
            raise StoreUnavailableError("Tax service is unavailable") from e

        totals = compute_totals(
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            discount_amount=discount_amount,
            discount_on_shipping=discount_on_shipping,
            tax_rate=tax_rate,
            platform_fee_percent=tenant.platform_fee_percent,
            payment_method_ref=checkout.payment_method_ref,
        )

        # 3. limit tenanta
        if tenant.max_orders is not None and tenant.current_orders >= tenant.max_orders:
            raise QuotaExceededError("This store has reached its monthly order limit")

        # 4. zamowienie + snapshot pozycji
        sequence = self.catalog.next_order_sequence(store.id)
        order = OrderModel(
            order_number=f"SL-{store.id}-{sequence:06d}",
            store_id=store.id,
            idempotency_key=idempotency_key,
            customer_id=checkout.customer_id,
            customer_email=checkout.customer_email,
            customer_name=checkout.customer_name,
            shipping_address=shipping_address,
            shipping_method=checkout.shipping_method,
            subtotal=totals.subtotal,
            shipping_cost=totals.shipping_cost,
            tax_amount=totals.tax_amount,
            discount_amount=totals.discount_amount,
            platform_fee=totals.platform_fee,
            processor_fee=totals.processor_fee,
            vendor_payout=totals.vendor_payout,
            total=totals.total,
            coupon_id=coupon.id if coupon else None,
            coupon_code=coupon.code if coupon else None,
            payment_method_ref=checkout.payment_method_ref,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            fulfillment_status=FulfillmentStatus.UNFULFILLED.value,
            items=[
                OrderItemModel(
                    product_id=line.product_id,
                    variant_id=line.variant_id,
                    combination_id=line.combination_id,
                    name=line.product_name,
                    variant_name=line.variant_name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                )
                for line in cart.lines
            ],
        )
        self.repo.add_order(order)

        # 5. rezerwacja, tu decyduje baza
        for line in cart.lines:
            result = self.ledger.reserve(line.product_id, line.quantity, line.variant_id, line.combination_id)
            if result is not StockResult.OK:
                raise InsufficientStockError(
                    line.product_id, 0, f"{line.product_name} is no longer available in the requested quantity"
                )
            self.catalog.add_sales_count(line.product_id, line.quantity)

        if coupon and self.coupons.increment_usage(coupon.id) == 0:
            raise BusinessLogicError("This coupon has reached its usage limit")

        # 6. agregaty w tej samej transakcji
        self.catalog.add_store_sales(store.id, 1, totals.vendor_payout)
        if self.catalog.consume_order_quota(tenant.id) == 0:
            raise QuotaExceededError("This store has reached its monthly order limit")

        return order

    def get_order(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def record_payment(self, order_id: int, succeeded: bool) -> OrderModel:
        """Outcome of the payment processor, treated as an opaque signal."""
        order = self.repo.get_order_for_update(order_id)
        if not order:
            raise NotFoundError("Order not found")
        if order.status == OrderStatus.CANCELLED.value:
            raise BusinessLogicError("Order has been cancelled")
        if order.payment_status == PaymentStatus.REFUNDED.value:
            raise BusinessLogicError("Order has been refunded")
        if order.payment_status == PaymentStatus.PAID.value:
            return order

        if succeeded:
            order.payment_status = PaymentStatus.PAID.value
            order.status = OrderStatus.PAID.value
            order.paid_at = utcnow()
        else:
            order.payment_status = PaymentStatus.FAILED.value

        self.repo.commit()
        logger.info(f"Order {order.order_number} payment {order.payment_status}")
        return order

    def record_refund(self, order_id: int) -> OrderModel:
        """
        Full refund reported by the payment processor, treated as an opaque signal.
        Stock stays where it is; returned goods are a vendor decision.
        """
        order = self.repo.get_order_for_update(order_id)
        if not order:
            raise NotFoundError("Order not found")
        if order.payment_status == PaymentStatus.REFUNDED.value:
            return order
        if order.payment_status != PaymentStatus.PAID.value:
            raise BusinessLogicError("Only paid orders can be refunded")

        order.payment_status = PaymentStatus.REFUNDED.value
        order.status = OrderStatus.REFUNDED.value
        order.refunded_at = utcnow()

        self.repo.commit()
        logger.info(f"Order {order.order_number} refunded")

        self.notification_service.send_refund_confirmation(order.id, order.customer_email)
        return order

    def update_fulfillment(self, order_id: int, store_id: int, status: str) -> OrderModel:
        order = self._vendor_order(order_id, store_id)
        if order.status == OrderStatus.CANCELLED.value:
            raise BusinessLogicError("Order has been cancelled")

        current = _FULFILLMENT_ORDER.index(order.fulfillment_status)
        target = _FULFILLMENT_ORDER.index(status)
        if target <= current:
            raise BusinessLogicError(f"Order is already {order.fulfillment_status.lower()}")

        now = utcnow()
        if target >= _FULFILLMENT_ORDER.index(FulfillmentStatus.SHIPPED.value) and not order.shipped_at:
            order.shipped_at = now
        if status == FulfillmentStatus.DELIVERED.value:
            order.delivered_at = now
        order.fulfillment_status = status

        self.repo.commit()
        logger.info(f"Order {order.order_number} fulfillment {status}")
        return order

    def cancel_order(self, order_id: int, store_id: int, reason: str | None = None) -> OrderModel:
        """
        Use Case: anulowanie zamowienia przez sprzedawce.
        Blad zwolnienia stanu jest logowany, anulowanie i tak sie konczy.
        """
        order = self._vendor_order(order_id, store_id)

        if order.status == OrderStatus.CANCELLED.value:
            raise BusinessLogicError("Order is already cancelled")
        if order.fulfillment_status in (FulfillmentStatus.SHIPPED.value, FulfillmentStatus.DELIVERED.value):
            raise BusinessLogicError("Cannot cancel orders that have been shipped or delivered")

        try:
            order.status = OrderStatus.CANCELLED.value
            order.fulfillment_status = FulfillmentStatus.CANCELLED.value
            order.cancelled_at = utcnow()
            order.internal_notes = reason or "Order cancelled by vendor"
            self.db.flush()

            failed = []
            for item in order.items:
                result = self.ledger.release(item.product_id, item.quantity, item.variant_id, item.combination_id)
                if result is not StockResult.OK:
                    failed.append(item.product_id)
                self.catalog.add_sales_count(item.product_id, -item.quantity)

            self.catalog.add_store_sales(order.store_id, -1, -order.vendor_payout)
            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Cancellation of order {order_id} aborted: {e}")
            raise StoreUnavailableError("Cancellation could not be completed, please try again") from e

        if failed:
            logger.error(
                f"Order {order.order_number} cancelled but stock was not released for products {failed}"
            )
        logger.info(f"Order {order.order_number} cancelled")
        return order

    def reconcile_store_aggregates(self, store_id: int) -> tuple[int, Decimal]:
        """Recompute vendor totals and product sales counters from the order set, repairing drift."""
        count, payout = self.repo.store_totals(store_id)
        payout = to_decimal(payout)
        self.catalog.set_store_aggregates(store_id, count, payout)
        self.catalog.set_sales_counts(store_id, self.repo.product_sales(store_id))
        self.repo.commit()
        logger.info(f"Store {store_id} aggregates reconciled: {count} orders, {payout} sales")
        return count, payout

    def _vendor_order(self, order_id: int, store_id: int) -> OrderModel:
        order = self.repo.get_order_for_update(order_id)
        if not order or order.store_id != store_id:
            raise NotFoundError("Order not found")
        return order
