# storefront/services/cart_service.py
import uuid
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.domain.cart import Cart, CartLine, make_line_id
from storefront.domain.errors import (
    BusinessLogicError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from storefront.repos.cart_repo import CartRepo
from storefront.repos.catalog_repo import CatalogRepo
from storefront.services.stock_ledger import StockLedger
from storefront.utils.clock import utcnow
from storefront.utils.settings import CART_TTL_SECONDS, CART_MAX_LINE_QUANTITY
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def new_session_id() -> str:
    return str(uuid.uuid4())


class CartService:
    """
    Koszyk w redis, jeden sklep na koszyk
    commands (add, update, remove, clear) zapisuja dokument i odnawiaja TTL
    query (get) tylko odczyt, przy awarii redis pusty koszyk
    """

    def __init__(self, db: Session, repo: CartRepo, ledger: StockLedger | None = None):
        self.repo = repo
        self.catalog = CatalogRepo(db)
        self.ledger = ledger or StockLedger(db)

    #query - odczyt
    def get_cart(self, session_id: str | None) -> Cart | None:
        if not session_id:
            return None
        return self.repo.get(session_id)

    def set_cart(self, session_id: str, cart: Cart, ttl: int = CART_TTL_SECONDS) -> Cart:
        cart.session_id = session_id
        cart.updated_at = utcnow()
        self.repo.save(cart, ttl)
        return cart

    #commands
    def add_line(self, session_id: str | None, product_id: int, quantity: int,
                 variant_id: int | None = None, combination_id: int | None = None) -> Cart:
        if quantity < 1 or quantity > CART_MAX_LINE_QUANTITY:
            raise ValidationError(f"Quantity must be between 1 and {CART_MAX_LINE_QUANTITY}")

        product = self.catalog.get_active_product(product_id)
        if not product:
            raise NotFoundError("Product not found")

        price = Decimal(product.price)
        variant_name = None

        if combination_id:
            combination = self.catalog.get_combination(product_id, combination_id)
            if not combination:
                raise NotFoundError("Variant combination not found")
            if not combination.available:
                raise BusinessLogicError("This variant is not available")
            variant_name = combination.name
            if combination.price is not None:
                price = Decimal(combination.price)
        elif variant_id:
            variant = self.catalog.get_variant(product_id, variant_id)
            if not variant:
                raise NotFoundError("Variant not found")
            variant_name = variant.name
            if variant.price is not None:
                price = Decimal(variant.price)

        session_id = session_id or new_session_id()
        cart = self.repo.load(session_id) or Cart(session_id=session_id)

        if cart.store_id is not None and cart.store_id != product.store_id:
            raise BusinessLogicError("You can only add items from one store at a time.")

        line_id = make_line_id(product_id, variant_id, combination_id)
        existing = cart.find_line(line_id)
        requested = quantity + (existing.quantity if existing else 0)
        requested = min(requested, CART_MAX_LINE_QUANTITY)

        self._ensure_stock(product_id, requested, variant_id, combination_id)

        if existing:
            logger.info(
                f"Produkt {product_id} juz jest w koszyku {session_id}, "
                f"zwiekszam ilosc z {existing.quantity} do {requested}"
            )
            existing.quantity = requested
        else:
            logger.info(f"Dodaje produkt {product_id} do koszyka {session_id}")
            cart.lines.append(
                CartLine(
                    line_id=line_id,
                    product_id=product_id,
                    variant_id=variant_id,
                    combination_id=combination_id,
                    product_name=product.name,
                    variant_name=variant_name,
                    category=product.category,
                    unit_price=price,
                    quantity=requested,
                )
            )

        cart.store_id = product.store_id
        return self.set_cart(session_id, cart)

    def update_quantity(self, session_id: str | None, line_id: str, quantity: int) -> Cart:
        if quantity < 0 or quantity > CART_MAX_LINE_QUANTITY:
            raise ValidationError(f"Quantity must be between 0 and {CART_MAX_LINE_QUANTITY}")
        if quantity == 0:
            return self.remove_line(session_id, line_id)

        cart = self._require_cart(session_id)
        line = cart.find_line(line_id)
        if not line:
            raise NotFoundError("Item not found in cart")

        if quantity > line.quantity:
            self._ensure_stock(line.product_id, quantity, line.variant_id, line.combination_id)

        line.quantity = quantity
        logger.info(f"Ustawiono ilosc {quantity} dla {line_id} w koszyku {session_id}")
        return self.set_cart(session_id, cart)

    def remove_line(self, session_id: str | None, line_id: str) -> Cart:
        cart = self._require_cart(session_id)
        if not cart.remove_line(line_id):
            raise NotFoundError("Item not found in cart")

        logger.info(f"Usunieto {line_id} z koszyka {session_id}")
        return self.set_cart(session_id, cart)

    def clear(self, session_id: str | None) -> None:
        if not session_id:
            return
        self.repo.delete(session_id)
        logger.info(f"Koszyk {session_id} wyczyszczony")

    def _require_cart(self, session_id: str | None) -> Cart:
        cart = self.repo.load(session_id) if session_id else None
        if not cart:
            raise NotFoundError("Cart not found")
        return cart

    def _ensure_stock(self, product_id: int, quantity: int, variant_id: int | None,
                      combination_id: int | None) -> None:
        check = self.ledger.check(product_id, quantity, variant_id, combination_id)
        if not check.available:
            raise InsufficientStockError(product_id, check.quantity or 0)
