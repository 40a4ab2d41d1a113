# storefront/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from storefront.api.errors import validation_error_handler
from storefront.api.routers import (
    health,
    carts,
    orders,
    coupons,
    vendor_orders,
    abandoned_carts,
    reviews,
    inventory,
)
from storefront.data.database import Base, engine
from storefront.data import models  # noqa: F401  rejestracja tabel w Base.metadata
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Initializing database, tables: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront Checkout",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(coupons.router)
    app.include_router(vendor_orders.router)
    app.include_router(abandoned_carts.router)
    app.include_router(reviews.router)
    app.include_router(inventory.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
