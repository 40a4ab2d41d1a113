# storefront/api/routers/inventory.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_db
from storefront.domain.schemas import LowStockItemOut
from storefront.services.inventory_service import InventoryService

router = APIRouter(prefix="/stores/{store_id}/inventory", tags=["inventory"])


def get_service(db: Session):
    return InventoryService(db)


@router.get("/low-stock", response_model=List[LowStockItemOut])
def low_stock(store_id: int, db: Session = Depends(get_db)):
    """Liczniki na progu lub ponizej, najmniejszy stan pierwszy."""
    return get_service(db).low_stock(store_id)
