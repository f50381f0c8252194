from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from storefront.api.db.sessions import get_db
from storefront.api.schemas import ProductOut
from storefront.api.services import account_service
from storefront.utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])

@router.get("/", response_model=List[ProductOut])
def list_products(
    in_stock: bool = Query(False, description="Only return products with stock left"),
    db: Session = Depends(get_db)
):
    """Catalog listing, ordered by name."""
    products = account_service.list_products(db, in_stock_only=in_stock)
    logger.debug(f"Catalog listing returned {len(products)} products (in_stock={in_stock}).")
    return products

@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return account_service.get_product(db, product_id)
