from decimal import Decimal
from typing import Dict, Iterable
from pydantic import BaseModel
from sqlalchemy import update
from sqlalchemy.orm import Session

from storefront.api.db.models import Product

# IMPORT LOGGER
from storefront.utils.logging_config import get_logger

logger = get_logger(__name__)

class CatalogEntry(BaseModel):
    """Price and stock of one product as seen inside the current transaction."""
    product_id: int
    name: str
    price: Decimal
    stock_quantity: int

def read_for_update(db: Session, product_ids: Iterable[int]) -> Dict[int, CatalogEntry]:
    """
    Read current price and stock for the given products.

    Rows are locked (SELECT ... FOR UPDATE) in ascending id order so two
    requests touching the same products always queue in the same order.
    Dialects without row locks (SQLite) ignore the clause; reserve() still
    guards the decrement there. populate_existing() makes sure values come
    from the store and not from objects already sitting in the session.
    """
    ids = sorted(set(product_ids))
    if not ids:
        return {}

    products = (
        db.query(Product)
        .filter(Product.id.in_(ids))
        .order_by(Product.id)
        .with_for_update()
        .populate_existing()
        .all()
    )

    entries = {
        p.id: CatalogEntry(
            product_id=p.id,
            name=p.name,
            price=p.price,
            stock_quantity=p.stock_quantity,
        )
        for p in products
    }
    logger.debug(f"Catalog read for products {ids}: {len(entries)} found.")
    return entries

def reserve(db: Session, product_id: int, quantity: int) -> bool:
    """
    Decrement stock by `quantity` only if at least that much is left.

    Returns False when the guarded UPDATE matched no row, i.e. a concurrent
    request took the stock after it was read.
    """
    result = db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock_quantity >= quantity)
        .values(stock_quantity=Product.stock_quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
