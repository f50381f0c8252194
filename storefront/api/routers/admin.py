from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from storefront.api.db.sessions import get_db
from storefront.api.db.models import OrderStatus
from storefront.api.deps import get_current_admin
from storefront.api.schemas import (
    ProductCreate, ProductUpdate, ProductOut, OrderOut, OrderStatusUpdate, UserOut
)
from storefront.api.services import account_service, order_service

# IMPORT LOGGER
from storefront.utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(get_current_admin)])

@router.get("/status")
async def admin_status():
    """Check if admin system is operational."""
    return {
        "status": "operational",
        "endpoints": [
            "/admin/products (POST)",
            "/admin/products/{product_id} (PATCH/DELETE)",
            "/admin/users (GET)",
            "/admin/users/{user_id}/deactivate (POST)",
            "/admin/users/{user_id} (DELETE)",
            "/admin/orders (GET)",
            "/admin/orders/{order_id}/status (PATCH)",
        ]
    }

# --- PRODUCT MANAGEMENT ---

@router.post("/products", response_model=ProductOut, status_code=201)
def create_new_product(product_data: ProductCreate, db: Session = Depends(get_db)):
    logger.info(f"Admin creating product '{product_data.name}'.")
    return account_service.create_product(db, product_data)

@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(product_id: int, update_data: ProductUpdate, db: Session = Depends(get_db)):
    """Update price, stock or descriptive fields of a product."""
    return account_service.update_product(db, product_id, update_data)

@router.delete("/products/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db)):
    """Remove a product that no order refers to."""
    account_service.delete_product(db, product_id)
    return {"message": f"Product {product_id} successfully removed."}

# --- USER MANAGEMENT ---

@router.get("/users", response_model=List[UserOut])
def get_all_users(db: Session = Depends(get_db)):
    return account_service.list_users(db)

@router.post("/users/{user_id}/deactivate", response_model=UserOut)
def deactivate_user(user_id: int, db: Session = Depends(get_db)):
    logger.info(f"Admin deactivating user #{user_id}.")
    return account_service.deactivate_user(db, user_id)

@router.delete("/users/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db)):
    account_service.delete_user(db, user_id)
    return {"message": f"User {user_id} successfully removed."}

# --- ORDER MANAGEMENT ---

@router.get("/orders", response_model=List[OrderOut])
def get_all_orders(
    status: Optional[OrderStatus] = Query(None, description="Filter by order status"),
    db: Session = Depends(get_db)
):
    """Fetch all orders for the admin dashboard."""
    orders = order_service.list_all_orders(db, status=status)
    return [order_service.serialize_order(o) for o in orders]

@router.patch("/orders/{order_id}/status", response_model=OrderOut)
def update_order_status(order_id: int, update_data: OrderStatusUpdate, db: Session = Depends(get_db)):
    """Move an order forward in its lifecycle."""
    order = order_service.update_order_status(db, order_id, update_data.status)
    return order_service.serialize_order(order)
