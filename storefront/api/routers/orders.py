from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from storefront.api.db.sessions import get_db
from storefront.api.db.models import Order, User
from storefront.api.schemas import OrderCreate, OrderOut, OrderResult, OrderDetailRow
from storefront.api.deps import get_current_user, can_view_any_order
from storefront.api.services import order_service

# IMPORT LOGGER
from storefront.utils.logging_config import get_logger
logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])

def _ensure_can_view(order: Order, user: User):
    if order.user_id != user.id and not can_view_any_order(user):
        # Same answer as a missing order, so ids of other users' orders don't leak
        raise HTTPException(status_code=404, detail=f"Order ID {order.id} not found")

@router.post("/", response_model=OrderResult, status_code=status.HTTP_201_CREATED)
def place_order(
    order_data: OrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Places an order for the logged-in user.
    Stock check, stock decrement, and order creation happen in one transaction.
    """
    logger.info(f"User {current_user.email} is attempting to place an order.")
    return order_service.place_order(
        db,
        current_user.id,
        order_data.items,
        shipping_address=order_data.shipping_address,
        billing_address=order_data.billing_address,
    )

@router.get("/", response_model=List[OrderOut])
def get_my_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Retrieve order history for the logged-in user."""
    orders = order_service.list_orders_for_user(db, current_user.id)
    return [order_service.serialize_order(o) for o in orders]

@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    order = order_service.get_order(db, order_id)
    _ensure_can_view(order, current_user)
    return order_service.serialize_order(order)

@router.get("/{order_id}/details", response_model=List[OrderDetailRow])
def get_order_details(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """One row per order item, with buyer and product information."""
    order = order_service.get_order(db, order_id)
    _ensure_can_view(order, current_user)
    return order_service.get_order_details(db, order_id)
