from decimal import Decimal
from typing import List, Optional, Sequence
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from storefront.api.db.models import (
    Order, OrderItem, OrderStatus, Product, User, UserProfile, ORDER_STATUS_TRANSITIONS
)
from storefront.api.errors import (
    DuplicateLineItem,
    InsufficientStock,
    InvalidQuantity,
    InvalidStatusTransition,
    OrderNotFound,
    ProductNotFound,
    StorageUnavailable,
    StorefrontError,
    UserInactiveOrNotFound,
)
from storefront.api.schemas import (
    OrderDetailRow, OrderItemOut, OrderItemSchema, OrderOut, OrderResult
)
from storefront.api.services import catalog

# IMPORT LOGGER
from storefront.utils.logging_config import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")

def _validate_lines(lines: Sequence[OrderItemSchema]) -> None:
    """Checks that need no database access. Raises before anything is read or locked."""
    if not lines:
        raise InvalidQuantity("An order must contain at least one item")

    seen = set()
    for line in lines:
        quantity = line.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantity(
                f"Quantity for product {line.product_id} must be a positive integer, got {quantity!r}"
            )
        if line.product_id in seen:
            raise DuplicateLineItem(f"Product {line.product_id} appears more than once in the order")
        seen.add(line.product_id)

def place_order(
    db: Session,
    user_id: int,
    lines: Sequence[OrderItemSchema],
    shipping_address: Optional[str] = None,
    billing_address: Optional[str] = None,
) -> OrderResult:
    """
    Places an order as one atomic unit.
    1. Validates quantities, duplicates, the user and every product.
    2. Reads price and stock under lock and checks availability.
    3. Decrements stock, creates the Order and its OrderItems, commits once.

    Any failure rolls the session back; nothing from the request is persisted.
    """
    _validate_lines(lines)
    logger.info(f"User {user_id} is attempting to place an order with {len(lines)} item(s).")

    try:
        user = db.get(User, user_id)
        if user is None or not user.is_active:
            raise UserInactiveOrNotFound(f"User {user_id} not found or inactive")

        # 1. Catalog read (locked, same transaction)
        snapshot = catalog.read_for_update(db, [line.product_id for line in lines])

        # Every product must exist before any stock level is looked at
        for line in lines:
            if line.product_id not in snapshot:
                raise ProductNotFound(f"Product ID {line.product_id} not found")

        for line in lines:
            entry = snapshot[line.product_id]
            if entry.stock_quantity < line.quantity:
                raise InsufficientStock(line.product_id, line.quantity, entry.stock_quantity)

        # 2. Stock reservation, ascending product id like the lock order
        for line in sorted(lines, key=lambda l: l.product_id):
            if not catalog.reserve(db, line.product_id, line.quantity):
                current = db.query(Product.stock_quantity).filter(Product.id == line.product_id).scalar()
                raise InsufficientStock(line.product_id, line.quantity, current or 0)

        # 3. Order + items with the prices read above
        total_amount = sum(
            (snapshot[line.product_id].price * line.quantity for line in lines),
            Decimal("0"),
        ).quantize(CENT)

        new_order = Order(
            user_id=user.id,
            status=OrderStatus.PENDING,
            total_amount=total_amount,
            shipping_address=shipping_address,
            billing_address=billing_address,
        )
        db.add(new_order)
        db.flush()

        for line in lines:
            db.add(OrderItem(
                order_id=new_order.id,
                product_id=line.product_id,
                quantity=line.quantity,
                price_at_purchase=snapshot[line.product_id].price,
            ))

        db.commit()

    except StorefrontError as e:
        db.rollback()
        logger.warning(f"Order rejected for user {user_id}: {e}")
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Order transaction failed for user {user_id}: {e}", exc_info=True)
        raise StorageUnavailable("Order could not be stored; no changes were applied") from e

    logger.info(f"Order #{new_order.id} placed successfully. Total: {total_amount}")
    return OrderResult(order_id=new_order.id, status=OrderStatus.PENDING, total_amount=total_amount)

# --- READS ---

def serialize_order(order: Order) -> OrderOut:
    return OrderOut(
        id=order.id,
        user_id=order.user_id,
        status=order.status,
        total_amount=order.total_amount,
        order_date=order.order_date,
        shipping_address=order.shipping_address,
        billing_address=order.billing_address,
        items=[
            OrderItemOut(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product.name,
                quantity=item.quantity,
                price_at_purchase=item.price_at_purchase,
            ) for item in order.items
        ],
    )

def _orders_query(db: Session):
    return db.query(Order).options(selectinload(Order.items).selectinload(OrderItem.product))

def get_order(db: Session, order_id: int) -> Order:
    order = _orders_query(db).filter(Order.id == order_id).first()
    if order is None:
        raise OrderNotFound(f"Order ID {order_id} not found")
    return order

def list_orders_for_user(db: Session, user_id: int) -> List[Order]:
    """Order history of one user, newest first."""
    return _orders_query(db).filter(Order.user_id == user_id).order_by(Order.id.desc()).all()

def list_all_orders(db: Session, status: Optional[OrderStatus] = None) -> List[Order]:
    query = _orders_query(db)
    if status is not None:
        query = query.filter(Order.status == status)
    return query.order_by(Order.id.desc()).all()

def get_order_details(db: Session, order_id: int) -> List[OrderDetailRow]:
    """
    Flattened view of one order: a row per item with the buyer's email and
    name (name may be missing when the user has no profile) and the line total.
    """
    rows = (
        db.query(Order, User, UserProfile, OrderItem, Product)
        .join(User, Order.user_id == User.id)
        .outerjoin(UserProfile, UserProfile.user_id == User.id)
        .join(OrderItem, OrderItem.order_id == Order.id)
        .join(Product, OrderItem.product_id == Product.id)
        .filter(Order.id == order_id)
        .order_by(OrderItem.id)
        .all()
    )

    if not rows and db.get(Order, order_id) is None:
        raise OrderNotFound(f"Order ID {order_id} not found")

    return [
        OrderDetailRow(
            order_id=order.id,
            order_date=order.order_date,
            order_status=order.status,
            user_id=user.id,
            user_email=user.email,
            first_name=profile.first_name if profile else None,
            last_name=profile.last_name if profile else None,
            order_item_id=item.id,
            product_id=product.id,
            product_name=product.name,
            quantity=item.quantity,
            price_at_purchase=item.price_at_purchase,
            item_total_price=(item.price_at_purchase * item.quantity).quantize(CENT),
        )
        for order, user, profile, item, product in rows
    ]

# --- LIFECYCLE ---

def update_order_status(db: Session, order_id: int, new_status: OrderStatus) -> Order:
    """
    Move an order forward in its lifecycle (fulfilment side, never placement).

    The row is locked while the transition is checked, and the write only
    applies if the status is still the one that was checked. A concurrent
    update that got there first makes this one fail with
    InvalidStatusTransition instead of overwriting it.
    """
    try:
        order = (
            db.query(Order)
            .filter(Order.id == order_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if order is None:
            raise OrderNotFound(f"Order ID {order_id} not found")

        current = order.status
        if new_status not in ORDER_STATUS_TRANSITIONS[current]:
            raise InvalidStatusTransition(
                f"Order #{order_id} cannot move from '{current.value}' to '{new_status.value}'"
            )

        result = db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == current)
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidStatusTransition(
                f"Order #{order_id} changed status while moving from '{current.value}' "
                f"to '{new_status.value}'"
            )

        db.commit()
    except StorefrontError as e:
        db.rollback()
        logger.warning(f"Status update rejected for order #{order_id}: {e}")
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update status of order #{order_id}: {e}", exc_info=True)
        raise StorageUnavailable("Order status could not be stored") from e

    logger.info(f"Order #{order_id} moved from '{current.value}' to '{new_status.value}'.")
    return get_order(db, order_id)
