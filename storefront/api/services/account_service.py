from decimal import Decimal
from typing import List, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.api.db.models import Order, OrderItem, Product, User, UserProfile, UserRole
from storefront.api.errors import (
    DuplicateSku,
    EmailAlreadyRegistered,
    InvalidProductData,
    ProductInUse,
    ProductNotFound,
    StorageUnavailable,
    UserHasOrders,
    UserInactiveOrNotFound,
)
from storefront.api.schemas import ProductCreate, ProductUpdate, ProfileUpdate
from storefront.core.security import get_password_hash, verify_password

# IMPORT LOGGER
from storefront.utils.logging_config import get_logger

logger = get_logger(__name__)

def _commit(db: Session, action: str):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to {action}: {e}", exc_info=True)
        raise StorageUnavailable(f"Could not {action}") from e

# --- USERS ---

def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise UserInactiveOrNotFound(f"User {user_id} not found")
    return user

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()

def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.id).all()

def register_user(db: Session, email: str, password: str, role: UserRole = UserRole.CUSTOMER) -> User:
    if get_user_by_email(db, email):
        raise EmailAlreadyRegistered("Email already registered")

    new_user = User(email=email, password_hash=get_password_hash(password), role=role, is_active=True)
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent signup for the same address
        db.rollback()
        raise EmailAlreadyRegistered("Email already registered") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to register {email}: {e}", exc_info=True)
        raise StorageUnavailable("Could not register user") from e

    db.refresh(new_user)
    logger.info(f"Registered user #{new_user.id} ({email}) with role '{role.value}'.")
    return new_user

def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    """Returns the user when the credentials match an active account."""
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    if not user.is_active:
        logger.warning(f"Login attempt for deactivated account {email}.")
        return None
    return user

def deactivate_user(db: Session, user_id: int) -> User:
    """Soft delete: the account stays so its orders keep a valid owner."""
    user = get_user(db, user_id)
    user.is_active = False
    _commit(db, f"deactivate user {user_id}")
    db.refresh(user)
    logger.info(f"User #{user_id} deactivated.")
    return user

def delete_user(db: Session, user_id: int) -> None:
    """Hard delete, refused while any order belongs to the user. The profile goes with it."""
    user = get_user(db, user_id)

    order_count = db.query(Order).filter(Order.user_id == user_id).count()
    if order_count:
        raise UserHasOrders(
            f"User {user_id} has {order_count} order(s); deactivate the account instead"
        )

    db.delete(user)
    _commit(db, f"delete user {user_id}")
    logger.info(f"User #{user_id} deleted.")

# --- PROFILES ---

def get_profile(db: Session, user_id: int) -> Optional[UserProfile]:
    return db.query(UserProfile).filter(UserProfile.user_id == user_id).first()

def upsert_profile(db: Session, user_id: int, data: ProfileUpdate) -> UserProfile:
    """Create the profile on first write, then update only the fields sent."""
    user = get_user(db, user_id)

    profile = user.profile
    if profile is None:
        profile = UserProfile(user_id=user.id)
        db.add(profile)

    for key, value in data.dict(exclude_unset=True).items():
        setattr(profile, key, value)

    _commit(db, f"save profile of user {user_id}")
    db.refresh(profile)
    return profile

# --- PRODUCTS ---

def _check_product_values(price: Optional[Decimal], stock_quantity: Optional[int]):
    if price is not None and price < 0:
        raise InvalidProductData("Price must not be negative")
    if stock_quantity is not None and stock_quantity < 0:
        raise InvalidProductData("Stock quantity must not be negative")

# NOT NULL columns; a client may omit them on update but never send null
REQUIRED_PRODUCT_FIELDS = ("name", "price", "stock_quantity")

def _check_required_fields(values: dict):
    for field in REQUIRED_PRODUCT_FIELDS:
        if field in values and values[field] is None:
            raise InvalidProductData(f"Product {field} must not be null")
    if "name" in values and not values["name"].strip():
        raise InvalidProductData("Product name must not be empty")

def _check_sku_free(db: Session, sku: Optional[str], product_id: Optional[int] = None):
    if sku is None:
        return
    query = db.query(Product).filter(Product.sku == sku)
    if product_id is not None:
        query = query.filter(Product.id != product_id)
    if query.first():
        raise DuplicateSku(f"SKU {sku} is already in use")

def list_products(db: Session, in_stock_only: bool = False) -> List[Product]:
    query = db.query(Product)
    if in_stock_only:
        query = query.filter(Product.stock_quantity > 0)
    return query.order_by(Product.name).all()

def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise ProductNotFound(f"Product ID {product_id} not found")
    return product

def create_product(db: Session, product_data: ProductCreate) -> Product:
    _check_required_fields(product_data.dict())
    _check_product_values(product_data.price, product_data.stock_quantity)
    _check_sku_free(db, product_data.sku)

    db_product = Product(**product_data.dict())
    db.add(db_product)
    _commit(db, "create product")
    db.refresh(db_product)
    logger.info(f"Product #{db_product.id} '{db_product.name}' created.")
    return db_product

def update_product(db: Session, product_id: int, update_data: ProductUpdate) -> Product:
    """
    Apply only the fields that were provided. Orders already placed keep
    their own price snapshot, so a price change never touches them.
    """
    db_product = get_product(db, product_id)
    changes = update_data.dict(exclude_unset=True)

    _check_required_fields(changes)
    _check_product_values(changes.get("price"), changes.get("stock_quantity"))
    _check_sku_free(db, changes.get("sku"), product_id)

    for key, value in changes.items():
        setattr(db_product, key, value)

    _commit(db, f"update product {product_id}")
    db.refresh(db_product)
    logger.info(f"Product #{product_id} updated: {sorted(changes)}")
    return db_product

def delete_product(db: Session, product_id: int) -> None:
    db_product = get_product(db, product_id)

    if db.query(OrderItem).filter(OrderItem.product_id == product_id).first():
        raise ProductInUse(f"Product {product_id} is part of existing orders and cannot be deleted")

    db.delete(db_product)
    _commit(db, f"delete product {product_id}")
    logger.info(f"Product #{product_id} deleted.")
