from sqlalchemy import (
    Column, Integer, String, Boolean, ForeignKey, Numeric, DateTime, Date, Enum, Text,
    CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime, timezone
import enum

Base = declarative_base()

def utc_now():
    return datetime.now(timezone.utc)

class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    SUPPORT = "support"

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

# Forward-only lifecycle; delivered and cancelled are terminal
ORDER_STATUS_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

def _enum_values(enum_cls):
    # Persist the lowercase values, not the member names
    return [member.value for member in enum_cls]

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role_enum", values_callable=_enum_values),
        nullable=False,
        default=UserRole.CUSTOMER,
    )
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    # Relationships
    profile = relationship(
        "UserProfile", back_populates="user", uselist=False,
        cascade="all, delete-orphan", passive_deletes=True,
    )
    # RESTRICT lives in the database; the ORM must not try to orphan orders
    orders = relationship("Order", back_populates="user", passive_deletes="all")

class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE", name="fk_user"),
        unique=True, index=True, nullable=False,
    )
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    profile_picture_url = Column(String(512), nullable=True)

    # Relationships
    user = relationship("User", back_populates="profile")

class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(255), index=True, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    sku = Column(String(50), unique=True, nullable=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    added_at = Column(DateTime(timezone=True), default=utc_now)

    # Relationships
    order_items = relationship("OrderItem", back_populates="product", passive_deletes="all")

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT", name="fk_user_order"),
        index=True, nullable=False,
    )
    order_date = Column(DateTime(timezone=True), default=utc_now)
    status = Column(
        Enum(OrderStatus, name="order_status_enum", values_callable=_enum_values),
        index=True, nullable=False, default=OrderStatus.PENDING,
    )
    total_amount = Column(Numeric(12, 2), nullable=True)
    shipping_address = Column(Text, nullable=True)
    billing_address = Column(Text, nullable=True)

    # Relationships
    user = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem", back_populates="order", order_by="OrderItem.id",
        cascade="all, delete-orphan", passive_deletes=True,
    )

class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        UniqueConstraint("order_id", "product_id", name="order_items_order_id_product_id_key"),
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )

    id = Column(Integer, primary_key=True)
    order_id = Column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE", name="fk_order"),
        index=True, nullable=False,
    )
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="RESTRICT", name="fk_product"),
        index=True, nullable=False,
    )
    quantity = Column(Integer, nullable=False)
    # Unit price copied from the catalog when the order was placed
    price_at_purchase = Column(Numeric(10, 2), nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")
    product = relationship("Product", back_populates="order_items")
