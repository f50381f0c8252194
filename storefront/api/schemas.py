from pydantic import BaseModel, EmailStr, validator
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal

from storefront.api.db.models import UserRole, OrderStatus

# --- Token Schemas ---
class Token(BaseModel):
    access_token: str
    token_type: str

class TokenData(BaseModel):
    email: Optional[str] = None
    user_id: Optional[int] = None

# --- User Schemas ---
class UserBase(BaseModel):
    email: EmailStr

class UserCreate(UserBase):
    password: str

    @validator('password')
    def validate_password_length(cls, v):
        # bcrypt only accepts up to 72 bytes
        if len(v) < 8 or len(v.encode('utf-8')) > 72:
            raise ValueError('Password must be between 8 and 72 bytes long.')
        return v

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class UserOut(UserBase):
    id: int
    role: UserRole
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True

# --- Profile Schemas ---
class ProfileUpdate(BaseModel):
    # Every field optional so a client can update just the bio
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    date_of_birth: Optional[date] = None
    profile_picture_url: Optional[str] = None

class ProfileOut(ProfileUpdate):
    user_id: int

    class Config:
        from_attributes = True

# --- Product Schemas ---
class ProductBase(BaseModel):
    name: str
    description: Optional[str] = None
    price: Decimal = Decimal("0.00")
    sku: Optional[str] = None
    stock_quantity: int = 0

class ProductCreate(ProductBase):
    pass

class ProductUpdate(BaseModel):
    # All fields optional so you can update just the price or just the stock
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    sku: Optional[str] = None
    stock_quantity: Optional[int] = None

class ProductOut(ProductBase):
    id: int
    added_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# --- Order Schemas ---
class OrderItemSchema(BaseModel):
    product_id: int
    quantity: int

class OrderCreate(BaseModel):
    items: List[OrderItemSchema]
    shipping_address: Optional[str] = None
    billing_address: Optional[str] = None

class OrderResult(BaseModel):
    order_id: int
    status: OrderStatus
    total_amount: Decimal

class OrderItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    quantity: int
    price_at_purchase: Decimal

class OrderOut(BaseModel):
    id: int
    user_id: int
    status: OrderStatus
    total_amount: Optional[Decimal] = None
    order_date: datetime
    shipping_address: Optional[str] = None
    billing_address: Optional[str] = None
    items: List[OrderItemOut]

class OrderStatusUpdate(BaseModel):
    status: OrderStatus

class OrderDetailRow(BaseModel):
    """One row per order item, joined with its order, user, profile and product."""
    order_id: int
    order_date: datetime
    order_status: OrderStatus
    user_id: int
    user_email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    order_item_id: int
    product_id: int
    product_name: str
    quantity: int
    price_at_purchase: Decimal
    item_total_price: Decimal
