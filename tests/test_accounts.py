from decimal import Decimal

import pytest

from storefront.api.db.models import User, UserProfile, UserRole
from storefront.api.errors import (
    DuplicateSku,
    EmailAlreadyRegistered,
    InvalidProductData,
    ProductInUse,
    ProductNotFound,
    UserHasOrders,
    UserInactiveOrNotFound,
)
from storefront.api.schemas import OrderItemSchema, ProductCreate, ProductUpdate, ProfileUpdate
from storefront.api.services import account_service, order_service

def test_register_and_authenticate(db):
    user = account_service.register_user(db, "erin@example.com", "s3cret-pass")

    assert user.role == UserRole.CUSTOMER
    assert user.is_active is True
    assert user.password_hash != "s3cret-pass"
    assert account_service.authenticate(db, "erin@example.com", "s3cret-pass").id == user.id
    assert account_service.authenticate(db, "erin@example.com", "wrong") is None

def test_duplicate_email_is_refused(db, sample_data):
    with pytest.raises(EmailAlreadyRegistered):
        account_service.register_user(db, "alice@example.com", "another-pass")

def test_deactivated_user_cannot_log_in_or_order(db, sample_data):
    account_service.deactivate_user(db, sample_data["bob"])

    assert account_service.authenticate(db, "bob@example.com", "correct-horse") is None
    with pytest.raises(UserInactiveOrNotFound):
        order_service.place_order(
            db, sample_data["bob"], [OrderItemSchema(product_id=sample_data["hub"], quantity=1)]
        )

def test_user_with_orders_cannot_be_deleted(db, sample_data):
    order_service.place_order(
        db, sample_data["alice"], [OrderItemSchema(product_id=sample_data["hub"], quantity=1)]
    )

    with pytest.raises(UserHasOrders):
        account_service.delete_user(db, sample_data["alice"])
    assert db.get(User, sample_data["alice"]) is not None

def test_deleting_user_removes_profile(db, sample_data):
    account_service.delete_user(db, sample_data["charlie"])

    assert db.get(User, sample_data["charlie"]) is None
    assert db.query(UserProfile).filter(UserProfile.user_id == sample_data["charlie"]).count() == 0

def test_profile_upsert_changes_only_sent_fields(db, sample_data):
    profile = account_service.upsert_profile(db, sample_data["alice"], ProfileUpdate(bio="Climbs too."))
    assert profile.bio == "Climbs too."
    assert profile.first_name == "Alice"

    created = account_service.upsert_profile(db, sample_data["sam"], ProfileUpdate(first_name="Sam"))
    assert created.user_id == sample_data["sam"]
    assert created.last_name is None

def test_product_values_must_not_be_negative(db, sample_data):
    with pytest.raises(InvalidProductData):
        account_service.create_product(db, ProductCreate(name="Broken", price=Decimal("-1.00")))
    with pytest.raises(InvalidProductData):
        account_service.update_product(db, sample_data["mouse"], ProductUpdate(stock_quantity=-5))

def test_sku_is_unique(db, sample_data):
    with pytest.raises(DuplicateSku):
        account_service.create_product(db, ProductCreate(name="Mouse clone", sku="WM2002"))
    with pytest.raises(DuplicateSku):
        account_service.update_product(db, sample_data["hub"], ProductUpdate(sku="LP1001"))

    # Keeping its own SKU is not a conflict
    same = account_service.update_product(db, sample_data["hub"], ProductUpdate(sku="UCH4004", stock_quantity=10))
    assert same.stock_quantity == 10

def test_product_in_an_order_cannot_be_deleted(db, sample_data):
    order_service.place_order(
        db, sample_data["alice"], [OrderItemSchema(product_id=sample_data["keyboard"], quantity=1)]
    )

    with pytest.raises(ProductInUse):
        account_service.delete_product(db, sample_data["keyboard"])

    account_service.delete_product(db, sample_data["webcam"])
    with pytest.raises(ProductNotFound):
        account_service.get_product(db, sample_data["webcam"])

def test_in_stock_listing(db, sample_data):
    names = [p.name for p in account_service.list_products(db, in_stock_only=True)]
    assert "Webcam HD" not in names
    assert names == sorted(names)
    assert len(account_service.list_products(db)) == 5

@pytest.mark.parametrize("field", ["name", "price", "stock_quantity"])
def test_explicit_null_for_required_product_field_is_bad_data(db, sample_data, field):
    with pytest.raises(InvalidProductData):
        account_service.update_product(db, sample_data["laptop"], ProductUpdate(**{field: None}))

    laptop = account_service.get_product(db, sample_data["laptop"])
    assert laptop.name == "Laptop Pro"
    assert laptop.price == Decimal("1200.00")
    assert laptop.stock_quantity == 50

def test_optional_product_fields_can_be_cleared(db, sample_data):
    cleared = account_service.update_product(db, sample_data["mouse"], ProductUpdate(sku=None, description=None))
    assert cleared.sku is None

@pytest.mark.parametrize("name", ["", "   "])
def test_blank_product_name_is_refused_on_create_and_update(db, sample_data, name):
    with pytest.raises(InvalidProductData):
        account_service.create_product(db, ProductCreate(name=name, price=Decimal("5.00")))
    with pytest.raises(InvalidProductData):
        account_service.update_product(db, sample_data["hub"], ProductUpdate(name=name))

    assert len(account_service.list_products(db)) == 5
