import os

# The app module builds its engine at import time; keep it off any real database
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from storefront.api.db.models import Base, Product, User, UserProfile, UserRole
from storefront.api.db.sessions import get_db, make_engine
from storefront.core.security import get_password_hash

PASSWORD = "correct-horse"

@pytest.fixture(scope="session")
def password_hash():
    # bcrypt is slow on purpose; hash once for the whole run
    return get_password_hash(PASSWORD)

@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'storefront.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()

@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def sample_data(session_factory, password_hash):
    """Users, profiles and products of the reference dataset. Returns ids by short name."""
    session = session_factory()
    try:
        users = {
            "alice": User(email="alice@example.com", password_hash=password_hash, role=UserRole.CUSTOMER),
            "bob": User(email="bob@example.com", password_hash=password_hash, role=UserRole.CUSTOMER),
            "charlie": User(email="charlie@example.com", password_hash=password_hash, role=UserRole.ADMIN),
            "diana": User(email="diana@example.com", password_hash=password_hash, role=UserRole.CUSTOMER, is_active=False),
            "sam": User(email="sam@example.com", password_hash=password_hash, role=UserRole.SUPPORT),
        }
        session.add_all(users.values())
        session.flush()

        session.add_all([
            UserProfile(user_id=users["alice"].id, first_name="Alice", last_name="Smith", bio="Loves hiking and coding."),
            UserProfile(user_id=users["bob"].id, first_name="Bob", last_name="Johnson"),
            UserProfile(user_id=users["charlie"].id, first_name="Charlie", last_name="Davis", bio="System Administrator"),
        ])

        products = {
            "laptop": Product(name="Laptop Pro", price=Decimal("1200.00"), sku="LP1001", stock_quantity=50),
            "mouse": Product(name="Wireless Mouse", price=Decimal("25.50"), sku="WM2002", stock_quantity=150),
            "keyboard": Product(name="Mechanical Keyboard", price=Decimal("75.00"), sku="MK3003", stock_quantity=75),
            "hub": Product(name="USB-C Hub", price=Decimal("40.00"), sku="UCH4004", stock_quantity=200),
            "webcam": Product(name="Webcam HD", price=Decimal("55.99"), sku="WC5005", stock_quantity=0),
        }
        session.add_all(products.values())
        session.commit()

        ids = {name: user.id for name, user in users.items()}
        ids.update({name: product.id for name, product in products.items()})
        return ids
    finally:
        session.close()

@pytest.fixture
def stock_of(session_factory):
    """Reads stock through a fresh session, i.e. only what was committed."""
    def _stock_of(product_id):
        with session_factory() as session:
            return session.get(Product, product_id).stock_quantity
    return _stock_of

@pytest.fixture
def client(session_factory):
    from storefront.main import api

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    api.dependency_overrides[get_db] = override_get_db
    with TestClient(api) as test_client:
        yield test_client
    api.dependency_overrides.clear()

@pytest.fixture
def login(client):
    """Returns a function that logs an email in and gives back auth headers."""
    def _login(email, password=PASSWORD):
        response = client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _login
