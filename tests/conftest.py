import os

# must be set before storefront is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"

from dataclasses import dataclass
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.data.database import Base, get_db
from storefront.data.models import (
    CartLineModel,
    CartModel,
    OrderModel,
    ProductModel,
    PromoCodeModel,
    UserModel,
    VariationModel,
)
from storefront.domain.schemas import AddressIn
from storefront.main import app


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of a test."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def foreign_keys(engine):
    """SQLite leaves foreign keys unchecked unless asked; the static pool keeps the pragma."""
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@dataclass
class Catalog:
    user_id: int
    other_user_id: int
    admin_id: int
    variation_a: int  # 10.00, stock 5
    variation_b: int  # 5.00, stock 1
    variation_c: int  # 12.50 override, stock 10


@pytest.fixture
def catalog(db) -> Catalog:
    db.add_all([
        UserModel(id=1, name="Alice", email="alice@example.com", role="client"),
        UserModel(id=2, name="Bob", email="bob@example.com", role="client"),
        UserModel(id=3, name="Admin", email="admin@example.com", role="admin"),
    ])

    tee = ProductModel(name="Tee", price=Decimal("10.00"))
    cap = ProductModel(name="Cap", price=Decimal("5.00"))
    db.add_all([tee, cap])
    db.flush()

    a = VariationModel(product_id=tee.id, sku="TEE-M", size="M", color="black", stock=5)
    b = VariationModel(product_id=cap.id, sku="CAP-ONE", color="red", stock=1)
    c = VariationModel(product_id=tee.id, sku="TEE-XL", size="XL", price=Decimal("12.50"), stock=10)
    db.add_all([a, b, c])

    db.add_all([
        PromoCodeModel(code="SUMMER10", kind="percentage", value=Decimal("10")),
        PromoCodeModel(code="FLAT5", kind="fixed", value=Decimal("5.00")),
        PromoCodeModel(code="BIG50", kind="fixed", value=Decimal("50.00")),
        PromoCodeModel(code="EXPIRED", kind="percentage", value=Decimal("50"), is_active=False),
    ])
    db.commit()

    return Catalog(
        user_id=1,
        other_user_id=2,
        admin_id=3,
        variation_a=a.id,
        variation_b=b.id,
        variation_c=c.id,
    )


def put_in_cart(db, user_id: int, variation_id: int, quantity: int) -> CartModel:
    cart = db.execute(select(CartModel).where(CartModel.user_id == user_id)).scalar_one_or_none()
    if not cart:
        cart = CartModel(user_id=user_id)
        db.add(cart)
        db.flush()
    db.add(CartLineModel(cart_id=cart.id, variation_id=variation_id, quantity=quantity))
    db.commit()
    return cart


def stock_of(db, variation_id: int) -> int:
    return db.execute(select(VariationModel.stock).where(VariationModel.id == variation_id)).scalar_one()


def count(db, model) -> int:
    return db.execute(select(func.count()).select_from(model)).scalar_one()


def cart_line_count(db, user_id: int) -> int:
    return db.execute(
        select(func.count())
        .select_from(CartLineModel)
        .join(CartModel, CartModel.id == CartLineModel.cart_id)
        .where(CartModel.user_id == user_id)
    ).scalar_one()


def order_count(db) -> int:
    return count(db, OrderModel)


@pytest.fixture
def shipping() -> AddressIn:
    return AddressIn(
        first_name="Alice",
        last_name="Martin",
        line1="1 rue de la Paix",
        postal_code="75002",
        city="Paris",
    )


class RecordingNotifier:
    def __init__(self):
        self.placed = []
        self.paid = []

    def send_order_placed(self, user_id, order_id, total):
        self.placed.append((user_id, order_id, total))

    def send_order_paid(self, user_id, order_id):
        self.paid.append((user_id, order_id))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
