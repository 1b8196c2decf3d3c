"""
Checkout orchestration against an in-memory SQLite database.

Covers totals and promotions, atomicity of the write phase, stock
conservation (including a stock race), cart clearing and the
validation errors raised before anything is written.
"""

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select

from conftest import cart_line_count, count, order_count, put_in_cart, stock_of
from storefront.data.models import (
    CartLineModel,
    CartModel,
    OrderLineModel,
    OrderModel,
    PaymentModel,
    ProductModel,
    VariationModel,
)
from storefront.domain.errors import CartEmpty, InvalidAddress, OutOfStock, ServerError, Unauthenticated
from storefront.domain.schemas import AddressIn
from storefront.domain.values import RequestContext
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.checkout_service import CheckoutService


@pytest.fixture
def service(db, notifier):
    return CheckoutService(db, notification_service=notifier)


@pytest.fixture
def alice(catalog):
    return RequestContext(user_id=catalog.user_id)


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


def test_checkout_creates_pending_order(db, service, catalog, alice, shipping, notifier):
    put_in_cart(db, catalog.user_id, catalog.variation_a, 2)

    result = service.checkout(alice, shipping)

    assert result["ok"] is True
    assert result["total"] == Decimal("20.00")

    order = db.get(OrderModel, result["order_id"])
    assert order.status == "pending"
    assert order.user_id == catalog.user_id
    assert order.total == Decimal("20.00")
    assert order.currency == "EUR"

    assert stock_of(db, catalog.variation_a) == 3
    assert cart_line_count(db, catalog.user_id) == 0

    payments = db.execute(select(PaymentModel)).scalars().all()
    assert len(payments) == 1
    assert payments[0].status == "pending"
    assert payments[0].amount == Decimal("20.00")

    assert notifier.placed == [(catalog.user_id, order.id, Decimal("20.00"))]


def test_checkout_with_percentage_promotion(db, service, catalog, alice, shipping):
    put_in_cart(db, catalog.user_id, catalog.variation_a, 2)

    result = service.checkout(alice, shipping, promo_code="SUMMER10")

    assert result["total"] == Decimal("18.00")
    # the pending payment covers the discounted amount
    payment = db.execute(select(PaymentModel)).scalar_one()
    assert payment.amount == Decimal("18.00")


def test_fixed_promotion_larger_than_total_gives_zero(db, service, catalog, alice, shipping):
    put_in_cart(db, catalog.user_id, catalog.variation_a, 1)

    result = service.checkout(alice, shipping, promo_code="BIG50")

    assert result["total"] == Decimal("0.00")


@pytest.mark.parametrize("code", ["EXPIRED", "NOPE", "   "])
def test_unknown_or_inactive_promotion_is_ignored(db, service, catalog, alice, shipping, code):
    put_in_cart(db, catalog.user_id, catalog.variation_a, 2)

    result = service.checkout(alice, shipping, promo_code=code)

    assert result["total"] == Decimal("20.00")


def test_total_is_sum_of_lines_with_price_override(db, service, catalog, alice, shipping):
    put_in_cart(db, catalog.user_id, catalog.variation_a, 2)  # 2 x 10.00
    put_in_cart(db, catalog.user_id, catalog.variation_b, 1)  # 1 x 5.00
    put_in_cart(db, catalog.user_id, catalog.variation_c, 3)  # 3 x 12.50

    result = service.checkout(alice, shipping)

    assert result["total"] == Decimal("62.50")

    lines = db.execute(
        select(OrderLineModel).where(OrderLineModel.order_id == result["order_id"])
    ).scalars().all()
    assert sum(li.line_total for li in lines) == Decimal("62.50")
    by_variation = {li.variation_id: li for li in lines}
    assert by_variation[catalog.variation_c].unit_price == Decimal("12.50")
    assert by_variation[catalog.variation_c].variation_label == "XL"
    assert by_variation[catalog.variation_a].variation_label == "M / black"


def test_order_lines_are_snapshots(db, service, catalog, alice, shipping):
    put_in_cart(db, catalog.user_id, catalog.variation_a, 1)
    result = service.checkout(alice, shipping)

    variation = db.get(VariationModel, catalog.variation_a)
    product = db.get(ProductModel, variation.product_id)
    product.name = "Renamed tee"
    product.price = Decimal("99.00")
    db.commit()

    line = db.execute(
        select(OrderLineModel).where(OrderLineModel.order_id == result["order_id"])
    ).scalar_one()
    assert line.product_name == "Tee"
    assert line.unit_price == Decimal("10.00")


def test_billing_defaults_to_shipping(db, service, catalog, alice, shipping):
    put_in_cart(db, catalog.user_id, catalog.variation_a, 1)

    result = service.checkout(alice, shipping)

    order = db.get(OrderModel, result["order_id"])
    assert order.billing_city == "Paris"
    assert order.billing_line1 == "1 rue de la Paix"
    assert order.shipping_country == "FR"
    assert order.billing_country == "FR"
    assert order.shipping_phone is None


def test_separate_billing_address_is_stored(db, service, catalog, alice, shipping):
    put_in_cart(db, catalog.user_id, catalog.variation_a, 1)
    billing = AddressIn(
        first_name="Alice",
        last_name="Martin",
        line1="5 avenue Foch",
        postal_code="69006",
        city="Lyon",
        country="BE",
    )

    result = service.checkout(alice, shipping, billing=billing)

    order = db.get(OrderModel, result["order_id"])
    assert order.shipping_city == "Paris"
    assert order.billing_city == "Lyon"
    assert order.billing_country == "BE"


def test_cart_row_survives_checkout_empty(db, service, catalog, alice, shipping):
    cart = put_in_cart(db, catalog.user_id, catalog.variation_a, 1)
    cart_id = cart.id

    service.checkout(alice, shipping)

    assert db.get(CartModel, cart_id) is not None
    assert cart_line_count(db, catalog.user_id) == 0


# ---------------------------------------------------------------------------
# Validation, nothing written
# ---------------------------------------------------------------------------


def test_anonymous_caller_is_rejected(db, service, catalog, shipping):
    with pytest.raises(Unauthenticated):
        service.checkout(RequestContext(), shipping)


@pytest.mark.parametrize("field", ["first_name", "last_name", "line1", "postal_code", "city"])
def test_missing_shipping_field(db, service, catalog, alice, shipping, field):
    put_in_cart(db, catalog.user_id, catalog.variation_a, 1)
    broken = shipping.model_copy(update={field: "  "})

    with pytest.raises(InvalidAddress) as exc:
        service.checkout(alice, broken)

    assert exc.value.to_body() == {
        "ok": False,
        "error": "invalid_address",
        "missing": field,
        "address": "shipping",
    }
    assert order_count(db) == 0


def test_missing_billing_field(db, service, catalog, alice, shipping):
    put_in_cart(db, catalog.user_id, catalog.variation_a, 1)
    billing = shipping.model_copy(update={"postal_code": None})

    with pytest.raises(InvalidAddress) as exc:
        service.checkout(alice, shipping, billing=billing)

    assert exc.value.context == {"missing": "postal_code", "address": "billing"}


def test_no_cart_is_cart_empty(db, service, catalog, alice, shipping):
    with pytest.raises(CartEmpty):
        service.checkout(alice, shipping)


def test_cart_without_lines_is_cart_empty(db, service, catalog, alice, shipping):
    db.add(CartModel(user_id=catalog.user_id))
    db.commit()

    with pytest.raises(CartEmpty):
        service.checkout(alice, shipping)

    assert order_count(db) == 0


def test_out_of_stock_writes_nothing(db, service, catalog, alice, shipping, notifier):
    put_in_cart(db, catalog.user_id, catalog.variation_b, 3)  # stock 1

    with pytest.raises(OutOfStock) as exc:
        service.checkout(alice, shipping)

    assert exc.value.to_body() == {"ok": False, "error": "out_of_stock", "variation_id": catalog.variation_b}
    assert order_count(db) == 0
    assert count(db, OrderLineModel) == 0
    assert count(db, PaymentModel) == 0
    assert stock_of(db, catalog.variation_b) == 1
    assert cart_line_count(db, catalog.user_id) == 1
    assert notifier.placed == []


def test_one_bad_line_aborts_whole_cart(db, service, catalog, alice, shipping):
    put_in_cart(db, catalog.user_id, catalog.variation_a, 2)  # fine
    put_in_cart(db, catalog.user_id, catalog.variation_b, 2)  # stock 1

    with pytest.raises(OutOfStock) as exc:
        service.checkout(alice, shipping)

    assert exc.value.context["variation_id"] == catalog.variation_b
    assert order_count(db) == 0
    assert stock_of(db, catalog.variation_a) == 5
    assert cart_line_count(db, catalog.user_id) == 2


# ---------------------------------------------------------------------------
# Transactional phase
# ---------------------------------------------------------------------------


def test_stock_taken_after_check_rolls_back(db, service, catalog, alice, shipping, monkeypatch):
    """
    Another checkout takes the stock between the read and the decrement:
    the conditional update affects no row and the whole order is rolled back.

    SQLite serializes writers, so the interleaving is simulated with a stale
    read. test_concurrency_postgres.py runs two real checkouts in parallel.
    """
    put_in_cart(db, catalog.user_id, catalog.variation_a, 1)
    put_in_cart(db, catalog.user_id, catalog.variation_c, 4)

    variation = db.get(VariationModel, catalog.variation_c)
    variation.stock = 3
    db.commit()

    real_lines = CartRepo.get_checkout_lines

    def stale_lines(self, cart_id):
        return [replace(li, stock=10) for li in real_lines(self, cart_id)]

    monkeypatch.setattr(CartRepo, "get_checkout_lines", stale_lines)

    with pytest.raises(OutOfStock) as exc:
        service.checkout(alice, shipping)

    assert exc.value.context["variation_id"] == catalog.variation_c
    assert order_count(db) == 0
    assert count(db, OrderLineModel) == 0
    # variation A was decremented before the race was detected, and rolled back
    assert stock_of(db, catalog.variation_a) == 5
    assert stock_of(db, catalog.variation_c) == 3
    assert cart_line_count(db, catalog.user_id) == 2


def test_sequential_checkouts_cannot_oversell(db, service, catalog, shipping):
    """Calls one after the other; the parallel case needs Postgres, see test_concurrency_postgres.py."""
    put_in_cart(db, catalog.user_id, catalog.variation_b, 1)
    put_in_cart(db, catalog.other_user_id, catalog.variation_b, 1)

    first = service.checkout(RequestContext(user_id=catalog.user_id), shipping)
    assert first["ok"] is True

    with pytest.raises(OutOfStock):
        service.checkout(RequestContext(user_id=catalog.other_user_id), shipping)

    assert stock_of(db, catalog.variation_b) == 0
    assert order_count(db) == 1


def test_unexpected_failure_rolls_back_everything(db, service, catalog, alice, shipping, monkeypatch):
    put_in_cart(db, catalog.user_id, catalog.variation_a, 2)
    put_in_cart(db, catalog.user_id, catalog.variation_c, 3)

    def boom(self, *args, **kwargs):
        raise RuntimeError("payments table is gone")

    monkeypatch.setattr(OrderRepo, "insert_pending_payment", boom)

    with pytest.raises(ServerError) as exc:
        service.checkout(alice, shipping)

    assert exc.value.to_body() == {"ok": False, "error": "server_error"}
    assert order_count(db) == 0
    assert stock_of(db, catalog.variation_a) == 5
    assert stock_of(db, catalog.variation_c) == 10
    assert cart_line_count(db, catalog.user_id) == 2


def test_most_recently_updated_cart_is_checked_out(db, service, catalog, alice, shipping):
    old = CartModel(user_id=catalog.user_id, updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
    recent = CartModel(user_id=catalog.user_id, updated_at=datetime(2025, 6, 1, tzinfo=timezone.utc))
    db.add_all([old, recent])
    db.flush()
    db.add_all([
        CartLineModel(cart_id=old.id, variation_id=catalog.variation_a, quantity=1),
        CartLineModel(cart_id=recent.id, variation_id=catalog.variation_c, quantity=2),
    ])
    db.commit()
    old_id, recent_id = old.id, recent.id

    result = service.checkout(alice, shipping)

    assert result["total"] == Decimal("25.00")
    assert db.get(OrderModel, result["order_id"]).cart_id == recent_id
    # the older cart is left alone
    remaining = db.execute(select(CartLineModel.cart_id)).scalars().all()
    assert remaining == [old_id]
