# storefront/api/routers/orders.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_request_context
from storefront.data.database import get_db
from storefront.domain.schemas import CheckoutIn, CheckoutOut, OrderDetailOut, OrderListOut, SettleOut
from storefront.domain.values import RequestContext
from storefront.services.checkout_service import CheckoutService
from storefront.services.order_service import OrderService
from storefront.services.payment_service import PaymentService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/checkout", response_model=CheckoutOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """
    Creates a pending order from the caller's cart.
    Errors come back as {ok: false, error: ...} through the StoreError handler.
    """
    svc = CheckoutService(db)
    return svc.checkout(ctx, payload.shipping, payload.billing, payload.promo_code)


@router.get("", response_model=OrderListOut)
def list_orders(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    svc = OrderService(db)
    return svc.list_orders(ctx)


@router.get("/{order_id}", response_model=OrderDetailOut)
def get_order(
    order_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    svc = OrderService(db)
    return svc.get_order(ctx, order_id)


@router.post("/{order_id}/pay", response_model=SettleOut)
def pay_order(
    order_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """
    Mock settlement: marks the order paid and records a validated payment.
    """
    svc = PaymentService(db)
    return svc.settle(ctx, order_id)
