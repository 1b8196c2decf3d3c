#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from storefront.api.deps import get_request_context
from storefront.data.database import get_db
from storefront.domain.schemas import CartOut, ItemIn, ItemQuantityIn
from storefront.domain.values import RequestContext
from storefront.services.cart_service import CartService
from storefront.utils.settings import CART_COOKIE_NAME, CART_COOKIE_MAX_AGE

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


def cart_token(request: Request) -> str | None:
    return request.cookies.get(CART_COOKIE_NAME)


def _remember_guest(request: Request, response: Response, new_token: str | None):
    if new_token:
        response.set_cookie(
            CART_COOKIE_NAME,
            new_token,
            max_age=CART_COOKIE_MAX_AGE,
            path="/",
            secure=request.url.scheme == "https",
            httponly=True,
            samesite="lax",
        )


@router.get("", response_model=CartOut)
def get_cart(
    request: Request,
    response: Response,
    ctx: RequestContext = Depends(get_request_context),
    token: str | None = Depends(cart_token),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    cart, new_token = svc.get_cart(ctx, token)
    _remember_guest(request, response, new_token)
    return cart


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    request: Request,
    response: Response,
    ctx: RequestContext = Depends(get_request_context),
    token: str | None = Depends(cart_token),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    cart, new_token = svc.add_item(ctx, token, payload.variation_id, payload.quantity)
    _remember_guest(request, response, new_token)
    return cart


@router.patch("/items/{variation_id}", response_model=CartOut)
def update_item(
    variation_id: int,
    payload: ItemQuantityIn,
    request: Request,
    response: Response,
    ctx: RequestContext = Depends(get_request_context),
    token: str | None = Depends(cart_token),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    cart, new_token = svc.update_item(ctx, token, variation_id, payload.quantity)
    _remember_guest(request, response, new_token)
    return cart


@router.delete("/items/{variation_id}", response_model=CartOut)
def remove_item(
    variation_id: int,
    request: Request,
    response: Response,
    ctx: RequestContext = Depends(get_request_context),
    token: str | None = Depends(cart_token),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    cart, new_token = svc.remove_item(ctx, token, variation_id)
    _remember_guest(request, response, new_token)
    return cart


@router.delete("", response_model=CartOut)
def clear_cart(
    request: Request,
    response: Response,
    ctx: RequestContext = Depends(get_request_context),
    token: str | None = Depends(cart_token),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    cart, new_token = svc.clear(ctx, token)
    _remember_guest(request, response, new_token)
    return cart
