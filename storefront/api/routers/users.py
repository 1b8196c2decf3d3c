# storefront/api/routers/users.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.api.deps import get_request_context
from storefront.data.database import get_db
from storefront.domain.errors import Unauthenticated
from storefront.domain.schemas import UserCreate, UserRead
from storefront.domain.values import RequestContext
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserRead)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """
    Called by the auth gateway when it sees an identity for the first time.
    Idempotent on id.
    """
    service = UserService(db)
    try:
        return service.create_user(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/me", response_model=UserRead)
def get_me(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    if not ctx.is_authenticated:
        raise Unauthenticated()
    return UserService(db).get_user(ctx.user_id)


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    service = UserService(db)
    return service.get_user(user_id)
