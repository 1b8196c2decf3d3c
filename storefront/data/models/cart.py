#storefront/data/models/cart.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    # user cart or guest cart, never both; user ids come from the auth gateway
    # and are not required to exist in users
    user_id = Column(Integer, nullable=True, index=True)
    token = Column(String(64), nullable=True, unique=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    lines = relationship(
        "CartLineModel",
        back_populates="cart",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL AND token IS NOT NULL) OR (user_id IS NOT NULL AND token IS NULL)",
            name="ck_cart_owner",
        ),
    )
