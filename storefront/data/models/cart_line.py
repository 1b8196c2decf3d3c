from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class CartLineModel(Base):
    __tablename__ = "cart_lines"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    variation_id = Column(Integer, ForeignKey("variations.id"), nullable=False)

    quantity = Column(Integer, nullable=False)

    cart = relationship("CartModel", back_populates="lines")

    __table_args__ = (
        UniqueConstraint("cart_id", "variation_id", name="u_cart_variation"),
        CheckConstraint("quantity BETWEEN 1 AND 999", name="ck_cart_line_quantity"),
    )
