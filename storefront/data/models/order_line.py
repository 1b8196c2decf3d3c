from sqlalchemy import Column, Integer, ForeignKey, String, Numeric
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderLineModel(Base):
    """Snapshot of a cart line at checkout time. Never updated."""

    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    # plain ints, the live product/variation may be deleted later
    product_id = Column(Integer, nullable=False)
    variation_id = Column(Integer, nullable=False)

    product_name = Column(String, nullable=False)
    variation_label = Column(String, nullable=True)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    line_total = Column(Numeric(10, 2), nullable=False)

    order = relationship("OrderModel", back_populates="lines")
