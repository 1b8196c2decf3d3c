from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from storefront.data.database import Base

class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    # gateway identity, not a users foreign key
    user_id = Column(Integer, nullable=False, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=True)

    status = Column(String, nullable=False, default="pending")  # pending, paid
    total = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="EUR")

    # addresses are copied by value at checkout, not referenced
    shipping_first_name = Column(String, nullable=False)
    shipping_last_name = Column(String, nullable=False)
    shipping_phone = Column(String, nullable=True)
    shipping_line1 = Column(String, nullable=False)
    shipping_line2 = Column(String, nullable=True)
    shipping_postal_code = Column(String, nullable=False)
    shipping_city = Column(String, nullable=False)
    shipping_country = Column(String, nullable=False)

    billing_first_name = Column(String, nullable=False)
    billing_last_name = Column(String, nullable=False)
    billing_phone = Column(String, nullable=True)
    billing_line1 = Column(String, nullable=False)
    billing_line2 = Column(String, nullable=True)
    billing_postal_code = Column(String, nullable=False)
    billing_city = Column(String, nullable=False)
    billing_country = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    lines = relationship("OrderLineModel", back_populates="order", order_by="OrderLineModel.id")
    payments = relationship("PaymentModel", back_populates="order", order_by="PaymentModel.id")
