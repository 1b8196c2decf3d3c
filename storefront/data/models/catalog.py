#storefront/data/models/catalog.py
from sqlalchemy import Column, Integer, ForeignKey, String, Numeric, Boolean, CheckConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    variations = relationship("VariationModel", back_populates="product")


class VariationModel(Base):
    """Purchasable unit of a product (size/color), carries its own stock."""

    __tablename__ = "variations"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    sku = Column(String, nullable=False, unique=True)
    size = Column(String, nullable=True)
    color = Column(String, nullable=True)
    # NULL = product price applies
    price = Column(Numeric(10, 2), nullable=True)
    stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    product = relationship("ProductModel", back_populates="variations")

    __table_args__ = (CheckConstraint("stock >= 0", name="ck_variation_stock_non_negative"),)
