# storefront/data/seed.py
from decimal import Decimal

from storefront.data.database import Base, SessionLocal, engine
from storefront.data.models import ProductModel, VariationModel, PromoCodeModel, UserModel


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            return

        shirt = ProductModel(name="Linen shirt", price=Decimal("49.90"))
        scarf = ProductModel(name="Silk scarf", price=Decimal("29.00"))
        db.add_all([shirt, scarf])
        db.flush()

        db.add_all([
            VariationModel(product_id=shirt.id, sku="SHIRT-S-WHT", size="S", color="white", stock=10),
            VariationModel(product_id=shirt.id, sku="SHIRT-M-WHT", size="M", color="white", stock=5),
            VariationModel(product_id=shirt.id, sku="SHIRT-L-BLU", size="L", color="blue",
                           price=Decimal("54.90"), stock=3),
            VariationModel(product_id=scarf.id, sku="SCARF-RED", color="red", stock=20),
        ])
        db.add_all([
            PromoCodeModel(code="SUMMER10", kind="percentage", value=Decimal("10")),
            PromoCodeModel(code="WELCOME5", kind="fixed", value=Decimal("5.00")),
            PromoCodeModel(code="SPRING20", kind="percentage", value=Decimal("20"), is_active=False),
        ])
        db.add(UserModel(id=1, name="Demo client", email="demo@example.com", role="client"))
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    seed()
