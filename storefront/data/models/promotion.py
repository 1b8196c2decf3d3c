from sqlalchemy import Column, Integer, String, Numeric, Boolean, CheckConstraint

from storefront.data.database import Base


class PromoCodeModel(Base):
    __tablename__ = "promo_codes"

    id = Column(Integer, primary_key=True)
    code = Column(String, nullable=False, unique=True)
    kind = Column(String, nullable=False)  # percentage, fixed
    value = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("kind IN ('percentage', 'fixed')", name="ck_promo_kind"),
    )
