# storefront/repos/promotion_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.promotion import PromoCodeModel
from storefront.domain.values import Promotion


class PromotionRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_promotion(self, code: str) -> Promotion | None:
        promo = self.db.execute(
            select(PromoCodeModel).where(PromoCodeModel.code == code)
        ).scalar_one_or_none()

        if not promo:
            return None

        return Promotion(kind=promo.kind, value=promo.value, active=bool(promo.is_active))
