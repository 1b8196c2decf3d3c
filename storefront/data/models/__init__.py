#import all models so SQLAlchemy registers them in Base.metadata

from storefront.data.models.user import UserModel
from storefront.data.models.catalog import ProductModel, VariationModel
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_line import CartLineModel
from storefront.data.models.promotion import PromoCodeModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_line import OrderLineModel
from storefront.data.models.payment import PaymentModel

__all__ = [
    "UserModel",
    "ProductModel",
    "VariationModel",
    "CartModel",
    "CartLineModel",
    "PromoCodeModel",
    "OrderModel",
    "OrderLineModel",
    "PaymentModel",
]
