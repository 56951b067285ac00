# Import models so that SQLAlchemy metadata includes them on app startup
from .category import Category  # noqa: F401
from .product import Product  # noqa: F401
from .banner import Banner  # noqa: F401
from .payment_condition import PaymentCondition  # noqa: F401
from .seller import Seller  # noqa: F401
from .order import Order  # noqa: F401
from .order_item import OrderItem  # noqa: F401
from .store_setting import StoreSetting  # noqa: F401
