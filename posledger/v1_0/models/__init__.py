from .base import Base
from .product import Product
from .sale_item import SaleItem
from .sale import Sale
__all__ = [
    "Base",
    "Product",
    "SaleItem",
    "Sale",
]
