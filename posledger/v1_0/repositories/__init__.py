from .base_repository import BaseRepository
from .product_repository import ProductRepository
from .sale_item_repository import SaleItemRepository
from .sale_repository import SaleRepository
__all__ = [
    "BaseRepository",
    "ProductRepository",
    "SaleItemRepository",
    "SaleRepository",
]
