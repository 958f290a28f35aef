from .product_schema import ProductCreate, ProductUpdate
from .sale_schema import (
    SaleItemInput,
    SaleCreate,
    SaleItemCreate,
    SaleInsert
    )
__all__ = [
    "ProductCreate", "ProductUpdate",
    "SaleItemInput", "SaleCreate", "SaleItemCreate", "SaleInsert",
]
