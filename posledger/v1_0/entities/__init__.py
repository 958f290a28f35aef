from .product_DTO import ProductDTO
from .sale_itemDTO import SaleItemDTO, SaleItemViewDTO
from .sale_DTO import SaleDetailDTO
from .result_DTO import NotFound, DeleteResultDTO
__all__ = [
    "ProductDTO",
    "SaleItemDTO",
    "SaleItemViewDTO",
    "SaleDetailDTO",
    "NotFound",
    "DeleteResultDTO",
]
