from .product_service import ProductService
from .sale_service import SaleService, assemble_sale_details
__all__=[
    "ProductService",
    "SaleService",
    "assemble_sale_details",
    ]
