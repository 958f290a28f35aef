from dataclasses import dataclass
from decimal import Decimal

@dataclass(slots=True)
class SaleItemDTO:
    """Line validated and priced by the ledger, before it is persisted."""
    product_id: int
    qty: int
    sale_price: Decimal
    subtotal: Decimal

@dataclass(slots=True)
class SaleItemViewDTO:
    product_id: int
    qty: int
    sale_price: Decimal
    subtotal: Decimal
    product_name: str
