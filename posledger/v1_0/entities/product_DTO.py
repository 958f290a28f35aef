from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from datetime import datetime

@dataclass(slots=True)
class ProductDTO:
    """Full product row, as persisted."""
    id: int
    name: str
    category: str
    purchase_price: Decimal
    sale_price: Decimal
    stock: int
    description: Optional[str]
    created_at: datetime
