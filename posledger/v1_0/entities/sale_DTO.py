from dataclasses import dataclass, field
from decimal import Decimal
from typing import List
from datetime import datetime

from .sale_itemDTO import SaleItemViewDTO

@dataclass(slots=True)
class SaleDetailDTO:
    """Sale plus its items; product names are resolved at read time."""
    id: int
    occurred_at: datetime
    total: Decimal
    cashier: str
    items: List[SaleItemViewDTO] = field(default_factory=list)
