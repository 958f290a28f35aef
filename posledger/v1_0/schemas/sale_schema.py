from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime

from posledger.utils.money import MAX_INT, PRICE_LIMIT, TOTAL_LIMIT

class SaleItemInput(BaseModel):
    product_id: int = Field(..., ge=1, le=MAX_INT)
    qty: int = Field(..., ge=1, le=MAX_INT)
    sale_price: Decimal = Field(..., gt=0, lt=PRICE_LIMIT)

class SaleCreate(BaseModel):
    cashier: str = Field(..., min_length=1, max_length=120)
    items: List[SaleItemInput] = Field(..., min_length=1)
    occurred_at: Optional[datetime] = None
    # optional; when sent it must equal the computed sum
    total: Optional[Decimal] = Field(default=None, gt=0, lt=TOTAL_LIMIT)

    model_config = {
        "json_schema_extra": {
            "example": {
                "cashier": "cashier1",
                "items": [{"product_id": 1, "qty": 3, "sale_price": "150.00"}],
            }
        }
    }

class SaleItemCreate(BaseModel):
    sale_id: int = Field(..., ge=1)
    product_id: int = Field(..., ge=1, le=MAX_INT)
    qty: int = Field(..., ge=1, le=MAX_INT)
    sale_price: Decimal = Field(..., gt=0, lt=PRICE_LIMIT)
    subtotal: Decimal = Field(..., gt=0, lt=TOTAL_LIMIT)

class SaleInsert(BaseModel):
    cashier: str = Field(..., min_length=1)
    total: Decimal = Field(..., gt=0, lt=TOTAL_LIMIT)
    occurred_at: Optional[datetime] = None
