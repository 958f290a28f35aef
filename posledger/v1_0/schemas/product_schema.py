from decimal import Decimal
from typing import Any, ClassVar, Dict, FrozenSet, Optional
from pydantic import BaseModel, Field, model_validator

from posledger.utils.money import MAX_INT, PRICE_LIMIT

class ProductCreate(BaseModel):
    """Schema used to create a product."""
    name: str = Field(..., min_length=1, max_length=200, description="Product name")
    category: str = Field(..., min_length=1, max_length=120, description="Product category")
    purchase_price: Decimal = Field(..., gt=0, lt=PRICE_LIMIT, description="Unit purchase price")
    sale_price: Decimal = Field(..., gt=0, lt=PRICE_LIMIT, description="Unit sale price")
    stock: int = Field(..., ge=0, le=MAX_INT, description="Initial stock quantity")
    description: Optional[str] = Field(default=None, description="Optional description; null allowed")

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Widget",
                "category": "Hardware",
                "purchase_price": "100.00",
                "sale_price": "150.00",
                "stock": 10,
                "description": None,
            }
        }
    }


class ProductUpdate(BaseModel):
    """
    Partial update. A field changes only if it is present in the payload:
    `description: null` clears it, an omitted `description` leaves it as is.
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[str] = Field(default=None, min_length=1, max_length=120)
    purchase_price: Optional[Decimal] = Field(default=None, gt=0, lt=PRICE_LIMIT)
    sale_price: Optional[Decimal] = Field(default=None, gt=0, lt=PRICE_LIMIT)
    stock: Optional[int] = Field(default=None, ge=0, le=MAX_INT)
    description: Optional[str] = None

    NULLABLE: ClassVar[FrozenSet[str]] = frozenset({"description"})

    @model_validator(mode="after")
    def _no_null_on_required(self):
        for name in self.model_fields_set - self.NULLABLE:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        """Only the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)

    model_config = {
        "json_schema_extra": {
            "example": {
                "stock": 25,
                "description": None,
            }
        }
    }
