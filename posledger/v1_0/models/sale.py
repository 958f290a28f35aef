from datetime import datetime
from decimal import Decimal
from sqlalchemy import Integer, String, Numeric, DateTime, CheckConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from .base import Base
from .product import utcnow

class Sale(Base):
    __tablename__ = "sales"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        default=utcnow,
        server_default=func.now(),
    )
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    cashier: Mapped[str] = mapped_column(String, nullable=False)

    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all",
        passive_deletes=True,
        order_by="SaleItem.id",
    )

    __table_args__ = (
        CheckConstraint("total > 0", name="total_positive"),
    )
