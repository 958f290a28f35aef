from typing import Any, List, Mapping, Optional, Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.v1_0.models import Sale, SaleItem, Product
from posledger.v1_0.schemas import SaleInsert
from .base_repository import BaseRepository

class SaleRepository(BaseRepository[Sale]):
    def __init__(self) -> None:
        super().__init__(Sale)

    async def create_sale(
        self,
        dto: SaleInsert,
        session: AsyncSession
    ) -> Sale:
        """
        Creates a new Sale from the DTO, adds it to the session,
        and flushes to assign its primary key without committing.
        """
        data = dto.model_dump(exclude_none=True)
        sale = Sale(**data)
        await self.add(sale, session)
        return sale

    async def count(self, session: AsyncSession) -> int:
        return int(await session.scalar(select(func.count(Sale.id))) or 0)

    async def list_with_items_rows(
        self,
        session: AsyncSession,
        *,
        sale_ids: Optional[Sequence[int]] = None,
    ) -> List[Mapping[str, Any]]:
        """
        Flattened sales x items x products join, newest sale first.

        Outer joins keep sales without items; those come back as a single
        row whose item columns are all NULL.
        """
        stmt = (
            select(
                Sale.id.label("sale_id"),
                Sale.occurred_at.label("occurred_at"),
                Sale.total.label("total"),
                Sale.cashier.label("cashier"),
                SaleItem.id.label("item_id"),
                SaleItem.product_id.label("item_product_id"),
                SaleItem.qty.label("item_qty"),
                SaleItem.sale_price.label("item_sale_price"),
                SaleItem.subtotal.label("item_subtotal"),
                Product.name.label("product_name"),
            )
            .select_from(Sale)
            .outerjoin(SaleItem, SaleItem.sale_id == Sale.id)
            .outerjoin(Product, Product.id == SaleItem.product_id)
            .order_by(Sale.occurred_at.desc(), Sale.id.desc(), SaleItem.id.asc())
        )
        if sale_ids is not None:
            stmt = stmt.where(Sale.id.in_(list(sale_ids)))

        rows = (await session.execute(stmt)).mappings().all()
        return list(rows)
