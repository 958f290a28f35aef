from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.v1_0.models import SaleItem
from posledger.v1_0.schemas import SaleItemCreate
from .base_repository import BaseRepository

class SaleItemRepository(BaseRepository[SaleItem]):
    def __init__(self) -> None:
        super().__init__(SaleItem)

    async def bulk_insert_items(
        self,
        payloads: list[SaleItemCreate],
        session: AsyncSession,
    ) -> list[SaleItem]:
        """
        Bulk insert SaleItem rows.
        """
        objects = [
            SaleItem(
                sale_id=p.sale_id,
                product_id=p.product_id,
                qty=p.qty,
                sale_price=p.sale_price,
                subtotal=p.subtotal,
            )
            for p in payloads
        ]
        return await self.add_many(objects, session)

    async def count(self, session: AsyncSession) -> int:
        return int(await session.scalar(select(func.count(SaleItem.id))) or 0)
