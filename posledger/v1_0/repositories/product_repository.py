from typing import Any, Dict, Optional, List

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.v1_0.models import Product
from .base_repository import BaseRepository

UPDATABLE_FIELDS = {"name", "category", "purchase_price", "sale_price", "stock", "description"}

class ProductRepository(BaseRepository[Product]):
    def __init__(self) -> None:
        super().__init__(Product)

    async def create_product(
        self,
        data: Dict[str, Any],
        session: AsyncSession
    ) -> Product:
        entity = Product(
            name=data["name"],
            category=data["category"],
            purchase_price=data["purchase_price"],
            sale_price=data["sale_price"],
            stock=data["stock"],
            description=data.get("description"),
        )
        await self.add(entity, session)
        return entity

    async def get_product_by_id(
        self,
        product_id: int,
        session: AsyncSession
    ) -> Optional[Product]:
        return await super().get_by_id(product_id, session)

    async def update_product(
        self,
        product_id: int,
        changes: Dict[str, Any],
        session: AsyncSession
    ) -> Optional[Product]:
        """Apply only the given fields; None if the product does not exist."""
        entity = await self.get_product_by_id(product_id, session)
        if not entity:
            return None
        if not changes:
            return entity
        return await self.update_fields(entity, changes, session, allow=UPDATABLE_FIELDS)

    async def delete_product(
        self,
        product_id: int,
        session: AsyncSession
    ) -> bool:
        entity = await self.get_product_by_id(product_id, session)
        if not entity:
            return False
        await self.delete(entity, session)
        return True

    async def lock_products(
        self,
        product_ids: List[int],
        session: AsyncSession
    ) -> Dict[int, Product]:
        return await self.get_many_for_update(product_ids, session)

    async def decrease_stock(
        self,
        product_id: int,
        amount: int,
        session: AsyncSession
    ) -> bool:
        """
        Filtered decrement: only succeeds while stock covers `amount`.
        Returns False when no row matched (stock changed underneath us).
        """
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock >= amount)
            .values(stock=Product.stock - amount)
            .execution_options(synchronize_session="fetch")
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0) == 1

    async def list_products(self, session: AsyncSession) -> List[Product]:
        return await self.list_all(
            session,
            order_by=(Product.created_at.desc(), Product.id.desc()),
        )
