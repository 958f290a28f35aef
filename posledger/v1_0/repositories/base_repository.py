from typing import Any, Iterable, Optional, Type, TypeVar, Generic, Protocol, runtime_checkable
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

# --- models must expose .id ---
@runtime_checkable
class HasId(Protocol):
    id: Any  # PK column

ModelT = TypeVar("ModelT", bound=HasId)


class BaseRepository(Generic[ModelT]):
    """Session-per-call persistence helpers. Never commits; callers own the transaction."""

    def __init__(self, model: Type[ModelT]):
        self.model = model

    async def add(self, entity: ModelT, session: AsyncSession) -> ModelT:
        session.add(entity)
        await session.flush()
        return entity

    async def add_many(self, entities: Iterable[ModelT], session: AsyncSession) -> list[ModelT]:
        items = list(entities)
        session.add_all(items)
        await session.flush()
        return items

    async def get_by_id(self, id_: Any, session: AsyncSession) -> Optional[ModelT]:
        stmt: Select = select(self.model).where(self.model.id == id_)
        res = await session.execute(stmt)
        return res.scalars().first()

    async def get_many_for_update(
        self,
        ids: Iterable[Any],
        session: AsyncSession,
    ) -> dict[Any, ModelT]:
        """
        Lock the rows with the given ids (SELECT ... FOR UPDATE) in ascending
        id order, so two writers always acquire locks in the same sequence.
        Rows are refreshed from the database, not served from the identity map.
        """
        wanted = sorted(set(ids))
        if not wanted:
            return {}
        stmt: Select = (
            select(self.model)
            .where(self.model.id.in_(wanted))
            .order_by(self.model.id.asc())
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        res = await session.execute(stmt)
        return {row.id: row for row in res.scalars().all()}

    async def list_all(
        self,
        session: AsyncSession,
        *,
        order_by: Any | None = None,
    ) -> list[ModelT]:
        if order_by is None:
            order_by = self.model.id.desc()
        if not isinstance(order_by, (list, tuple)):
            order_by = (order_by,)
        stmt: Select = select(self.model).order_by(*order_by)
        res = await session.execute(stmt)
        return list(res.scalars().all())

    async def update_fields(
        self,
        entity: ModelT,
        data: dict[str, Any],
        session: AsyncSession,
        *,
        allow: set[str] | None = None,
    ) -> ModelT:
        for k, v in data.items():
            if allow and k not in allow:
                continue
            setattr(entity, k, v)
        await session.flush()
        return entity

    async def delete(self, entity: ModelT, session: AsyncSession) -> None:
        await session.delete(entity)
        await session.flush()
