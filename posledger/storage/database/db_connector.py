from collections.abc import AsyncGenerator
from typing import Any, Dict
from sqlalchemy.engine.url import make_url, URL
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool
from posledger.core.settings import settings


def build_engine(raw: str) -> AsyncEngine:
    """
    Engine for the configured URL.

    PostgreSQL URLs are rebuilt without their query string and forced onto
    asyncpg (sslmode/channel_binding never reach asyncpg.connect()). SQLite
    URLs run on aiosqlite; in-memory databases share a single connection.
    """
    u = make_url(raw)

    if u.get_backend_name() == "sqlite":
        clean_url: URL = u.set(drivername="sqlite+aiosqlite")
        kwargs: Dict[str, Any] = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.DB_COMMAND_TIMEOUT_SEC,
            },
        }
        if not u.database or u.database == ":memory:":
            kwargs["poolclass"] = StaticPool
        return create_async_engine(
            clean_url,
            echo=bool(getattr(settings, "DEBUG", False)),
            **kwargs,
        )

    clean_url = URL.create(
        drivername="postgresql+asyncpg",
        username=u.username,
        password=u.password,
        host=u.host,
        port=u.port,
        database=u.database,
    )

    return create_async_engine(
        clean_url.render_as_string(hide_password=False),
        echo=bool(getattr(settings, "DEBUG", False)),
        poolclass=NullPool,
        pool_pre_ping=True,
        execution_options={"isolation_level": "READ COMMITTED"},
        connect_args={
            "ssl": settings.DB_SSL,
            "statement_cache_size": 0,
            "timeout": settings.DB_POOL_TIMEOUT_SEC,
            "command_timeout": settings.DB_COMMAND_TIMEOUT_SEC,
        },
    )


engine = build_engine(settings.DATABASE_URL.get_secret_value())

async_session = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False, class_=AsyncSession)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    session: AsyncSession = async_session()
    try:
        yield session
    finally:
        await session.close()

async def init_models(bind: AsyncEngine | None = None) -> None:
    from posledger.v1_0.models import Base

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

async def dispose_engine() -> None:
    await engine.dispose()
