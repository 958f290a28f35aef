import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from posledger.storage.database import build_engine, init_models
from posledger.v1_0.repositories import ProductRepository, SaleItemRepository, SaleRepository
from posledger.v1_0.services import ProductService, SaleService
from tests.factories import widget_payload


@pytest_asyncio.fixture
async def engine():
    eng = build_engine("sqlite+aiosqlite://")
    await init_models(bind=eng)
    try:
        yield eng
    finally:
        await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


@pytest.fixture
def product_repository():
    return ProductRepository()


@pytest.fixture
def sale_repository():
    return SaleRepository()


@pytest.fixture
def sale_item_repository():
    return SaleItemRepository()


@pytest.fixture
def product_service(product_repository):
    return ProductService(product_repository=product_repository)


@pytest.fixture
def sale_service(sale_repository, sale_item_repository, product_repository):
    return SaleService(
        sale_repository=sale_repository,
        sale_item_repository=sale_item_repository,
        product_repository=product_repository,
    )


@pytest_asyncio.fixture
async def widget(product_service, db):
    return await product_service.create(widget_payload(), db)
