from typing import List
from fastapi import APIRouter, HTTPException, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from dependency_injector.wiring import inject, Provide

from posledger.storage.database.db_connector import get_db
from posledger.app_containers import ApplicationContainer
from posledger.core.errors import LedgerError
from posledger.core.logger import logger

from posledger.v1_0.schemas import ProductCreate, ProductUpdate
from posledger.v1_0.entities import ProductDTO, DeleteResultDTO, NotFound
from posledger.v1_0.services import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

@router.post(
    "",
    response_model=ProductDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Create product",
)
@inject
async def create_product(
    request: ProductCreate,
    db: AsyncSession = Depends(get_db),
    service: ProductService = Depends(
        Provide[ApplicationContainer.api_container.product_service]
    ),
) -> ProductDTO:
    logger.info("[ProductRouter] create name=%s", request.name)
    try:
        return await service.create(payload=request, db=db)
    except (HTTPException, LedgerError):
        raise
    except Exception as e:
        logger.error("[ProductRouter] create error: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create product")

@router.get(
    "",
    response_model=List[ProductDTO],
    summary="List all products",
)
@inject
async def list_products(
    db: AsyncSession = Depends(get_db),
    service: ProductService = Depends(
        Provide[ApplicationContainer.api_container.product_service]
    ),
):
    logger.debug("[ProductRouter] list_all")
    return await service.list_all(db)

@router.get(
    "/{product_id}",
    response_model=ProductDTO,
    summary="Get product by ID",
)
@inject
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    service: ProductService = Depends(
        Provide[ApplicationContainer.api_container.product_service]
    ),
):
    logger.debug("[ProductRouter] get id=%s", product_id)
    result = await service.get(product_id, db)
    if isinstance(result, NotFound):
        raise HTTPException(status_code=404, detail=result.message)
    return result

@router.patch(
    "/{product_id}",
    response_model=ProductDTO,
    summary="Update product (only the fields sent)",
)
@inject
async def update_product(
    product_id: int,
    data: ProductUpdate,
    db: AsyncSession = Depends(get_db),
    service: ProductService = Depends(
        Provide[ApplicationContainer.api_container.product_service]
    ),
) -> ProductDTO:
    logger.info("[ProductRouter] update id=%s", product_id)
    result = await service.update(product_id=product_id, payload=data, db=db)
    if isinstance(result, NotFound):
        raise HTTPException(status_code=404, detail=result.message)
    return result

@router.delete(
    "/{product_id}",
    response_model=DeleteResultDTO,
    summary="Delete product",
)
@inject
async def delete_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    service: ProductService = Depends(
        Provide[ApplicationContainer.api_container.product_service]
    ),
) -> DeleteResultDTO:
    logger.warning("[ProductRouter] delete id=%s", product_id)
    return await service.delete(product_id=product_id, db=db)
