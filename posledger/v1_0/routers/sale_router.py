from typing import List
from fastapi import APIRouter, HTTPException, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from dependency_injector.wiring import inject, Provide

from posledger.storage.database.db_connector import get_db
from posledger.app_containers import ApplicationContainer
from posledger.core.errors import LedgerError
from posledger.core.logger import logger

from posledger.v1_0.schemas import SaleCreate
from posledger.v1_0.entities import SaleDetailDTO
from posledger.v1_0.services import SaleService
router = APIRouter(prefix="/sales", tags=["Sales"])



@router.post(
    "",
    response_model=SaleDetailDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Record a sale",
)
@inject
async def record_sale(
    request: SaleCreate,
    db: AsyncSession = Depends(get_db),
    service: SaleService = Depends(
        Provide[ApplicationContainer.api_container.sale_service]
    ),
):
    logger.info(
        "[SaleRouter] record_sale cashier=%s items=%s occurred_at=%s",
        request.cashier,
        len(request.items),
        request.occurred_at,
    )
    try:
        return await service.record_sale(
            cashier=request.cashier,
            items=request.items,
            db=db,
            occurred_at=request.occurred_at,
            total=request.total,
        )
    except (HTTPException, LedgerError):
        raise
    except Exception as e:
        logger.error("[SaleRouter] record_sale error: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to record sale")


@router.get(
    "",
    response_model=List[SaleDetailDTO],
    summary="List sales with items, newest first",
)
@inject
async def list_sales(
    db: AsyncSession = Depends(get_db),
    service: SaleService = Depends(Provide[ApplicationContainer.api_container.sale_service]),
):
    logger.debug("[SaleRouter] list_sales")
    return await service.list_sales(db)
