from contextlib import asynccontextmanager
from inspect import isawaitable
from typing import cast

from fastapi import FastAPI, APIRouter, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from posledger.core.settings import settings
from posledger.core.logger import logger
from posledger.core.errors import LedgerError, ValidationError, InsufficientStock, StorageUnavailable
from posledger.v1_0.v1_router import v1_router
from posledger.app_containers import ApplicationContainer
from posledger.storage.database import dispose_engine, init_models
API_PREFIX = settings.API_PREFIX

ERROR_STATUS = {
    ValidationError: 400,
    InsufficientStock: 409,
    StorageUnavailable: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = cast(ApplicationContainer, app.state.container)
    ret = container.init_resources()
    if isawaitable(ret):
        await ret
    await init_models()
    logger.info(f"{settings.APP_NAME} starting in {settings.APP_ENV}")
    try:
        yield
    finally:
        logger.info(f"{settings.APP_NAME} shutdown")
        shut = getattr(container, "shutdown_resources", None)
        if callable(shut):
            r = shut()
            if isawaitable(r):
                await r
        await dispose_engine()


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), 400)
    if status_code >= 500:
        logger.error("[API] %s %s -> %s", request.method, request.url.path, exc.detail)
    else:
        logger.info("[API] %s %s rejected: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    container = ApplicationContainer()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        openapi_url=f"{API_PREFIX}/openapi.json",
        docs_url=f"{API_PREFIX}/docs",
        redoc_url=f"{API_PREFIX}/redoc",
        lifespan=lifespan,
    )

    app.state.container = container

    origins = settings.CORS_ORIGINS_LIST
    allow_credentials = True

    if "*" in origins:
        # wildcard origins cannot be combined with credentials
        allow_credentials = False

    logger.info("CORS origins=%s allow_credentials=%s", origins, allow_credentials)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LedgerError, ledger_error_handler)

    base_router = APIRouter(prefix=API_PREFIX)
    base_router.include_router(v1_router)

    @base_router.get("/", tags=["health"])
    @base_router.get("/ready", tags=["health"])
    async def ready():
        return {
            "message": "ready",
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "env": settings.APP_ENV,
            "prefix": API_PREFIX,
        }

    app.include_router(base_router)

    return app


app = create_app()
