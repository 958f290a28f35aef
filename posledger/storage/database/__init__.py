from .db_connector import (
    engine,
    async_session,
    build_engine,
    get_db,
    init_models,
    dispose_engine,
)
__all__ = [
    "engine",
    "async_session",
    "build_engine",
    "get_db",
    "init_models",
    "dispose_engine",
]
