from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stockceramique.app.api.errors import register_exception_handlers
from stockceramique.app.api.v1.router import router as v1_router
from stockceramique.app.core.config import settings
from stockceramique.app.core.log_config import configure_logging
from stockceramique.app.db.base import Base
from stockceramique.app.db.models import models_v1  # noqa: F401  (tables)
from stockceramique.app.db.session import engine

configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # SQLite local : schéma créé au démarrage ; PostgreSQL passe par alembic
    if engine.dialect.name == "sqlite":
        Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title=settings.APP_NAME, version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)
app.include_router(v1_router, prefix="/v1")
