from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os
from dotenv import load_dotenv

# Load environment variables from .env file FIRST
env_path = os.path.join(os.path.dirname(__file__), '.env')
load_dotenv(dotenv_path=env_path)

from app.config import settings, validate_settings
from app.domain.errors import QuotaExceededError
from app.infra.mongodb.connection import connect, ensure_indexes, close_database
from app.routes import (
    users_router,
    clients_router,
    briefs_router,
    proposals_router,
    templates_router,
    subscription_router,
    admin_router,
)
from app.services.template_service import get_template_service

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    validate_settings()
    connect()
    ensure_indexes()
    if settings.SEED_TEMPLATES_ON_STARTUP:
        get_template_service().seed_system_templates()
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} started")
    yield
    close_database()


app = FastAPI(
    title=f"{settings.APP_NAME} Backend",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(QuotaExceededError)
async def quota_exceeded_handler(request: Request, exc: QuotaExceededError):
    # Flat body: clients read limit/used/reset_date at the top level
    return JSONResponse(status_code=402, content=exc.payload)


@app.get("/")
async def root():
    return {
        "service": f"{settings.APP_NAME} Backend",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }


app.include_router(users_router)
app.include_router(clients_router)
app.include_router(briefs_router)
app.include_router(proposals_router)
app.include_router(templates_router)
app.include_router(subscription_router)
app.include_router(admin_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        log_level="info",
    )
