from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from atehna_oms.config.settings import AtehnaConfigs
from atehna_oms.logging.utils import get_app_logger, initialize_logging

# Initialize Sentry (must be done early, before the app is built)
from atehna_oms.config.sentry import init_sentry
init_sentry()

# Initialize structured logging
initialize_logging()
logger = get_app_logger('atehna_oms.main')

from atehna_oms.connections.database import Database
from atehna_oms.middlewares.cron_auth import CronSecretMiddleware
from atehna_oms.middlewares.handlers import register_exception_handlers
from atehna_oms.middlewares.logging_middleware import AuditMiddleware
from atehna_oms.routes.admin import admin_router
from atehna_oms.routes.health import router as health_router
from atehna_oms.services.archive_service import ArchiveService
from atehna_oms.services.boto3_service import DocumentStorage
from atehna_oms.services.order_service import OrderService
from atehna_oms.services.page_cache import AdminPageCache


def create_app(
    database: Optional[Database] = None,
    page_cache: Optional[AdminPageCache] = None,
    document_storage: Optional[DocumentStorage] = None,
    configs: Optional[AtehnaConfigs] = None,
) -> FastAPI:
    """
    Build the admin API. Collaborators left as None are constructed from
    configuration when the application starts.
    """
    configs = configs or AtehnaConfigs()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {configs.APP_NAME} | debug={configs.DEBUG}")
        db = database or Database.from_url(
            configs.DATABASE_URL,
            pool_size=configs.DATABASE_POOL_SIZE,
            max_overflow=configs.DATABASE_MAX_OVERFLOW,
        )
        db.verify_schema()

        cache = page_cache or AdminPageCache.from_configs(configs)
        storage = document_storage or DocumentStorage.from_configs(configs)
        archive_service = ArchiveService(db, page_cache=cache, document_storage=storage)

        app.state.database = db
        app.state.page_cache = cache
        app.state.archive_service = archive_service
        app.state.order_service = OrderService(
            db,
            archive_service,
            page_cache=cache,
            strict_transitions=configs.STRICT_STATUS_TRANSITIONS,
        )
        try:
            yield
        finally:
            logger.info(f"Shutting down {configs.APP_NAME}")
            db.close()

    # Disable docs in production (when DEBUG=false)
    app = FastAPI(
        title="Atehna OMS",
        version=configs.APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if configs.DEBUG else None,
        redoc_url="/redoc" if configs.DEBUG else None,
    )
    app.state.configs = configs

    if configs.ALLOWED_ORIGINS:
        origins = [origin.strip() for origin in configs.ALLOWED_ORIGINS.split(",")]
    else:
        origins = ["*"]
    logger.info(f"Configuring CORS with allowed origins: {origins}")

    app.add_middleware(CronSecretMiddleware, cron_secret=configs.CRON_SECRET)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Request/Audit logging middleware (added last, runs first)
    app.add_middleware(AuditMiddleware)

    register_exception_handlers(app)

    app.include_router(admin_router, prefix="/api/admin")
    app.include_router(health_router, tags=["health"])
    return app


app = create_app()
