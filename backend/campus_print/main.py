"""Campus Print API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map CampusPrintError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Services (database, blob store, page counter, order service, admin auth)
      are built once in the lifespan from a single Settings object and shared
      through app.state

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - create_app() factory so tests can build an app around their own settings
    - /files is mounted only for the local blob store (Cloudinary serves its own URLs)
"""

import logging
import random
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from campus_print.api.dependencies import AppServices
from campus_print.api.error_handlers import register_error_handlers
from campus_print.api.routes import auth, health, orders
from campus_print.config import Settings, get_settings
from campus_print.core.domain_types import BlobBackend
from campus_print.core.pricing import PricingRates
from campus_print.infrastructure.admin_auth import AdminAuth
from campus_print.infrastructure.cloudinary_blob_store import CloudinaryBlobStore
from campus_print.infrastructure.database import DatabaseSessionManager, init_db
from campus_print.infrastructure.local_blob_store import FILES_MOUNT_PATH, LocalBlobStore
from campus_print.infrastructure.observability import setup_logging
from campus_print.services.order_service import OrderService
from campus_print.services.order_store import SqlOrderStore
from campus_print.services.page_counter import PageCounter
from campus_print.services.upload_intake import UploadIntake

logger = logging.getLogger(__name__)


def build_blob_store(settings: Settings) -> LocalBlobStore | CloudinaryBlobStore:
    if settings.blob_backend == BlobBackend.CLOUDINARY:
        return CloudinaryBlobStore(
            settings.cloudinary_cloud_name,
            settings.cloudinary_api_key,
            settings.cloudinary_api_secret,
            timeout_seconds=settings.upload_timeout_seconds,
        )
    return LocalBlobStore(settings.blob_root, settings.public_base_url)


def build_services(
    settings: Settings, db: DatabaseSessionManager | None = None,
) -> AppServices:
    """Wire every collaborator from one Settings object."""
    if db is None:
        db = init_db(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
    blob_store = build_blob_store(settings)
    page_counter = PageCounter(
        blob_store,
        timeout_seconds=settings.upload_timeout_seconds,
        max_pages=settings.max_document_pages,
        workers=settings.upload_workers,
    )
    intake = UploadIntake(
        blob_store,
        page_counter,
        namespace=settings.blob_namespace,
        max_file_size_bytes=settings.max_file_size_bytes,
        timeout_seconds=settings.upload_timeout_seconds,
    )
    order_service = OrderService(
        SqlOrderStore(db),
        PricingRates(
            bw_rate=settings.bw_rate_per_page,
            color_rate=settings.color_rate_per_page,
            service_fee=settings.service_fee,
        ),
        max_code_gen_attempts=settings.max_code_gen_attempts,
        strict_page_ranges=settings.reject_out_of_range_pages,
        page_counter=page_counter,
        blob_store=blob_store,
        rng=random.SystemRandom(),
    )
    admin_auth = AdminAuth(
        settings.admin_username,
        settings.admin_password,
        settings.admin_token_secret,
        ttl_seconds=settings.admin_token_ttl_seconds,
    )
    return AppServices(
        settings=settings,
        db=db,
        blob_store=blob_store,
        page_counter=page_counter,
        intake=intake,
        orders=order_service,
        admin_auth=admin_auth,
    )


async def close_services(services: AppServices) -> None:
    await services.intake.aclose()
    services.page_counter.close()
    if isinstance(services.blob_store, CloudinaryBlobStore):
        await services.blob_store.aclose()
    await services.db.dispose()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, settings.log_format)
    services = build_services(settings)
    app.state.services = services
    logger.info(
        f"Campus Print API started (blob backend: {settings.blob_backend.value})",
    )
    yield
    logger.info("Campus Print API shutting down")
    await close_services(services)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Campus Print API", version=health.SERVICE_VERSION, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes, registered explicitly
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(orders.router)

    # Mounted after API routes so /api/v1/* takes precedence
    if settings.blob_backend == BlobBackend.LOCAL:
        app.mount(
            FILES_MOUNT_PATH,
            StaticFiles(directory=settings.blob_root, check_dir=False),
            name="files",
        )

    register_error_handlers(app)
    return app


app = create_app()
