import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.core.config import (
    CORS_ORIGINS,
    DATABASE_URL,
    SUPER_ADMIN_EMAIL,
    SUPER_ADMIN_PASSWORD,
    SUPER_ADMIN_USERNAME,
)
from storefront.core.database import Base, SessionLocal, engine
from storefront.core.error_handlers import setup_exception_handlers
from storefront.core.logging_setup import configure_logging
from storefront.core.startup_checks import ensure_migrations_applied, validate_database_environment
from storefront.middleware.observability import ObservabilityMiddleware
import storefront.models  # models must be registered before create_all
import storefront.services.event_handlers  # subscribes the event bus handlers

from storefront.services.bootstrap import ensure_tables_exist, upsert_super_admin
from storefront.routers.auth import router as auth_router
from storefront.routers.admin_users import router as admin_users_router
from storefront.routers.tenants import router as tenants_router
from storefront.routers.catalog import router as catalog_router
from storefront.routers.product_items import router as product_items_router
from storefront.routers.taxes import router as taxes_router
from storefront.routers.promo_codes import router as promo_codes_router
from storefront.routers.category_templates import router as category_templates_router
from storefront.routers.public import router as public_router
from storefront.routers.orders import router as orders_router
from storefront.routers.internal_metrics import router as internal_metrics_router

configure_logging()

logger = logging.getLogger(__name__)
BOOTSTRAP_PREFIX = "[BOOTSTRAP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini")))


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title="Storefront API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)
setup_exception_handlers(app)


def _bootstrap_super_admin() -> None:
    if not SUPER_ADMIN_PASSWORD:
        logger.warning("%s skipped: configure SUPER_ADMIN_PASSWORD.", BOOTSTRAP_PREFIX)
        return

    db = SessionLocal()
    try:
        user, created = upsert_super_admin(
            db,
            username=SUPER_ADMIN_USERNAME,
            email=SUPER_ADMIN_EMAIL,
            password=SUPER_ADMIN_PASSWORD,
        )
        logger.info(
            "%s %s id=%s username=%s",
            BOOTSTRAP_PREFIX,
            "created" if created else "exists",
            user.id,
            user.username,
        )
    except Exception:
        logger.exception("%s ERROR bootstrap failed", BOOTSTRAP_PREFIX)
        raise
    finally:
        db.close()


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        if DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
        ensure_tables_exist(engine)
        _bootstrap_super_admin()
    except Exception:
        logger.exception("%s ERROR startup failed", BOOTSTRAP_PREFIX)
        raise


# Routers
app.include_router(auth_router)
app.include_router(admin_users_router)
app.include_router(tenants_router)
app.include_router(catalog_router)
app.include_router(product_items_router)
app.include_router(taxes_router)
app.include_router(promo_codes_router)
app.include_router(category_templates_router)
app.include_router(public_router)
app.include_router(orders_router)
app.include_router(internal_metrics_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
