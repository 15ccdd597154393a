"""
# Content CMS Application Entry Point

Builds the FastAPI application: lifespan (MongoDB connection, indexes, default component
type seeding), middleware (CORS, request logging), exception handlers, routers and
Prometheus metrics.

## Running

```bash
uvicorn content_cms.main:app --reload --host 0.0.0.0 --port 8000
```

## Response envelope

Success responses carry `{"success": true, "data": ...}`. Every error, whether raised by
a service (`CMSError`), a route (`HTTPException`) or request validation, is answered as
`{"success": false, "message": ...}`; partial bulk failures add per-item `results`.
"""

from contextlib import asynccontextmanager
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from content_cms import __version__
from content_cms.config import settings
from content_cms.database import db_manager
from content_cms.exceptions import CMSError, InvalidFieldError, PartialBulkFailure
from content_cms.managers.logging_manager import get_logger
from content_cms.routes import (
    admin_pages_router,
    component_types_router,
    components_router,
    health_router,
    layouts_router,
    pages_router,
)
from content_cms.services.component_type_service import ComponentTypeService
from content_cms.utils.logging_utils import (
    RequestLoggingMiddleware,
    log_application_lifecycle,
    log_error_with_context,
)

logger = get_logger()


async def seed_component_types_if_empty() -> None:
    """Seed the default component type catalogue into an empty collection."""
    seed_start = time.time()
    logger.info("Checking component types...")

    try:
        collection = db_manager.get_collection("component_types")
        count = await collection.count_documents({})

        if count == 0:
            logger.info("Component types not found. Auto-seeding with defaults...")
            summary = await ComponentTypeService().seed_defaults()
            logger.info("Auto-seeded %d component types", summary["created"])
            log_application_lifecycle(
                "component_types_auto_seeded",
                {"types_seeded": summary["created"], "duration": f"{time.time() - seed_start:.3f}s"},
            )
        else:
            logger.info("Component types already exist (%d types)", count)
            log_application_lifecycle("component_types_seed_skipped", {"existing_types": count})

    except Exception as seed_error:
        logger.warning("Failed to auto-seed component types: %s", seed_error)
        log_application_lifecycle("component_types_seed_failed", {"error": str(seed_error)})


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifecycle.

    **Startup:** connect to MongoDB, ensure indexes, seed the default component types
    when the catalogue is empty (`SEED_DEFAULT_COMPONENT_TYPES`).

    **Shutdown:** disconnect from MongoDB.
    """
    startup_start_time = time.time()
    log_application_lifecycle(
        "startup_initiated",
        {
            "app_name": "Content CMS API",
            "version": __version__,
            "environment": "production" if settings.is_production else "development",
            "debug_mode": settings.DEBUG,
        },
    )

    db_connect_start = time.time()
    logger.info("Initiating database connection...")
    await db_manager.connect()
    log_application_lifecycle(
        "database_connected",
        {
            "connection_duration": f"{time.time() - db_connect_start:.3f}s",
            "database_name": settings.MONGODB_DATABASE,
            "connection_url": (
                settings.MONGODB_URL.split("@")[-1] if "@" in settings.MONGODB_URL else settings.MONGODB_URL
            ),
        },
    )

    indexes_start = time.time()
    logger.info("Creating/verifying database indexes...")
    await db_manager.create_indexes()
    log_application_lifecycle("database_indexes_ready", {"indexes_duration": f"{time.time() - indexes_start:.3f}s"})

    if settings.SEED_DEFAULT_COMPONENT_TYPES:
        await seed_component_types_if_empty()

    log_application_lifecycle("startup_completed", {"startup_duration": f"{time.time() - startup_start_time:.3f}s"})

    try:
        yield
    finally:
        shutdown_start = time.time()
        log_application_lifecycle("shutdown_initiated", {})
        try:
            await db_manager.disconnect()
        except Exception as e:
            log_error_with_context(e, {"operation": "database_disconnect"})
        log_application_lifecycle("shutdown_completed", {"shutdown_duration": f"{time.time() - shutdown_start:.3f}s"})


app = FastAPI(
    title="Content CMS API",
    description="""
    ## Content CMS API

    Pages are assembled from layouts of components. Administrators define component
    types as nested field structures; component data is stored tagged with field kinds
    and delivered either wrapped (editor) or as bare values (public site).
    """,
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
    openapi_tags=[
        {"name": "Pages", "description": "Public page and content delivery"},
        {"name": "Pages (Admin)", "description": "Page management and editor content"},
        {"name": "Layouts", "description": "Layouts and bulk component saves"},
        {"name": "Components", "description": "Component instances"},
        {"name": "Component Types", "description": "Component type schemas"},
        {"name": "Health", "description": "Liveness and readiness"},
    ],
)


# --- Exception handlers ---


@app.exception_handler(CMSError)
async def cms_error_handler(request: Request, exc: CMSError):
    body = {"success": False, "message": exc.message}
    if isinstance(exc, InvalidFieldError):
        body["field_path"] = exc.field_path
    if isinstance(exc, PartialBulkFailure):
        body["results"] = exc.result.to_dict()["results"]
    if exc.status_code >= 500:
        log_error_with_context(exc, {"path": request.url.path, "method": request.method})
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else first.get("msg", "Invalid request")
    return JSONResponse(status_code=422, content={"success": False, "message": message})


# --- Middleware ---

cors_origins = settings.cors_origins_list
if settings.CORS_ENABLED and cors_origins:
    logger.info("Configuring CORS with origins: %s", cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
        max_age=3600,
    )

logger.info("Adding request logging middleware...")
app.add_middleware(RequestLoggingMiddleware)
log_application_lifecycle(
    "middleware_configured",
    {"middleware": ["CORSMiddleware", "RequestLoggingMiddleware"], "cors_origins": cors_origins},
)


# --- Routers ---

routers_config = [
    ("health", health_router, "Liveness and readiness endpoints"),
    ("pages", pages_router, "Public page and content delivery endpoints"),
    ("admin_pages", admin_pages_router, "Page management and editor content endpoints"),
    ("layouts", layouts_router, "Layout management and bulk save endpoints"),
    ("components", components_router, "Component instance endpoints"),
    ("component_types", component_types_router, "Component type schema endpoints"),
]

logger.info("Including API routers...")
included_routers = []
for router_name, router, description in routers_config:
    try:
        app.include_router(router)
        included_routers.append({"name": router_name, "description": description})
        logger.info("Successfully included %s router: %s", router_name, description)
    except Exception as e:
        log_error_with_context(
            e, {"operation": "router_inclusion", "router_name": router_name, "description": description}
        )
        logger.error("Failed to include %s router: %s", router_name, e)

log_application_lifecycle(
    "routers_configured",
    {"total_routers": len(routers_config), "included_routers": len(included_routers), "routers": included_routers},
)


# --- Metrics ---

if settings.METRICS_ENABLED:
    logger.info("Setting up Prometheus metrics instrumentation...")
    try:
        instrumentator = Instrumentator(
            should_group_status_codes=True,
            should_ignore_untemplated=True,
            should_respect_env_var=False,
            should_instrument_requests_inprogress=True,
        )
        instrumentator.instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")
        log_application_lifecycle("prometheus_configured", {"metrics_endpoint": "/metrics"})
    except Exception as e:
        log_error_with_context(e, {"operation": "prometheus_setup"})
        logger.error("Failed to configure Prometheus metrics: %s", e)


if __name__ == "__main__":
    uvicorn.run("content_cms.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG, log_level="info")
