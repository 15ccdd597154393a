from content_cms.routes.component_types import router as component_types_router
from content_cms.routes.components import router as components_router
from content_cms.routes.health import router as health_router
from content_cms.routes.layouts import router as layouts_router
from content_cms.routes.pages import admin_router as admin_pages_router
from content_cms.routes.pages import router as pages_router

__all__ = [
    "admin_pages_router",
    "component_types_router",
    "components_router",
    "health_router",
    "layouts_router",
    "pages_router",
]
