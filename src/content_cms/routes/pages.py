"""
# Page Routes

Two routers:

- `router` (`/pages`): public, unauthenticated content delivery.
- `admin_router` (`/admin/pages`): page management and editor content.

## Public content shape

`GET /pages/{slug}/content` answers with the page and its active layouts. Components are
keyed by name and their data holds bare values:

```json
{"page": {"slug": "home", "title": "Home"},
 "layouts": [{"id": "lay_...", "name": "home-main",
              "components": {"reviews": {"type": "Testimonials", "order": 0,
                                         "data": {"title": "What Our Clients Say",
                                                  "testimonials": [{"name": "Ada"}]}}}}]}
```

The admin variant `GET /admin/pages/{slug}/content` keeps value wrappers, includes
inactive layouts and components, and attaches each component type's `fields`.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from content_cms.exceptions import CMSError
from content_cms.managers.logging_manager import get_logger
from content_cms.models.page_models import CreatePageRequest, UpdatePageRequest
from content_cms.routes.dependencies import get_page_service, require_admin
from content_cms.services.page_service import PageService

logger = get_logger(prefix="[PageRoutes]")

router = APIRouter(prefix="/pages", tags=["Pages"])
admin_router = APIRouter(prefix="/admin/pages", tags=["Pages (Admin)"])


# --- Public ---


@router.get("")
async def list_public_pages(service: PageService = Depends(get_page_service)):
    pages = await service.list_pages(public=True)
    return {"success": True, "data": [service.public_view(page) for page in pages]}


@router.get("/{slug}")
async def get_public_page(slug: str, service: PageService = Depends(get_page_service)):
    page = await service.get_page_by_slug(slug, public=True)
    return {"success": True, "data": service.public_view(page)}


@router.get("/{slug}/content")
async def get_public_page_content(slug: str, service: PageService = Depends(get_page_service)):
    """
    Public content of a page.

    Raises:
        404: No active page has this slug.
    """
    try:
        return {"success": True, "data": await service.get_public_content(slug)}
    except (CMSError, HTTPException):
        raise
    except Exception as e:
        logger.error("Failed to load content for page %s: %s", slug, e, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to load page content")


# --- Admin ---


@admin_router.get("")
async def list_pages(
    status_filter: Optional[str] = Query(None, alias="status"),
    service: PageService = Depends(get_page_service),
    _admin: str = Depends(require_admin),
):
    pages = await service.list_pages(status=status_filter)
    return {"success": True, "data": [page.model_dump() for page in pages]}


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def create_page(
    request: CreatePageRequest,
    service: PageService = Depends(get_page_service),
    admin: str = Depends(require_admin),
):
    try:
        page = await service.create_page(request, created_by=admin)
        return {"success": True, "data": page.model_dump()}
    except (CMSError, HTTPException):
        raise
    except Exception as e:
        logger.error("Failed to create page %s: %s", request.slug, e, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create page")


@admin_router.get("/{slug}/content")
async def get_editor_page_content(
    slug: str,
    service: PageService = Depends(get_page_service),
    _admin: str = Depends(require_admin),
):
    """Editor content of a page: every layout and component, wrapped and enriched."""
    try:
        return {"success": True, "data": await service.get_editor_content(slug)}
    except (CMSError, HTTPException):
        raise
    except Exception as e:
        logger.error("Failed to load editor content for page %s: %s", slug, e, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to load page content")


@admin_router.get("/{page_id}")
async def get_page(
    page_id: str,
    service: PageService = Depends(get_page_service),
    _admin: str = Depends(require_admin),
):
    page = await service.get_page(page_id)
    return {"success": True, "data": page.model_dump()}


@admin_router.put("/{page_id}")
async def update_page(
    page_id: str,
    request: UpdatePageRequest,
    service: PageService = Depends(get_page_service),
    admin: str = Depends(require_admin),
):
    """Partial page update. Title, status and meta changes bump the page version."""
    try:
        page = await service.update_page(page_id, request, updated_by=admin)
        return {"success": True, "data": page.model_dump()}
    except (CMSError, HTTPException):
        raise
    except Exception as e:
        logger.error("Failed to update page %s: %s", page_id, e, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update page")


@admin_router.delete("/{page_id}")
async def delete_page(
    page_id: str,
    service: PageService = Depends(get_page_service),
    _admin: str = Depends(require_admin),
):
    """Delete a page and its layouts."""
    summary = await service.delete_page(page_id)
    return {"success": True, "data": summary, "message": "Page deleted"}
