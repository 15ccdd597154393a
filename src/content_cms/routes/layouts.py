"""
# Layout Routes

Admin endpoints for layouts.

`PUT /layouts/{layout_id}` is the editor's save: it updates the layout and writes every
component payload it carries (update by `id`, create when `id` is missing), then answers
with the layout in editor shape: each component's data wrapped, enriched with the current
schema, and accompanied by the schema's `fields`.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from content_cms.exceptions import CMSError
from content_cms.managers.logging_manager import get_logger
from content_cms.models.page_models import CreateLayoutRequest, UpdateLayoutRequest
from content_cms.routes.dependencies import get_layout_service, require_admin
from content_cms.services.layout_service import LayoutService

logger = get_logger(prefix="[LayoutRoutes]")

router = APIRouter(prefix="/layouts", tags=["Layouts"])


@router.get("")
async def list_layouts(
    page_id: Optional[str] = Query(None),
    service: LayoutService = Depends(get_layout_service),
    _admin: str = Depends(require_admin),
):
    layouts = await service.list_layouts(page_id=page_id)
    return {"success": True, "data": [layout.model_dump() for layout in layouts]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_layout(
    request: CreateLayoutRequest,
    service: LayoutService = Depends(get_layout_service),
    admin: str = Depends(require_admin),
):
    try:
        layout = await service.create_layout(request.name, page_id=request.page_id, created_by=admin)
        return {"success": True, "data": layout.model_dump()}
    except (CMSError, HTTPException):
        raise
    except Exception as e:
        logger.error("Failed to create layout %s: %s", request.name, e, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create layout")


@router.get("/{layout_id}")
async def get_layout(
    layout_id: str,
    service: LayoutService = Depends(get_layout_service),
    _admin: str = Depends(require_admin),
):
    """Layout in editor shape."""
    layout = await service.get_layout(layout_id)
    return {"success": True, "data": await service.render_editor_layout(layout)}


@router.put("/{layout_id}")
async def save_layout(
    layout_id: str,
    request: UpdateLayoutRequest,
    service: LayoutService = Depends(get_layout_service),
    admin: str = Depends(require_admin),
):
    """
    Save a layout and its components.

    Component writes are independent. If any of them fails the response is an error with
    per-item `results`; writes that succeeded are not rolled back.
    """
    try:
        layout = await service.save_layout(
            layout_id,
            name=request.name,
            is_active=request.is_active,
            page_id=request.page_id,
            components=request.components,
            updated_by=admin,
        )
        return {"success": True, "data": layout}
    except (CMSError, HTTPException):
        raise
    except Exception as e:
        logger.error("Failed to save layout %s: %s", layout_id, e, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save layout")


@router.delete("/{layout_id}")
async def delete_layout(
    layout_id: str,
    service: LayoutService = Depends(get_layout_service),
    _admin: str = Depends(require_admin),
):
    summary = await service.delete_layout(layout_id)
    return {"success": True, "data": summary, "message": "Layout deleted"}
