"""
# Component Routes

Admin endpoints for component instances.

`PUT /components/reorder` is declared before `/{component_id}` so the literal path wins.
Reordering writes every component independently; when some writes fail the response is
an error carrying the per-item `results`, and the successful writes stay applied.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from content_cms.exceptions import CMSError
from content_cms.managers.logging_manager import get_logger
from content_cms.models.component_models import CreateComponentRequest, ReorderRequest, UpdateComponentRequest
from content_cms.routes.dependencies import get_component_service, require_admin
from content_cms.services.component_service import ComponentService

logger = get_logger(prefix="[ComponentRoutes]")

router = APIRouter(prefix="/components", tags=["Components"])


@router.get("")
async def list_components(
    layout_id: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    type: Optional[str] = Query(None, description="Filter by component type name"),
    service: ComponentService = Depends(get_component_service),
    _admin: str = Depends(require_admin),
):
    components = await service.list_instances(layout_id=layout_id, include_inactive=include_inactive, type_name=type)
    return {"success": True, "data": [c.model_dump() for c in components]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_component(
    request: CreateComponentRequest,
    service: ComponentService = Depends(get_component_service),
    admin: str = Depends(require_admin),
):
    """
    Create a component instance.

    The type must resolve to a stored component type or be a plain identifier (custom
    type). Data keys the type does not define are kept.
    """
    try:
        component = await service.create_instance(
            type_name=request.type_name,
            name=request.name,
            data=request.data,
            order=request.order,
            layout_id=request.layout_id,
            created_by=admin,
        )
        return {"success": True, "data": component.model_dump()}
    except (CMSError, HTTPException):
        raise
    except Exception as e:
        logger.error("Failed to create component %s: %s", request.name, e, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create component")


@router.put("/reorder")
async def reorder_components(
    request: ReorderRequest,
    service: ComponentService = Depends(get_component_service),
    _admin: str = Depends(require_admin),
):
    result = await service.reorder((item.id, item.order) for item in request.components)
    result.raise_for_failures()
    return {"success": True, "data": result.to_dict()}


@router.get("/{component_id}")
async def get_component(
    component_id: str,
    service: ComponentService = Depends(get_component_service),
    _admin: str = Depends(require_admin),
):
    component = await service.get_instance(component_id)
    return {"success": True, "data": component.model_dump()}


@router.put("/{component_id}")
async def update_component(
    component_id: str,
    request: UpdateComponentRequest,
    service: ComponentService = Depends(get_component_service),
    admin: str = Depends(require_admin),
):
    """Partially update a component. `data` is merged per top-level field."""
    try:
        component = await service.update_instance(
            component_id,
            data_patch=request.data,
            order=request.order,
            name=request.name,
            type_name=request.type_name,
            is_active=request.is_active,
            updated_by=admin,
        )
        return {"success": True, "data": component.model_dump()}
    except (CMSError, HTTPException):
        raise
    except Exception as e:
        logger.error("Failed to update component %s: %s", component_id, e, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update component")


@router.delete("/{component_id}")
async def delete_component(
    component_id: str,
    service: ComponentService = Depends(get_component_service),
    admin: str = Depends(require_admin),
):
    """Soft delete: the component is hidden from public content and can be restored."""
    component = await service.soft_delete(component_id, updated_by=admin)
    return {"success": True, "data": component.model_dump(), "message": f"Component {component.name} deactivated"}


@router.post("/{component_id}/restore")
async def restore_component(
    component_id: str,
    service: ComponentService = Depends(get_component_service),
    admin: str = Depends(require_admin),
):
    component = await service.reactivate(component_id, updated_by=admin)
    return {"success": True, "data": component.model_dump()}
