"""
# Component Type Routes

Admin endpoints managing the component type catalogue.

A component type is a named list of field definitions. Editors use it to render forms and
the content pipeline uses it to tag and enrich component data.

## Endpoints

| Method | Path | Purpose |
|---|---|---|
| GET | `/component-types` | List types (`include_inactive`, `tag` filters) |
| POST | `/component-types` | Define a type |
| GET | `/component-types/{identifier}` | Fetch by id or name |
| PUT | `/component-types/{identifier}` | Update; field changes bump the version |
| DELETE | `/component-types/{identifier}` | Deactivate (soft delete) |
| POST | `/component-types/seed` | Insert the default catalogue |

All endpoints require the admin bearer token.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from content_cms.exceptions import CMSError
from content_cms.managers.logging_manager import get_logger
from content_cms.models.component_models import CreateComponentTypeRequest, UpdateComponentTypeRequest
from content_cms.routes.dependencies import get_component_type_service, require_admin
from content_cms.services.component_type_service import ComponentTypeService

logger = get_logger(prefix="[ComponentTypeRoutes]")

router = APIRouter(prefix="/component-types", tags=["Component Types"])


@router.get("")
async def list_component_types(
    include_inactive: bool = Query(False, description="Include deactivated types"),
    tag: Optional[str] = Query(None, description="Only types carrying this tag"),
    service: ComponentTypeService = Depends(get_component_type_service),
    _admin: str = Depends(require_admin),
):
    """List component types ordered by name."""
    try:
        types = await service.list_types(include_inactive=include_inactive, tag=tag)
        return {"success": True, "data": [t.model_dump() for t in types]}
    except (CMSError, HTTPException):
        raise
    except Exception as e:
        logger.error("Failed to list component types: %s", e, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to list component types")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_component_type(
    request: CreateComponentTypeRequest,
    service: ComponentTypeService = Depends(get_component_type_service),
    admin: str = Depends(require_admin),
):
    """
    Define a new component type.

    Field definitions are validated recursively; the first invalid definition is reported
    with its dotted path (for example `testimonials.image`).

    Raises:
        400: Invalid name or field definition.
        409: A type with the same name exists (names compare case-insensitively).
    """
    try:
        schema = await service.define_type(
            name=request.name,
            fields=request.fields,
            description=request.description,
            tags=request.tags,
            created_by=admin,
        )
        return {"success": True, "data": schema.model_dump()}
    except (CMSError, HTTPException):
        raise
    except Exception as e:
        logger.error("Failed to create component type %s: %s", request.name, e, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create component type")


@router.post("/seed")
async def seed_component_types(
    reset: bool = Query(False, description="Remove every stored type before seeding"),
    service: ComponentTypeService = Depends(get_component_type_service),
    _admin: str = Depends(require_admin),
):
    """Insert the default component type catalogue."""
    try:
        summary = await service.seed_defaults(reset=reset)
        return {"success": True, "data": summary}
    except (CMSError, HTTPException):
        raise
    except Exception as e:
        logger.error("Failed to seed component types: %s", e, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to seed component types")


@router.get("/{identifier}")
async def get_component_type(
    identifier: str,
    service: ComponentTypeService = Depends(get_component_type_service),
    _admin: str = Depends(require_admin),
):
    schema = await service.get_type(identifier)
    return {"success": True, "data": schema.model_dump()}


@router.put("/{identifier}")
async def update_component_type(
    identifier: str,
    request: UpdateComponentTypeRequest,
    service: ComponentTypeService = Depends(get_component_type_service),
    admin: str = Depends(require_admin),
):
    """
    Update a component type.

    `fields`, when present, replaces the whole field list. Stored component data is not
    rewritten; editors see the new structure the next time content is enriched.
    """
    try:
        schema = await service.update_type(
            identifier,
            fields=request.fields,
            name=request.name,
            description=request.description,
            tags=request.tags,
            is_active=request.is_active,
            updated_by=admin,
        )
        return {"success": True, "data": schema.model_dump()}
    except (CMSError, HTTPException):
        raise
    except Exception as e:
        logger.error("Failed to update component type %s: %s", identifier, e, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update component type")


@router.delete("/{identifier}")
async def deactivate_component_type(
    identifier: str,
    service: ComponentTypeService = Depends(get_component_type_service),
    admin: str = Depends(require_admin),
):
    """Deactivate a component type. Components using it keep rendering."""
    schema = await service.deactivate_type(identifier, updated_by=admin)
    return {"success": True, "data": schema.model_dump(), "message": f"Component type {schema.name} deactivated"}
