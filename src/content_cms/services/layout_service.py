from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid

from pymongo.errors import DuplicateKeyError

from content_cms.config import settings
from content_cms.database import db_manager
from content_cms.exceptions import DuplicateNameError, NotFoundError, PartialBulkFailure
from content_cms.managers.logging_manager import get_logger
from content_cms.models.component_models import ComponentInstance, ComponentTypeSchema
from content_cms.models.field_types import DEFAULT_FIELD_TYPE_REGISTRY, FieldTypeRegistry
from content_cms.models.page_models import Layout, LayoutComponentPayload
from content_cms.services.component_service import ComponentService
from content_cms.services.component_type_service import ComponentTypeService
from content_cms.services.content_pipeline import enrich, flatten, rewrap
from content_cms.services.field_schema import dump_fields
from content_cms.utils.bulk_operations import settle_all
from content_cms.utils.logging_utils import log_performance

logger = get_logger(prefix="[LayoutService]")


class LayoutService:
    """
    Stores layouts and renders them with their components.

    Saving a layout writes each component independently and concurrently; when some of
    the writes fail the others stay applied and `PartialBulkFailure` reports every item.
    """

    def __init__(
        self,
        registry: FieldTypeRegistry = DEFAULT_FIELD_TYPE_REGISTRY,
        type_service: Optional[ComponentTypeService] = None,
        component_service: Optional[ComponentService] = None,
    ):
        self.collection_name = "layouts"
        self.registry = registry
        self.type_service = type_service or ComponentTypeService(registry)
        self.component_service = component_service or ComponentService(registry, self.type_service)

    def _collection(self):
        return db_manager.get_collection(self.collection_name)

    def _to_layout(self, doc: Dict[str, Any]) -> Layout:
        doc = dict(doc)
        doc.pop("_id", None)
        return Layout(**doc)

    async def _ensure_page(self, page_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not page_id:
            return None
        page = await db_manager.get_collection("pages").find_one({"page_id": page_id})
        if not page:
            raise NotFoundError("Page", page_id)
        return page

    async def create_layout(self, name: str, page_id: Optional[str] = None, created_by: Optional[str] = None) -> Layout:
        name = name.strip()
        page = await self._ensure_page(page_id)

        collection = self._collection()
        if await collection.find_one({"name": name}):
            raise DuplicateNameError("Layout", name)

        now = datetime.utcnow()
        layout = Layout(
            layout_id=f"lay_{uuid.uuid4().hex[:12]}",
            name=name,
            page_id=page_id,
            is_active=True,
            created_at=now,
            updated_at=now,
            created_by=created_by,
            updated_by=created_by,
        )
        try:
            await collection.insert_one(layout.model_dump())
        except DuplicateKeyError:
            raise DuplicateNameError("Layout", name)

        if page and not page.get("layout_id"):
            await db_manager.get_collection("pages").update_one(
                {"page_id": page_id}, {"$set": {"layout_id": layout.layout_id, "updated_at": now}}
            )
            logger.debug("Set layout %s as primary layout of page %s", layout.layout_id, page_id)

        logger.info("Created layout %s (%s)", name, layout.layout_id)
        return layout

    async def get_layout(self, layout_id: str) -> Layout:
        doc = await self._collection().find_one({"layout_id": layout_id})
        if not doc:
            raise NotFoundError("Layout", layout_id)
        return self._to_layout(doc)

    async def list_layouts(self, page_id: Optional[str] = None, include_inactive: bool = True) -> List[Layout]:
        query: Dict[str, Any] = {}
        if page_id is not None:
            query["page_id"] = page_id
        if not include_inactive:
            query["is_active"] = True
        docs = await self._collection().find(query).sort("created_at", 1).to_list(length=None)
        return [self._to_layout(doc) for doc in docs]

    async def _apply_component(
        self, layout_id: str, payload: LayoutComponentPayload, updated_by: Optional[str]
    ) -> ComponentInstance:
        if payload.id:
            return await self.component_service.update_instance(
                payload.id,
                data_patch=payload.data,
                order=payload.order,
                name=payload.name,
                type_name=payload.type_name,
                is_active=payload.is_active,
                layout_id=layout_id,
                replace_data=True,
                updated_by=updated_by,
            )
        return await self.component_service.create_instance(
            type_name=payload.type_name,
            name=payload.name,
            data=payload.data,
            order=payload.order,
            layout_id=layout_id,
            created_by=updated_by,
        )

    @log_performance("save_layout")
    async def save_layout(
        self,
        layout_id: str,
        name: Optional[str] = None,
        is_active: Optional[bool] = None,
        page_id: Optional[str] = None,
        components: Optional[List[LayoutComponentPayload]] = None,
        updated_by: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Save a layout from the editor.

        Layout attributes are updated first, then every component payload is written
        (update when it has an `id`, create in this layout otherwise).

        Returns:
            dict: The layout in editor shape.

        Raises:
            PartialBulkFailure: If any component write failed. Successful writes remain.
        """
        layout = await self.get_layout(layout_id)
        collection = self._collection()
        updates: Dict[str, Any] = {}

        if name is not None and name.strip() != layout.name:
            name = name.strip()
            clash = await collection.find_one({"name": name})
            if clash and clash.get("layout_id") != layout_id:
                raise DuplicateNameError("Layout", name)
            updates["name"] = name
        if is_active is not None and is_active != layout.is_active:
            updates["is_active"] = is_active
        if page_id is not None and page_id != layout.page_id:
            await self._ensure_page(page_id)
            updates["page_id"] = page_id

        if updates:
            updates["updated_at"] = datetime.utcnow()
            updates["updated_by"] = updated_by
            try:
                await collection.update_one({"layout_id": layout_id}, {"$set": updates})
            except DuplicateKeyError:
                raise DuplicateNameError("Layout", updates.get("name", layout.name))

        if components:
            result = await settle_all(
                (payload.id or f"new:{index}:{payload.name}", self._apply_component(layout_id, payload, updated_by))
                for index, payload in enumerate(components)
            )
            if result.failed:
                logger.warning(
                    "Layout %s saved with %d of %d component writes failing",
                    layout_id,
                    len(result.failed),
                    len(result.items),
                )
                raise PartialBulkFailure(result)
            logger.info("Saved layout %s with %d components", layout_id, len(result.items))

        return await self.render_editor_layout(await self.get_layout(layout_id))

    async def delete_layout(self, layout_id: str) -> Dict[str, Any]:
        """
        Delete a layout.

        Its components are deleted too when `CASCADE_LAYOUT_DELETE` is on, otherwise they
        are detached. Pages pointing at the layout lose the reference.
        """
        await self.get_layout(layout_id)

        if settings.CASCADE_LAYOUT_DELETE:
            components_removed = await self.component_service.delete_by_layout(layout_id)
            components_detached = 0
        else:
            components_removed = 0
            components_detached = await self.component_service.detach_from_layout(layout_id)

        await self._collection().delete_one({"layout_id": layout_id})
        await db_manager.get_collection("pages").update_many(
            {"layout_id": layout_id}, {"$set": {"layout_id": None, "updated_at": datetime.utcnow()}}
        )

        logger.info(
            "Deleted layout %s (%d components removed, %d detached)",
            layout_id,
            components_removed,
            components_detached,
        )
        return {
            "layout_id": layout_id,
            "components_removed": components_removed,
            "components_detached": components_detached,
        }

    # --- Rendering ---

    async def _schemas_for(self, components: List[ComponentInstance]) -> Dict[str, Optional[ComponentTypeSchema]]:
        schemas: Dict[str, Optional[ComponentTypeSchema]] = {}
        for component in components:
            key = component.type_name.lower()
            if key not in schemas:
                schemas[key] = await self.type_service.resolve_type(component.type_name)
        return schemas

    async def render_editor_layout(self, layout: Layout) -> Dict[str, Any]:
        """Layout with every component, data enriched against the current schemas."""
        components = await self.component_service.list_instances(layout.layout_id, include_inactive=True)
        schemas = await self._schemas_for(components)

        rendered = []
        for component in components:
            schema = schemas.get(component.type_name.lower())
            if schema is not None:
                data = enrich(component.data, schema.fields, self.registry)
                fields = dump_fields(schema.fields)
            else:
                data = rewrap(component.data, self.registry)
                fields = []
            rendered.append(
                {
                    "id": component.component_id,
                    "type": component.type_name,
                    "name": component.name,
                    "order": component.order,
                    "is_active": component.is_active,
                    "version": component.version,
                    "data": data,
                    "fields": fields,
                }
            )

        return {
            "id": layout.layout_id,
            "name": layout.name,
            "page_id": layout.page_id,
            "is_active": layout.is_active,
            "components": rendered,
            "created_at": layout.created_at,
            "updated_at": layout.updated_at,
        }

    async def render_public_layout(self, layout: Layout) -> Dict[str, Any]:
        """Layout with active components keyed by name and bare values."""
        components = await self.component_service.list_instances(layout.layout_id, include_inactive=False)
        return {
            "id": layout.layout_id,
            "name": layout.name,
            "components": {
                component.name: {
                    "id": component.component_id,
                    "type": component.type_name,
                    "name": component.name,
                    "order": component.order,
                    "data": flatten(component.data),
                }
                for component in components
            },
        }
