from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
import uuid

from pymongo.errors import DuplicateKeyError

from content_cms.config import settings
from content_cms.database import db_manager
from content_cms.exceptions import CMSValidationError, DuplicateNameError, NotFoundError
from content_cms.managers.logging_manager import get_logger
from content_cms.models.component_models import ChangeLogEntry, ComponentInstance, ComponentTypeSchema
from content_cms.models.field_types import DEFAULT_FIELD_TYPE_REGISTRY, FieldTypeRegistry
from content_cms.services.component_type_service import ComponentTypeService, is_custom_type_name
from content_cms.services.content_pipeline import find_unknown_fields, normalize_component_data
from content_cms.utils.bulk_operations import BulkResult, settle_all
from content_cms.utils.logging_utils import log_performance

logger = get_logger(prefix="[ComponentService]")


class ComponentService:
    """
    Stores component instances.

    Writes are permissive: data keys unknown to the component type are logged and kept.
    A component type that does not resolve is still accepted when its name is a plain
    identifier; its data is then tagged from the incoming wrappers alone.
    """

    def __init__(
        self,
        registry: FieldTypeRegistry = DEFAULT_FIELD_TYPE_REGISTRY,
        type_service: Optional[ComponentTypeService] = None,
    ):
        self.collection_name = "components"
        self.registry = registry
        self.type_service = type_service or ComponentTypeService(registry)

    def _collection(self):
        return db_manager.get_collection(self.collection_name)

    def _to_instance(self, doc: Dict[str, Any]) -> ComponentInstance:
        doc = dict(doc)
        doc.pop("_id", None)
        return ComponentInstance(**doc)

    async def _resolve(self, type_name: str) -> Optional[ComponentTypeSchema]:
        schema = await self.type_service.resolve_type(type_name)
        if schema is None and not is_custom_type_name(type_name):
            raise CMSValidationError(f"Unknown component type '{type_name}'")
        if schema is None:
            logger.debug("Component type %s has no stored schema, accepting as custom type", type_name)
        return schema

    def _normalize(self, component_name: str, schema: Optional[ComponentTypeSchema], data: Optional[Dict[str, Any]]):
        fields = schema.fields if schema else None
        if schema and data:
            unknown = find_unknown_fields(data, schema.fields)
            if unknown:
                logger.warning(
                    "Component %s has fields not defined by type %s (kept as-is): %s",
                    component_name,
                    schema.name,
                    unknown,
                )
        return normalize_component_data(data, fields, self.registry)

    async def _ensure_layout(self, layout_id: Optional[str]) -> None:
        if layout_id and not await db_manager.get_collection("layouts").find_one({"layout_id": layout_id}):
            raise NotFoundError("Layout", layout_id)

    async def create_instance(
        self,
        type_name: str,
        name: str,
        data: Optional[Dict[str, Any]] = None,
        order: int = 0,
        layout_id: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> ComponentInstance:
        """
        Create a component instance.

        Raises:
            CMSValidationError: If the type neither resolves nor is a valid custom name.
            NotFoundError: If `layout_id` does not exist.
            DuplicateNameError: If the component name is taken.
        """
        name = (name or "").strip()
        if not name:
            raise CMSValidationError("Component name is required")

        schema = await self._resolve(type_name)
        await self._ensure_layout(layout_id)
        normalized = self._normalize(name, schema, data)

        collection = self._collection()
        if await collection.find_one({"name": name}):
            raise DuplicateNameError("Component", name)

        now = datetime.utcnow()
        instance = ComponentInstance(
            component_id=f"cmp_{uuid.uuid4().hex[:12]}",
            type_name=schema.name if schema else type_name,
            name=name,
            data=normalized,
            order=order,
            is_active=True,
            layout_id=layout_id,
            version=1,
            created_at=now,
            updated_at=now,
            created_by=created_by,
            updated_by=created_by,
        )

        try:
            await collection.insert_one(instance.model_dump())
        except DuplicateKeyError:
            raise DuplicateNameError("Component", name)

        logger.info("Created component %s (%s) of type %s", name, instance.component_id, instance.type_name)
        return instance

    async def update_instance(
        self,
        component_id: str,
        data_patch: Optional[Dict[str, Any]] = None,
        order: Optional[int] = None,
        name: Optional[str] = None,
        type_name: Optional[str] = None,
        is_active: Optional[bool] = None,
        layout_id: Optional[str] = None,
        replace_data: bool = False,
        updated_by: Optional[str] = None,
    ) -> ComponentInstance:
        """
        Update a component instance.

        `data_patch` is merged into the stored data per top-level field; array and
        object fields are replaced as a whole. With `replace_data` the patch becomes the
        complete data. Data or activation changes bump the version.
        """
        current = await self.get_instance(component_id)
        collection = self._collection()
        updates: Dict[str, Any] = {}
        changes: List[str] = []

        if name is not None:
            name = name.strip()
            if not name:
                raise CMSValidationError("Component name is required")
            if name != current.name:
                clash = await collection.find_one({"name": name})
                if clash and clash.get("component_id") != component_id:
                    raise DuplicateNameError("Component", name)
                updates["name"] = name

        effective_type = current.type_name
        schema = None
        if type_name is not None and type_name.strip().lower() != current.type_name.lower():
            schema = await self._resolve(type_name)
            effective_type = schema.name if schema else type_name
            updates["type_name"] = effective_type
            changes.append(f"type changed to {effective_type}")

        if data_patch is not None:
            if schema is None:
                schema = await self.type_service.resolve_type(effective_type)
            normalized = self._normalize(name or current.name, schema, data_patch)
            merged = normalized if replace_data else {**current.data, **normalized}
            if merged != current.data:
                updates["data"] = merged
                changes.append("data updated")

        if order is not None and order != current.order:
            updates["order"] = order
        if layout_id is not None and layout_id != current.layout_id:
            await self._ensure_layout(layout_id)
            updates["layout_id"] = layout_id
        if is_active is not None and is_active != current.is_active:
            updates["is_active"] = is_active
            changes.append("activated" if is_active else "deactivated")

        if not updates:
            return current

        now = datetime.utcnow()
        updates["updated_at"] = now
        updates["updated_by"] = updated_by
        operation: Dict[str, Any] = {"$set": updates}

        if changes:
            entry = ChangeLogEntry(
                version=current.version + 1, changed_at=now, changed_by=updated_by, summary="; ".join(changes)
            )
            operation["$inc"] = {"version": 1}
            operation["$push"] = {
                "change_history": {"$each": [entry.model_dump()], "$slice": -settings.CHANGE_HISTORY_LIMIT}
            }

        try:
            await collection.update_one({"component_id": component_id}, operation)
        except DuplicateKeyError:
            raise DuplicateNameError("Component", name or current.name)

        logger.debug("Updated component %s: %s", component_id, sorted(updates))
        return await self.get_instance(component_id)

    async def update_instance_data(
        self, component_id: str, data_patch: Dict[str, Any], updated_by: Optional[str] = None
    ) -> ComponentInstance:
        return await self.update_instance(component_id, data_patch=data_patch, updated_by=updated_by)

    async def _set_order(self, component_id: str, order: int) -> int:
        result = await self._collection().update_one(
            {"component_id": component_id},
            {"$set": {"order": order, "updated_at": datetime.utcnow()}},
        )
        if result.matched_count == 0:
            raise NotFoundError("Component", component_id)
        return order

    @log_performance("reorder_components")
    async def reorder(self, items: Iterable[Tuple[str, int]]) -> BulkResult:
        """
        Set the order of several components.

        Each write is independent; all of them settle and the per-item outcome is
        reported. Nothing is rolled back.
        """
        result = await settle_all(
            (component_id, self._set_order(component_id, order)) for component_id, order in items
        )
        logger.info("Reordered components: %d succeeded, %d failed", len(result.succeeded), len(result.failed))
        return result

    async def soft_delete(self, component_id: str, updated_by: Optional[str] = None) -> ComponentInstance:
        return await self.update_instance(component_id, is_active=False, updated_by=updated_by)

    async def reactivate(self, component_id: str, updated_by: Optional[str] = None) -> ComponentInstance:
        return await self.update_instance(component_id, is_active=True, updated_by=updated_by)

    async def get_instance(self, component_id: str) -> ComponentInstance:
        doc = await self._collection().find_one({"component_id": component_id})
        if not doc:
            raise NotFoundError("Component", component_id)
        return self._to_instance(doc)

    async def list_instances(
        self,
        layout_id: Optional[str] = None,
        include_inactive: bool = False,
        type_name: Optional[str] = None,
    ) -> List[ComponentInstance]:
        query: Dict[str, Any] = {}
        if layout_id is not None:
            query["layout_id"] = layout_id
        if not include_inactive:
            query["is_active"] = True
        if type_name:
            query["type_name"] = type_name

        docs = await self._collection().find(query).sort("order", 1).to_list(length=None)
        return [self._to_instance(doc) for doc in docs]

    async def delete_by_layout(self, layout_id: str) -> int:
        result = await self._collection().delete_many({"layout_id": layout_id})
        logger.info("Deleted %d components of layout %s", result.deleted_count, layout_id)
        return result.deleted_count

    async def detach_from_layout(self, layout_id: str) -> int:
        result = await self._collection().update_many(
            {"layout_id": layout_id}, {"$set": {"layout_id": None, "updated_at": datetime.utcnow()}}
        )
        return result.modified_count
