from datetime import datetime
import re
from typing import Any, Dict, List, Optional
import uuid

from pymongo.errors import DuplicateKeyError

from content_cms.config import settings
from content_cms.database import db_manager
from content_cms.exceptions import CMSValidationError, DuplicateNameError, NotFoundError
from content_cms.managers.logging_manager import get_logger
from content_cms.models.component_models import ChangeLogEntry, ComponentTypeSchema
from content_cms.models.field_types import DEFAULT_FIELD_TYPE_REGISTRY, FieldTypeRegistry
from content_cms.services.component_type_seed_data import get_default_component_types_seed_data
from content_cms.services.field_schema import dump_fields, load_fields, validate_field_definitions

logger = get_logger(prefix="[ComponentTypeService]")

# Component types without a stored schema are accepted when their name looks like this.
CUSTOM_TYPE_NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")


def is_custom_type_name(name: Optional[str]) -> bool:
    return bool(name) and bool(CUSTOM_TYPE_NAME_PATTERN.match(name))


class ComponentTypeService:
    """
    Stores component type schemas.

    Names are unique case-insensitively (`name_key` holds the lower-cased name). Edits to
    `fields` bump `version` and append to a change history capped at
    `CHANGE_HISTORY_LIMIT` entries. Types are never hard-deleted, only deactivated.
    """

    def __init__(self, registry: FieldTypeRegistry = DEFAULT_FIELD_TYPE_REGISTRY):
        self.collection_name = "component_types"
        self.registry = registry

    def _collection(self):
        return db_manager.get_collection(self.collection_name)

    def _to_schema(self, doc: Dict[str, Any]) -> ComponentTypeSchema:
        doc = dict(doc)
        doc.pop("_id", None)
        doc["fields"] = dump_fields(load_fields(doc.get("fields"), self.registry))
        doc.setdefault("name_key", str(doc.get("name", "")).lower())
        return ComponentTypeSchema(**doc)

    async def _find(self, identifier: str) -> Optional[Dict[str, Any]]:
        return await self._collection().find_one(
            {"$or": [{"type_id": identifier}, {"name_key": identifier.strip().lower()}]}
        )

    def _check_name(self, name: str) -> str:
        name = (name or "").strip()
        if not is_custom_type_name(name):
            raise CMSValidationError(
                "Component type name must start with a letter and contain only letters, digits and underscores"
            )
        return name

    async def define_type(
        self,
        name: str,
        fields: Any,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
        created_by: Optional[str] = None,
    ) -> ComponentTypeSchema:
        """
        Create a component type.

        Raises:
            CMSValidationError: If the name is not an identifier.
            InvalidFieldError: If any field definition is invalid.
            DuplicateNameError: If a type with the same name (ignoring case) exists.
        """
        name = self._check_name(name)
        field_definitions = validate_field_definitions(fields, self.registry)

        collection = self._collection()
        if await collection.find_one({"name_key": name.lower()}):
            raise DuplicateNameError("Component type", name)

        now = datetime.utcnow()
        schema = ComponentTypeSchema(
            type_id=f"ctype_{uuid.uuid4().hex[:12]}",
            name=name,
            name_key=name.lower(),
            description=description,
            version=1,
            fields=field_definitions,
            is_active=True,
            tags=tags or [],
            created_at=now,
            updated_at=now,
            created_by=created_by,
            updated_by=created_by,
        )

        try:
            await collection.insert_one(schema.model_dump())
        except DuplicateKeyError:
            raise DuplicateNameError("Component type", name)

        logger.info("Defined component type %s (%s) with %d fields", name, schema.type_id, len(field_definitions))
        return schema

    async def update_type(
        self,
        identifier: str,
        fields: Any = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
        is_active: Optional[bool] = None,
        updated_by: Optional[str] = None,
    ) -> ComponentTypeSchema:
        """
        Update a component type by id or name.

        `fields` replaces the whole field list. The version only moves when the
        field definitions actually change.
        """
        collection = self._collection()
        doc = await self._find(identifier)
        if not doc:
            raise NotFoundError("Component type", identifier)
        current = self._to_schema(doc)

        updates: Dict[str, Any] = {}
        changes: List[str] = []

        if name is not None:
            name = self._check_name(name)
            if name != current.name:
                clash = await collection.find_one({"name_key": name.lower()})
                if clash and clash.get("type_id") != current.type_id:
                    raise DuplicateNameError("Component type", name)
                updates["name"] = name
                updates["name_key"] = name.lower()
                changes.append(f"renamed to {name}")

        fields_changed = False
        if fields is not None:
            new_fields = dump_fields(validate_field_definitions(fields, self.registry))
            if new_fields != dump_fields(current.fields):
                updates["fields"] = new_fields
                fields_changed = True
                changes.append(f"fields updated ({len(new_fields)} fields)")

        if description is not None and description != current.description:
            updates["description"] = description
        if tags is not None and tags != current.tags:
            updates["tags"] = tags
        if is_active is not None and is_active != current.is_active:
            updates["is_active"] = is_active
            changes.append("activated" if is_active else "deactivated")

        if not updates:
            return current

        now = datetime.utcnow()
        updates["updated_at"] = now
        updates["updated_by"] = updated_by
        operation: Dict[str, Any] = {"$set": updates}

        if fields_changed:
            entry = ChangeLogEntry(
                version=current.version + 1,
                changed_at=now,
                changed_by=updated_by,
                summary="; ".join(changes),
            )
            operation["$inc"] = {"version": 1}
            operation["$push"] = {
                "change_history": {"$each": [entry.model_dump()], "$slice": -settings.CHANGE_HISTORY_LIMIT}
            }

        try:
            await collection.update_one({"type_id": current.type_id}, operation)
        except DuplicateKeyError:
            raise DuplicateNameError("Component type", name or current.name)

        logger.info("Updated component type %s: %s", current.type_id, ", ".join(changes) or "metadata")
        return await self.get_type(current.type_id)

    async def get_type(self, identifier: str) -> ComponentTypeSchema:
        doc = await self._find(identifier)
        if not doc:
            raise NotFoundError("Component type", identifier)
        return self._to_schema(doc)

    async def resolve_type(self, name: Optional[str]) -> Optional[ComponentTypeSchema]:
        """
        Look up a type by name, ignoring case. Inactive types still resolve so existing
        components keep rendering. Returns `None` on a miss.
        """
        if not name or not name.strip():
            return None
        doc = await self._collection().find_one({"name_key": name.strip().lower()})
        return self._to_schema(doc) if doc else None

    async def list_types(self, include_inactive: bool = False, tag: Optional[str] = None) -> List[ComponentTypeSchema]:
        query: Dict[str, Any] = {}
        if not include_inactive:
            query["is_active"] = True
        if tag:
            query["tags"] = tag

        start_time = db_manager.log_query_start(self.collection_name, "list_types", query)
        try:
            docs = await self._collection().find(query).sort("name_key", 1).to_list(length=None)
        except Exception as e:
            db_manager.log_query_error(self.collection_name, "list_types", start_time, e, query)
            raise
        db_manager.log_query_success(self.collection_name, "list_types", start_time, len(docs))
        return [self._to_schema(doc) for doc in docs]

    async def deactivate_type(self, identifier: str, updated_by: Optional[str] = None) -> ComponentTypeSchema:
        """Soft delete: the type disappears from the catalogue but keeps resolving."""
        return await self.update_type(identifier, is_active=False, updated_by=updated_by)

    async def seed_defaults(self, reset: bool = False) -> Dict[str, int]:
        """
        Insert the default catalogue.

        With `reset` every stored type is removed first; otherwise types whose name is
        already taken are skipped.
        """
        collection = self._collection()
        removed = 0
        if reset:
            result = await collection.delete_many({})
            removed = result.deleted_count
            logger.warning("Removed %d component types before reseeding", removed)

        created = skipped = 0
        for definition in get_default_component_types_seed_data():
            if await self.resolve_type(definition["name"]):
                skipped += 1
                continue
            await self.define_type(
                name=definition["name"],
                fields=definition["fields"],
                description=definition.get("description"),
                tags=definition.get("tags"),
                created_by="system",
            )
            created += 1

        logger.info("Seeded default component types: %d created, %d skipped", created, skipped)
        return {"created": created, "skipped": skipped, "removed": removed}
