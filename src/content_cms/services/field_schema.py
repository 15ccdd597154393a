"""
Field definition normalization and validation.

Component type schemas arrive as plain dictionaries, either in the canonical shape

    {"name": "title", "kind": "text", "default_value": "", "constraints": {...}, "children": [...]}

or in the legacy dialect written by older admin clients and the seed catalogue

    {"name": "style", "type": "select", "default": "centered", "options": ["a", "b"]}
    {"name": "items", "fieldType": "array", "itemStructure": [...]}

`validate_field_definitions()` normalizes either form, checks every rule recursively and
returns typed `FieldDefinition` models. The first violation raises `InvalidFieldError`
naming the dotted path of the offending field.
"""

import re
from typing import Any, Dict, Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError

from content_cms.exceptions import InvalidFieldError
from content_cms.managers.logging_manager import get_logger
from content_cms.models.component_models import FieldDefinition
from content_cms.models.field_types import DEFAULT_FIELD_TYPE_REGISTRY, FieldTypeRegistry

logger = get_logger(prefix="[FieldSchema]")

FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
MAX_FIELD_NAME_LENGTH = 50
# Keys of the stored value wrapper that would make an item ambiguous
RESERVED_FIELD_NAMES = frozenset({"fieldType", "itemStructure"})

CONSTRAINT_KEYS = ("min", "max", "step", "pattern", "options")
CHILDREN_KEYS = ("children", "itemStructure", "subFields", "fields")

_field_list_adapter = TypeAdapter(List[FieldDefinition])


def _legacy_kind(raw: Dict[str, Any]) -> Any:
    for key in ("kind", "fieldType", "type"):
        if raw.get(key):
            return raw[key]
    return None


def _normalize_options(options: Any) -> Any:
    if not isinstance(options, list):
        return options
    normalized = []
    for option in options:
        if isinstance(option, dict):
            normalized.append(option)
        else:
            normalized.append({"label": str(option), "value": option})
    return normalized


def normalize_legacy_field(raw: Dict[str, Any], registry: FieldTypeRegistry = DEFAULT_FIELD_TYPE_REGISTRY) -> Dict[str, Any]:
    """
    Convert one field definition dictionary to the canonical shape, recursively.

    Unknown kinds are passed through unchanged so validation can report them.
    """
    raw_kind = _legacy_kind(raw)
    kind = registry.canonical_kind(raw_kind) or raw_kind

    normalized: Dict[str, Any] = {"name": raw.get("name"), "kind": kind}
    for key in ("label", "description"):
        if raw.get(key) is not None:
            normalized[key] = raw[key]

    validation = raw.get("validation") if isinstance(raw.get("validation"), dict) else {}
    normalized["required"] = bool(raw.get("required", validation.get("required", False)))

    if "default_value" in raw:
        normalized["default_value"] = raw["default_value"]
    elif "default" in raw:
        normalized["default_value"] = raw["default"]

    constraints = dict(raw.get("constraints") or {})
    for key in CONSTRAINT_KEYS:
        if key not in constraints:
            if raw.get(key) is not None:
                constraints[key] = raw[key]
            elif validation.get(key) is not None:
                constraints[key] = validation[key]
    if "min" not in constraints and validation.get("minLength") is not None:
        constraints["min"] = validation["minLength"]
    if "max" not in constraints and validation.get("maxLength") is not None:
        constraints["max"] = validation["maxLength"]
    if "options" in constraints:
        constraints["options"] = _normalize_options(constraints["options"])
    normalized["constraints"] = constraints

    children = None
    for key in CHILDREN_KEYS:
        if raw.get(key) is not None:
            children = raw[key]
            break
    if children is not None:
        normalized["children"] = [
            normalize_legacy_field(child, registry) if isinstance(child, dict) else child for child in children
        ] if isinstance(children, list) else children

    return normalized


def _check_fields(
    fields: Any,
    registry: FieldTypeRegistry,
    path: str,
    allowed_kinds: Optional[Iterable[str]],
) -> None:
    if not isinstance(fields, list):
        raise InvalidFieldError(path, "fields must be a list")

    seen = set()
    for index, field in enumerate(fields):
        if not isinstance(field, dict):
            raise InvalidFieldError(f"{path}[{index}]" if path else f"[{index}]", "field definition must be an object")

        name = field.get("name")
        field_path = f"{path}.{name}" if path else str(name)

        if not isinstance(name, str) or not FIELD_NAME_PATTERN.match(name):
            raise InvalidFieldError(field_path, "name must start with a letter and contain only letters, digits and underscores")
        if len(name) > MAX_FIELD_NAME_LENGTH:
            raise InvalidFieldError(field_path, f"name must be at most {MAX_FIELD_NAME_LENGTH} characters")
        if name in RESERVED_FIELD_NAMES:
            raise InvalidFieldError(field_path, f"'{name}' is a reserved field name")
        if name in seen:
            raise InvalidFieldError(field_path, "duplicate field name")
        seen.add(name)

        kind = field.get("kind")
        if not registry.is_valid_kind(kind):
            raise InvalidFieldError(field_path, f"unknown field kind '{kind}'")
        if allowed_kinds is not None and kind not in allowed_kinds:
            raise InvalidFieldError(field_path, f"kind '{kind}' is not allowed here")

        constraints = field.get("constraints") or {}
        if kind == "select" and not constraints.get("options"):
            raise InvalidFieldError(field_path, "select fields require at least one option")

        minimum, maximum = constraints.get("min"), constraints.get("max")
        if minimum is not None and maximum is not None:
            try:
                if float(minimum) > float(maximum):
                    raise InvalidFieldError(field_path, "min must not exceed max")
            except (TypeError, ValueError):
                raise InvalidFieldError(field_path, "min and max must be numbers")

        pattern = constraints.get("pattern")
        if pattern is not None:
            try:
                re.compile(pattern)
            except (re.error, TypeError) as e:
                raise InvalidFieldError(field_path, f"invalid pattern: {e}")

        default = field.get("default_value")
        if default is not None:
            if kind == "number" and (isinstance(default, bool) or not isinstance(default, (int, float))):
                raise InvalidFieldError(field_path, "default must be a number")
            if kind == "boolean" and not isinstance(default, bool):
                raise InvalidFieldError(field_path, "default must be a boolean")

        if registry.is_structural(kind):
            children = field.get("children")
            if not children:
                raise InvalidFieldError(field_path, f"{kind} fields require at least one child field")
            _check_fields(children, registry, field_path, registry.child_kinds(kind))
        elif field.get("children"):
            raise InvalidFieldError(field_path, f"{kind} fields cannot have child fields")


def validate_field_definitions(
    raw_fields: Any,
    registry: FieldTypeRegistry = DEFAULT_FIELD_TYPE_REGISTRY,
) -> List[FieldDefinition]:
    """
    Normalize and validate a list of field definitions.

    Args:
        raw_fields: Field definition dictionaries, canonical or legacy.
        registry: The field type registry to validate kinds against.

    Returns:
        List[FieldDefinition]: Typed definitions.

    Raises:
        InvalidFieldError: On the first rule violation, with the dotted field path.
    """
    if raw_fields is None:
        return []
    if not isinstance(raw_fields, list):
        raise InvalidFieldError("", "fields must be a list")

    normalized = [normalize_legacy_field(f, registry) if isinstance(f, dict) else f for f in raw_fields]
    _check_fields(normalized, registry, "", None)

    try:
        return _field_list_adapter.validate_python(normalized)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise InvalidFieldError(location, first.get("msg", "invalid field definition"))


def dump_fields(fields: Iterable[Any]) -> List[Dict[str, Any]]:
    """Serialize field definitions to plain dictionaries for storage or responses."""
    return [
        field.model_dump(mode="json") if hasattr(field, "model_dump") else dict(field)
        for field in fields
    ]


def load_fields(raw_fields: Any, registry: FieldTypeRegistry = DEFAULT_FIELD_TYPE_REGISTRY) -> List[FieldDefinition]:
    """
    Load stored field definitions without rejecting them.

    Stored schemas were validated on write; this tolerates legacy documents by normalizing
    them first and falls back to an empty list when they cannot be interpreted.
    """
    if not raw_fields:
        return []
    try:
        return validate_field_definitions(raw_fields, registry)
    except InvalidFieldError as e:
        logger.warning("Stored field definitions could not be loaded: %s", e.message)
        return []
