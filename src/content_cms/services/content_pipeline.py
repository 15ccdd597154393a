"""
Transformations between stored component data and the shapes served to clients.

Three directions:

- **normalize** (write path): incoming editor data is re-tagged into value wrappers before
  it is persisted. Arrays always become lists, empty images keep their wrapper, rich text
  is sanitized with bleach.
- **enrich** (editor read path): stored data is re-tagged against the *current* schema.
  Missing fields get their defaults and array wrappers carry the current `itemStructure`,
  so schema edits show up without rewriting stored documents.
- **flatten** (public read path): wrappers are stripped down to bare values.
"""

from typing import Any, Dict, List, Optional, Sequence

import bleach

from content_cms.exceptions import CMSValidationError
from content_cms.models.field_types import DEFAULT_FIELD_TYPE_REGISTRY, FieldKind, FieldTypeRegistry
from content_cms.services.field_schema import dump_fields, load_fields

RICH_TEXT_ALLOWED_TAGS = [
    "p", "br", "strong", "em", "u", "s", "code", "pre", "h1", "h2", "h3", "h4", "h5", "h6",
    "ul", "ol", "li", "blockquote", "a", "img", "hr", "span", "table", "thead", "tbody", "tr", "th", "td",
]
WRAPPER_KEYS = ("type", "fieldType", "value")
RICH_TEXT_ALLOWED_ATTRIBUTES = {
    "a": ["href", "title", "target", "rel"],
    "img": ["src", "alt", "title"],
    "span": ["class"],
}


def wrap(kind: str, value: Any) -> Dict[str, Any]:
    return {"type": kind, "fieldType": kind, "value": value}


def is_value_wrapper(node: Any) -> bool:
    """True for `{value, type|fieldType}` dictionaries."""
    return isinstance(node, dict) and "value" in node and ("type" in node or "fieldType" in node)


def is_stored_wrapper(node: Any) -> bool:
    """True for complete `{type, fieldType, value}` dictionaries, the only shape the write path stores."""
    return isinstance(node, dict) and all(key in node for key in WRAPPER_KEYS)


def resolve_kind(
    wrapper: Dict[str, Any],
    fallback: Optional[str] = None,
    registry: FieldTypeRegistry = DEFAULT_FIELD_TYPE_REGISTRY,
) -> str:
    """Kind of a stored wrapper: `fieldType` first, then `type`, then `fallback`, then text."""
    for candidate in (wrapper.get("fieldType"), wrapper.get("type")):
        kind = registry.canonical_kind(candidate)
        if kind:
            return kind
    return fallback or FieldKind.TEXT.value


def infer_kind(value: Any) -> str:
    if isinstance(value, bool):
        return FieldKind.BOOLEAN.value
    if isinstance(value, (int, float)):
        return FieldKind.NUMBER.value
    if isinstance(value, list):
        return FieldKind.ARRAY.value
    if isinstance(value, dict):
        return FieldKind.OBJECT.value
    return FieldKind.TEXT.value


def sanitize_rich_text(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    return bleach.clean(value, tags=RICH_TEXT_ALLOWED_TAGS, attributes=RICH_TEXT_ALLOWED_ATTRIBUTES, strip=True)


def find_unknown_fields(data: Optional[Dict[str, Any]], fields: Sequence[Any]) -> List[str]:
    """Top-level data keys with no matching field definition."""
    known = {field.name for field in fields}
    return [key for key in (data or {}) if key not in known]


def _unwrap(stored: Any) -> Any:
    return stored["value"] if is_value_wrapper(stored) else stored


# --- Write path ---


def _check_key(key: Any) -> None:
    if not isinstance(key, str) or not key:
        raise CMSValidationError("Field names must be non-empty strings")
    if "." in key or key.startswith("$"):
        raise CMSValidationError(f"Field name '{key}' cannot contain '.' or start with '$'")


def _coerce_list(raw: Any) -> List[Any]:
    if isinstance(raw, list):
        return raw
    if raw is None or raw == "":
        return []
    return [raw]


def _normalize_value(value: Any, field: Any, registry: FieldTypeRegistry) -> Dict[str, Any]:
    wrapped = is_value_wrapper(value)
    if field is not None:
        kind = field.kind
    elif wrapped:
        kind = resolve_kind(value, registry=registry)
    else:
        kind = infer_kind(value)
    raw = _unwrap(value)

    if kind == FieldKind.ARRAY.value:
        if field is not None:
            children = field.children
            item_structure = value.get("itemStructure") if wrapped and value.get("itemStructure") else dump_fields(children)
        else:
            item_structure = value.get("itemStructure") if wrapped and isinstance(value.get("itemStructure"), list) else []
            children = load_fields(item_structure, registry)
        items = [
            normalize_component_data(item, children, registry) if isinstance(item, dict) else item
            for item in _coerce_list(raw)
        ]
        normalized = wrap(kind, items)
        normalized["itemStructure"] = item_structure
        return normalized

    if kind == FieldKind.OBJECT.value:
        children = field.children if field is not None else None
        nested = raw if isinstance(raw, dict) else {}
        return wrap(kind, normalize_component_data(nested, children, registry))

    if raw is None:
        raw = ""
    if kind == FieldKind.RICH_TEXT.value:
        raw = sanitize_rich_text(raw)
    return wrap(kind, raw)


def normalize_component_data(
    data: Optional[Dict[str, Any]],
    fields: Optional[Sequence[Any]] = None,
    registry: FieldTypeRegistry = DEFAULT_FIELD_TYPE_REGISTRY,
) -> Dict[str, Any]:
    """
    Re-tag incoming component data into stored value wrappers.

    Args:
        data: Field name to wrapper or bare value.
        fields: Field definitions of the component type, if it resolved. Keys without a
            definition are kept, tagged by their wrapper or by the inferred kind.
        registry: Field type registry used to resolve wrapper kinds.

    Returns:
        dict: Field name to value wrapper.

    Raises:
        CMSValidationError: If `data` is not a mapping or a key cannot be stored.
    """
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CMSValidationError("Component data must be an object")

    schema = {field.name: field for field in fields or []}
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        _check_key(key)
        normalized[key] = _normalize_value(value, schema.get(key), registry)
    return normalized


# --- Editor read path ---


def _default_for(field: Any) -> Any:
    if field.kind == FieldKind.ARRAY.value:
        return []
    if field.default_value is not None:
        return field.default_value
    return ""


def _enrich_field(field: Any, stored: Any, registry: FieldTypeRegistry) -> Dict[str, Any]:
    raw = _unwrap(stored)

    if field.kind == FieldKind.ARRAY.value:
        items = [
            enrich(item, field.children, registry) if isinstance(item, dict) else item
            for item in _coerce_list(raw)
        ]
        enriched = wrap(field.kind, items)
        enriched["itemStructure"] = dump_fields(field.children)
        return enriched

    if field.kind == FieldKind.OBJECT.value:
        return wrap(field.kind, enrich(raw if isinstance(raw, dict) else {}, field.children, registry))

    if raw is None:
        raw = _default_for(field)
    return wrap(field.kind, raw)


def enrich(
    data: Optional[Dict[str, Any]],
    fields: Sequence[Any],
    registry: FieldTypeRegistry = DEFAULT_FIELD_TYPE_REGISTRY,
) -> Dict[str, Any]:
    """
    Re-tag stored data against the current field definitions for the editor.

    Schema fields come first, in schema order; stored keys unknown to the schema follow,
    exactly as stored.
    """
    data = data if isinstance(data, dict) else {}
    enriched: Dict[str, Any] = {}
    for field in fields:
        enriched[field.name] = _enrich_field(field, data.get(field.name), registry)
    for key, value in data.items():
        if key not in enriched:
            enriched[key] = value
    return enriched


def rewrap(data: Optional[Dict[str, Any]], registry: FieldTypeRegistry = DEFAULT_FIELD_TYPE_REGISTRY) -> Dict[str, Any]:
    """
    Editor shape for data whose component type does not resolve.

    Each wrapper keeps its stored kind; array wrappers keep their stored `itemStructure`.
    """
    result: Dict[str, Any] = {}
    for key, value in (data or {}).items():
        if not is_value_wrapper(value):
            result[key] = wrap(infer_kind(value), value)
            continue
        kind = resolve_kind(value, registry=registry)
        if kind == FieldKind.ARRAY.value:
            entry = wrap(kind, _coerce_list(value.get("value")))
            entry["itemStructure"] = value.get("itemStructure") or []
        else:
            entry = wrap(kind, value.get("value") if value.get("value") is not None else "")
        result[key] = entry
    return result


# --- Public read path ---


def flatten(node: Any) -> Any:
    """Strip value wrappers recursively, leaving bare values."""
    if isinstance(node, list):
        return [flatten(item) for item in node]
    if isinstance(node, dict):
        if is_stored_wrapper(node):
            return flatten(node["value"])
        return {key: flatten(value) for key, value in node.items()}
    return node
