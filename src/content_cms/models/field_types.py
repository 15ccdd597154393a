"""Field kinds and the field type registry.

A component type schema is a tree of field definitions. Every node has a **kind** drawn
from a closed set; two kinds are structural and carry children:

- **array**: a list of items, each item shaped by the children (a repeated group).
- **object**: a single nested group shaped by the children.

The `FieldTypeRegistry` answers which kinds exist and which kinds may appear below a
structural kind. It is an immutable value built once and handed to services.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, Mapping, Optional


class FieldKind(str, Enum):
    """Enumeration of field kinds.

    Values are the exact strings persisted in `type`/`fieldType` of stored value wrappers.
    """
    TEXT = "text"
    TEXTAREA = "textarea"
    RICH_TEXT = "richText"
    NUMBER = "number"
    IMAGE = "image"
    BOOLEAN = "boolean"
    DATE = "date"
    SELECT = "select"
    ARRAY = "array"
    OBJECT = "object"


ALL_KINDS: FrozenSet[str] = frozenset(kind.value for kind in FieldKind)
STRUCTURAL_KINDS: FrozenSet[str] = frozenset({FieldKind.ARRAY.value, FieldKind.OBJECT.value})
SCALAR_KINDS: FrozenSet[str] = ALL_KINDS - STRUCTURAL_KINDS

# Older documents and clients use these names for the canonical kinds.
KIND_ALIASES: Mapping[str, str] = {
    "string": FieldKind.TEXT.value,
    "richtext": FieldKind.RICH_TEXT.value,
    "rich_text": FieldKind.RICH_TEXT.value,
}


@dataclass(frozen=True)
class FieldTypeRegistry:
    """Immutable catalogue of field kinds and nesting rules.

    Attributes:
        kinds: Every valid kind.
        nesting: For each structural kind, the kinds allowed as its direct children.
    """

    kinds: FrozenSet[str] = ALL_KINDS
    nesting: Mapping[str, FrozenSet[str]] = field(default_factory=dict)

    def is_valid_kind(self, kind: Optional[str]) -> bool:
        return kind is not None and str(kind) in self.kinds

    def is_structural(self, kind: Optional[str]) -> bool:
        return kind is not None and str(kind) in self.nesting

    def child_kinds(self, kind: Optional[str]) -> Optional[FrozenSet[str]]:
        """Kinds allowed directly below `kind`, or `None` for scalar kinds."""
        if kind is None:
            return None
        return self.nesting.get(str(kind))

    def canonical_kind(self, kind: Optional[str]) -> Optional[str]:
        """Map a raw or legacy kind name onto a registered kind, or `None` if unknown."""
        if kind is None:
            return None
        raw = kind.value if isinstance(kind, FieldKind) else str(kind)
        if raw in self.kinds:
            return raw
        alias = KIND_ALIASES.get(raw) or KIND_ALIASES.get(raw.lower())
        if alias in self.kinds:
            return alias
        return None


def build_registry(
    kinds: Iterable[str] = ALL_KINDS,
    array_children: Optional[Iterable[str]] = None,
    object_children: Optional[Iterable[str]] = None,
) -> FieldTypeRegistry:
    """Build a registry. By default both structural kinds may hold every kind."""
    kind_set = frozenset(str(k) for k in kinds)
    array_set = frozenset(array_children) if array_children is not None else kind_set
    object_set = frozenset(object_children) if object_children is not None else kind_set

    nesting = {}
    if FieldKind.ARRAY.value in kind_set:
        nesting[FieldKind.ARRAY.value] = array_set & kind_set
    if FieldKind.OBJECT.value in kind_set:
        nesting[FieldKind.OBJECT.value] = object_set & kind_set
    return FieldTypeRegistry(kinds=kind_set, nesting=nesting)


DEFAULT_FIELD_TYPE_REGISTRY = build_registry()
