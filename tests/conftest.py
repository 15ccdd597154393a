import copy
from types import SimpleNamespace
from typing import Any, Dict, List

from pydantic import SecretStr
import pytest

from content_cms.config import settings
from content_cms.database import db_manager
from content_cms.models.field_types import DEFAULT_FIELD_TYPE_REGISTRY
from content_cms.services.component_service import ComponentService
from content_cms.services.component_type_service import ComponentTypeService
from content_cms.services.layout_service import LayoutService
from content_cms.services.page_service import PageService

ADMIN_TOKEN = "test-admin-token"


def _matches_condition(actual: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and condition and all(key.startswith("$") for key in condition):
        for operator, operand in condition.items():
            if operator == "$in":
                if isinstance(actual, list):
                    if not any(item in operand for item in actual):
                        return False
                elif actual not in operand:
                    return False
            elif operator == "$ne":
                if actual == operand:
                    return False
            elif operator == "$exists":
                if (actual is not None) != bool(operand):
                    return False
            else:
                raise NotImplementedError(f"Unsupported operator {operator}")
        return True
    if isinstance(actual, list) and not isinstance(condition, list):
        return condition in actual
    return actual == condition


def _matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for key, condition in (query or {}).items():
        if key == "$or":
            if not any(_matches(doc, clause) for clause in condition):
                return False
        elif not _matches_condition(doc.get(key), condition):
            return False
    return True


def _apply_update(doc: Dict[str, Any], update: Dict[str, Any]) -> None:
    for key, value in update.get("$set", {}).items():
        doc[key] = copy.deepcopy(value)
    for key in update.get("$unset", {}):
        doc.pop(key, None)
    for key, amount in update.get("$inc", {}).items():
        doc[key] = doc.get(key, 0) + amount
    for key, value in update.get("$push", {}).items():
        target = doc.setdefault(key, [])
        if isinstance(value, dict) and "$each" in value:
            target.extend(copy.deepcopy(value["$each"]))
            if "$slice" in value:
                limit = value["$slice"]
                doc[key] = target[limit:] if limit < 0 else target[:limit]
        else:
            target.append(copy.deepcopy(value))


class FakeCursor:
    def __init__(self, docs: List[Dict[str, Any]]):
        self._docs = docs

    def sort(self, key: str, direction: int = 1) -> "FakeCursor":
        self._docs = sorted(self._docs, key=lambda doc: doc.get(key), reverse=direction < 0)
        return self

    async def to_list(self, length=None) -> List[Dict[str, Any]]:
        docs = self._docs if length is None else self._docs[:length]
        return [copy.deepcopy(doc) for doc in docs]


class FakeCollection:
    """In-memory stand-in for the subset of the Motor collection API the services use."""

    def __init__(self, name: str):
        self.name = name
        self.docs: List[Dict[str, Any]] = []
        self._next_id = 1

    async def find_one(self, query: Dict[str, Any]):
        for doc in self.docs:
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query: Dict[str, Any] = None) -> FakeCursor:
        return FakeCursor([doc for doc in self.docs if _matches(doc, query or {})])

    async def insert_one(self, document: Dict[str, Any]):
        stored = copy.deepcopy(document)
        stored["_id"] = self._next_id
        self._next_id += 1
        self.docs.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"])

    async def update_one(self, query: Dict[str, Any], update: Dict[str, Any]):
        for doc in self.docs:
            if _matches(doc, query):
                _apply_update(doc, update)
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def update_many(self, query: Dict[str, Any], update: Dict[str, Any]):
        matched = [doc for doc in self.docs if _matches(doc, query)]
        for doc in matched:
            _apply_update(doc, update)
        return SimpleNamespace(matched_count=len(matched), modified_count=len(matched))

    async def delete_one(self, query: Dict[str, Any]):
        for index, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[index]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def delete_many(self, query: Dict[str, Any]):
        remaining = [doc for doc in self.docs if not _matches(doc, query)]
        deleted = len(self.docs) - len(remaining)
        self.docs = remaining
        return SimpleNamespace(deleted_count=deleted)

    async def count_documents(self, query: Dict[str, Any]) -> int:
        return sum(1 for doc in self.docs if _matches(doc, query))

    async def create_index(self, field_spec, **options):
        return str(field_spec)


class FakeDatabase:
    def __init__(self):
        self.collections: Dict[str, FakeCollection] = {}

    def get_collection(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]

    def __getitem__(self, name: str) -> FakeCollection:
        return self.get_collection(name)


@pytest.fixture
def fake_db(monkeypatch):
    """Route every `db_manager.get_collection()` call to an in-memory database."""
    database = FakeDatabase()
    monkeypatch.setattr(db_manager, "get_collection", database.get_collection)
    return database


@pytest.fixture
def admin_token(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_API_TOKEN", SecretStr(ADMIN_TOKEN))
    return ADMIN_TOKEN


@pytest.fixture
def type_service(fake_db):
    return ComponentTypeService(DEFAULT_FIELD_TYPE_REGISTRY)


@pytest.fixture
def component_service(type_service):
    return ComponentService(DEFAULT_FIELD_TYPE_REGISTRY, type_service)


@pytest.fixture
def layout_service(type_service, component_service):
    return LayoutService(DEFAULT_FIELD_TYPE_REGISTRY, type_service, component_service)


@pytest.fixture
def page_service(layout_service):
    return PageService(DEFAULT_FIELD_TYPE_REGISTRY, layout_service)


TESTIMONIALS_FIELDS = [
    {"name": "title", "type": "string", "fieldType": "text", "default": "What Our Clients Say"},
    {
        "name": "testimonials",
        "type": "array",
        "fieldType": "array",
        "itemStructure": [
            {"name": "name", "type": "string", "fieldType": "text"},
            {"name": "position", "type": "string", "fieldType": "text"},
            {"name": "message", "type": "text", "fieldType": "textarea"},
            {"name": "image", "type": "image", "fieldType": "image"},
        ],
    },
]


def text_value(value):
    return {"type": "text", "fieldType": "text", "value": value}


def make_testimonial(name, position="", message="", image=""):
    return {
        "name": text_value(name),
        "position": text_value(position),
        "message": {"type": "textarea", "fieldType": "textarea", "value": message},
        "image": {"type": "image", "fieldType": "image", "value": image},
    }


@pytest.fixture
async def testimonials_type(type_service):
    return await type_service.define_type("Testimonials", TESTIMONIALS_FIELDS, description="Client quotes")
