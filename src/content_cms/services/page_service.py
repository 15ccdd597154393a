from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid

from pymongo.errors import DuplicateKeyError

from content_cms.config import settings
from content_cms.database import db_manager
from content_cms.exceptions import DuplicateNameError, NotFoundError
from content_cms.managers.logging_manager import get_logger
from content_cms.models.component_models import ChangeLogEntry
from content_cms.models.field_types import DEFAULT_FIELD_TYPE_REGISTRY, FieldTypeRegistry
from content_cms.models.page_models import CreatePageRequest, Layout, Page, PageStatus, UpdatePageRequest
from content_cms.services.layout_service import LayoutService
from content_cms.utils.logging_utils import log_performance

logger = get_logger(prefix="[PageService]")

# Changes to these fields bump the page version.
VERSIONED_FIELDS = ("title", "status", "meta_title", "meta_description", "keywords")

PUBLIC_PAGE_FIELDS = (
    "page_id",
    "slug",
    "title",
    "status",
    "layout_id",
    "order",
    "meta_title",
    "meta_description",
    "keywords",
    "updated_at",
)


class PageService:
    """
    Stores pages and assembles their content.

    Public content is the page's active layouts with active components keyed by name and
    bare values. Editor content includes everything, enriched with the current schemas.
    """

    def __init__(
        self,
        registry: FieldTypeRegistry = DEFAULT_FIELD_TYPE_REGISTRY,
        layout_service: Optional[LayoutService] = None,
    ):
        self.collection_name = "pages"
        self.layout_service = layout_service or LayoutService(registry)

    def _collection(self):
        return db_manager.get_collection(self.collection_name)

    def _to_page(self, doc: Dict[str, Any]) -> Page:
        doc = dict(doc)
        doc.pop("_id", None)
        return Page(**doc)

    def _public_query(self) -> Dict[str, Any]:
        query: Dict[str, Any] = {"is_active": True}
        if settings.PUBLIC_CONTENT_REQUIRE_PUBLISHED:
            query["status"] = PageStatus.PUBLISHED.value
        return query

    @staticmethod
    def public_view(page: Page) -> Dict[str, Any]:
        return page.model_dump(include=set(PUBLIC_PAGE_FIELDS))

    async def create_page(self, request: CreatePageRequest, created_by: Optional[str] = None) -> Page:
        collection = self._collection()
        if await collection.find_one({"slug": request.slug}):
            raise DuplicateNameError("Page", request.slug)

        now = datetime.utcnow()
        page = Page(
            page_id=f"page_{uuid.uuid4().hex[:12]}",
            slug=request.slug,
            title=request.title,
            status=request.status,
            is_active=request.is_active,
            order=request.order,
            meta_title=request.meta_title,
            meta_description=request.meta_description,
            keywords=request.keywords,
            version=1,
            created_at=now,
            updated_at=now,
            created_by=created_by,
            updated_by=created_by,
        )
        try:
            await collection.insert_one(page.model_dump())
        except DuplicateKeyError:
            raise DuplicateNameError("Page", request.slug)

        logger.info("Created page %s (%s)", page.slug, page.page_id)
        return page

    async def get_page(self, page_id: str) -> Page:
        doc = await self._collection().find_one({"page_id": page_id})
        if not doc:
            raise NotFoundError("Page", page_id)
        return self._to_page(doc)

    async def get_page_by_slug(self, slug: str, public: bool = False) -> Page:
        query: Dict[str, Any] = {"slug": slug.strip("/").lower()}
        if public:
            query.update(self._public_query())
        doc = await self._collection().find_one(query)
        if not doc:
            raise NotFoundError("Page", slug)
        return self._to_page(doc)

    async def list_pages(self, public: bool = False, status: Optional[str] = None) -> List[Page]:
        query: Dict[str, Any] = self._public_query() if public else {}
        if status:
            query["status"] = status
        docs = await self._collection().find(query).sort("order", 1).to_list(length=None)
        return [self._to_page(doc) for doc in docs]

    async def update_page(self, page_id: str, request: UpdatePageRequest, updated_by: Optional[str] = None) -> Page:
        """Apply a partial update. Title, status and meta changes bump the version."""
        current = await self.get_page(page_id)
        collection = self._collection()
        requested = request.model_dump(exclude_unset=True, mode="json")

        updates: Dict[str, Any] = {
            key: value for key, value in requested.items() if value != getattr(current, key)
        }

        if "slug" in updates:
            clash = await collection.find_one({"slug": updates["slug"]})
            if clash and clash.get("page_id") != page_id:
                raise DuplicateNameError("Page", updates["slug"])
        if updates.get("layout_id"):
            await self.layout_service.get_layout(updates["layout_id"])

        if not updates:
            return current

        now = datetime.utcnow()
        versioned = [key for key in VERSIONED_FIELDS if key in updates]
        operation: Dict[str, Any] = {"$set": {**updates, "updated_at": now, "updated_by": updated_by}}
        if versioned:
            entry = ChangeLogEntry(
                version=current.version + 1,
                changed_at=now,
                changed_by=updated_by,
                summary=f"updated {', '.join(versioned)}",
            )
            operation["$inc"] = {"version": 1}
            operation["$push"] = {
                "change_history": {"$each": [entry.model_dump()], "$slice": -settings.CHANGE_HISTORY_LIMIT}
            }

        try:
            await collection.update_one({"page_id": page_id}, operation)
        except DuplicateKeyError:
            raise DuplicateNameError("Page", updates.get("slug", current.slug))

        logger.info("Updated page %s: %s", page_id, sorted(updates))
        return await self.get_page(page_id)

    async def delete_page(self, page_id: str) -> Dict[str, Any]:
        """Delete a page together with its layouts."""
        page = await self.get_page(page_id)
        layouts = await self.layout_service.list_layouts(page_id=page_id)

        deleted_layouts = []
        for layout in layouts:
            await self.layout_service.delete_layout(layout.layout_id)
            deleted_layouts.append(layout.layout_id)

        await self._collection().delete_one({"page_id": page_id})
        logger.info("Deleted page %s (%s) and %d layouts", page.slug, page_id, len(deleted_layouts))
        return {"page_id": page_id, "layouts_removed": deleted_layouts}

    async def _layouts_for(self, page: Page, include_inactive: bool) -> List[Layout]:
        layouts = await self.layout_service.list_layouts(page_id=page.page_id, include_inactive=include_inactive)
        if page.layout_id and all(layout.layout_id != page.layout_id for layout in layouts):
            try:
                primary = await self.layout_service.get_layout(page.layout_id)
            except NotFoundError:
                logger.warning("Page %s references missing layout %s", page.page_id, page.layout_id)
            else:
                if include_inactive or primary.is_active:
                    layouts.append(primary)
        layouts.sort(key=lambda layout: (layout.layout_id != page.layout_id, layout.created_at))
        return layouts

    @log_performance("get_public_content")
    async def get_public_content(self, slug: str) -> Dict[str, Any]:
        """
        Content for site visitors: active layouts, active components keyed by name, bare values.

        Raises:
            NotFoundError: If no active page (published too when configured) has the slug.
        """
        page = await self.get_page_by_slug(slug, public=True)
        layouts = await self._layouts_for(page, include_inactive=False)
        return {
            "page": self.public_view(page),
            "layouts": [await self.layout_service.render_public_layout(layout) for layout in layouts],
        }

    @log_performance("get_editor_content")
    async def get_editor_content(self, slug: str) -> Dict[str, Any]:
        """Content for the admin editor: every layout and component, wrapped and enriched."""
        page = await self.get_page_by_slug(slug)
        layouts = await self._layouts_for(page, include_inactive=True)
        return {
            "page": page.model_dump(),
            "layouts": [await self.layout_service.render_editor_layout(layout) for layout in layouts],
        }
