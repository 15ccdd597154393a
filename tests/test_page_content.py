"""End to end: a Testimonials component from type definition to public and editor content."""

from pydantic import ValidationError
import pytest

from conftest import TESTIMONIALS_FIELDS, make_testimonial, text_value
from content_cms.config import settings
from content_cms.exceptions import DuplicateNameError, NotFoundError
from content_cms.models.page_models import CreatePageRequest, LayoutComponentPayload, UpdatePageRequest


@pytest.fixture
async def home(page_service, layout_service, testimonials_type):
    page = await page_service.create_page(
        CreatePageRequest(slug="/Home/", title="<b>Home</b>", status="published", meta_title="Welcome")
    )
    layout = await layout_service.create_layout("home-main", page_id=page.page_id)
    await layout_service.save_layout(
        layout.layout_id,
        components=[
            LayoutComponentPayload(
                name="reviews",
                type="Testimonials",
                order=0,
                data={
                    "title": text_value("What Our Clients Say"),
                    "testimonials": {
                        "type": "array",
                        "fieldType": "array",
                        "value": [
                            make_testimonial("Ada", "CTO", "Great work", "/img/ada.png"),
                            make_testimonial("Linus", "Engineer", "Solid"),
                        ],
                    },
                },
            )
        ],
    )
    return page


@pytest.mark.asyncio
async def test_page_request_is_cleaned(home):
    assert home.slug == "home"
    assert home.title == "Home"
    assert home.status == "published"


@pytest.mark.asyncio
async def test_public_content_has_bare_values(page_service, home):
    content = await page_service.get_public_content("home")

    assert content["page"]["slug"] == "home"
    assert "change_history" not in content["page"]
    assert len(content["layouts"]) == 1

    reviews = content["layouts"][0]["components"]["reviews"]
    assert reviews["type"] == "Testimonials"
    assert reviews["data"] == {
        "title": "What Our Clients Say",
        "testimonials": [
            {"name": "Ada", "position": "CTO", "message": "Great work", "image": "/img/ada.png"},
            {"name": "Linus", "position": "Engineer", "message": "Solid", "image": ""},
        ],
    }


@pytest.mark.asyncio
async def test_editor_content_is_wrapped_and_enriched(page_service, home):
    content = await page_service.get_editor_content("home")

    component = content["layouts"][0]["components"][0]
    testimonials = component["data"]["testimonials"]
    assert testimonials["fieldType"] == "array"
    assert [f["name"] for f in testimonials["itemStructure"]] == ["name", "position", "message", "image"]
    assert testimonials["value"][1]["image"] == {"type": "image", "fieldType": "image", "value": ""}
    assert [f["name"] for f in component["fields"]] == ["title", "testimonials"]


@pytest.mark.asyncio
async def test_schema_edits_show_up_in_editor_without_rewriting_data(page_service, type_service, fake_db, home):
    fields = [dict(field) for field in TESTIMONIALS_FIELDS]
    fields[1] = dict(fields[1], itemStructure=fields[1]["itemStructure"] + [{"name": "rating", "type": "number"}])
    updated = await type_service.update_type("Testimonials", fields=fields)
    assert updated.version == 2

    content = await page_service.get_editor_content("home")
    testimonials = content["layouts"][0]["components"][0]["data"]["testimonials"]
    assert testimonials["itemStructure"][-1]["name"] == "rating"
    assert testimonials["value"][0]["rating"]["fieldType"] == "number"

    stored = fake_db["components"].docs[0]["data"]["testimonials"]
    assert "rating" not in stored["value"][0]


@pytest.mark.asyncio
async def test_inactive_components_are_hidden_from_public(page_service, component_service, home):
    component = (await component_service.list_instances())[0]
    await component_service.soft_delete(component.component_id)

    public = await page_service.get_public_content("home")
    editor = await page_service.get_editor_content("home")

    assert public["layouts"][0]["components"] == {}
    assert editor["layouts"][0]["components"][0]["is_active"] is False


@pytest.mark.asyncio
async def test_public_access_rules(page_service, home, monkeypatch):
    draft = await page_service.create_page(CreatePageRequest(slug="draft", title="Draft"))
    assert (await page_service.get_public_content("draft"))["layouts"] == []

    monkeypatch.setattr(settings, "PUBLIC_CONTENT_REQUIRE_PUBLISHED", True)
    with pytest.raises(NotFoundError):
        await page_service.get_public_content("draft")
    assert [p.slug for p in await page_service.list_pages(public=True)] == ["home"]

    await page_service.update_page(home.page_id, UpdatePageRequest(is_active=False))
    with pytest.raises(NotFoundError):
        await page_service.get_public_content("home")
    assert (await page_service.get_editor_content("home"))["page"]["is_active"] is False
    assert (await page_service.get_page(draft.page_id)).slug == "draft"


@pytest.mark.asyncio
async def test_page_versioning(page_service, home):
    retitled = await page_service.update_page(home.page_id, UpdatePageRequest(title="Start"), updated_by="editor")
    assert retitled.version == 2
    assert retitled.change_history[-1].summary == "updated title"

    reordered = await page_service.update_page(home.page_id, UpdatePageRequest(order=3))
    assert reordered.order == 3
    assert reordered.version == 2

    unchanged = await page_service.update_page(home.page_id, UpdatePageRequest(title="Start"))
    assert unchanged.version == 2


@pytest.mark.parametrize("field", ["title", "slug", "status", "is_active", "order", "keywords"])
def test_required_page_fields_cannot_be_nulled(field):
    with pytest.raises(ValidationError) as exc_info:
        UpdatePageRequest(**{field: None})
    assert "cannot be null" in str(exc_info.value)


@pytest.mark.asyncio
async def test_optional_page_fields_can_be_cleared(page_service, home):
    assert (await page_service.get_page(home.page_id)).layout_id is not None

    cleared = await page_service.update_page(home.page_id, UpdatePageRequest(layout_id=None, meta_title=None))
    assert cleared.layout_id is None
    assert cleared.meta_title is None
    assert cleared.title == "Home"
    assert [page.slug for page in await page_service.list_pages(public=True)] == ["home"]


@pytest.mark.asyncio
async def test_slugs_are_unique(page_service, home):
    with pytest.raises(DuplicateNameError):
        await page_service.create_page(CreatePageRequest(slug="HOME", title="Again"))

    other = await page_service.create_page(CreatePageRequest(slug="about", title="About"))
    with pytest.raises(DuplicateNameError):
        await page_service.update_page(other.page_id, UpdatePageRequest(slug="home"))


@pytest.mark.asyncio
async def test_delete_page_cascades(page_service, layout_service, component_service, home):
    summary = await page_service.delete_page(home.page_id)

    assert len(summary["layouts_removed"]) == 1
    assert await layout_service.list_layouts() == []
    assert await component_service.list_instances(include_inactive=True) == []
    with pytest.raises(NotFoundError):
        await page_service.get_page_by_slug("home")
