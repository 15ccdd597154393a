import pytest

from conftest import make_testimonial, text_value
from content_cms.config import settings
from content_cms.exceptions import DuplicateNameError, NotFoundError, PartialBulkFailure
from content_cms.models.page_models import CreatePageRequest, LayoutComponentPayload


@pytest.fixture
async def page(page_service):
    return await page_service.create_page(CreatePageRequest(slug="home", title="Home"))


@pytest.fixture
async def layout(layout_service, page):
    return await layout_service.create_layout("home-main", page_id=page.page_id)


@pytest.mark.asyncio
async def test_first_layout_becomes_primary(layout_service, page_service, page):
    first = await layout_service.create_layout("home-main", page_id=page.page_id)
    await layout_service.create_layout("home-sidebar", page_id=page.page_id)

    assert first.layout_id.startswith("lay_")
    assert (await page_service.get_page(page.page_id)).layout_id == first.layout_id
    assert [lay.name for lay in await layout_service.list_layouts(page_id=page.page_id)] == ["home-main", "home-sidebar"]


@pytest.mark.asyncio
async def test_layout_names_are_unique(layout_service, layout):
    with pytest.raises(DuplicateNameError):
        await layout_service.create_layout("home-main")


@pytest.mark.asyncio
async def test_layout_needs_existing_page(layout_service, fake_db):
    with pytest.raises(NotFoundError):
        await layout_service.create_layout("orphan", page_id="page_missing")


@pytest.mark.asyncio
async def test_save_layout_creates_and_updates_components(layout_service, component_service, testimonials_type, layout):
    existing = await component_service.create_instance(
        "Testimonials", "reviews", data={"title": text_value("Old")}, layout_id=layout.layout_id
    )

    saved = await layout_service.save_layout(
        layout.layout_id,
        name="home-main-v2",
        components=[
            LayoutComponentPayload(
                id=existing.component_id,
                name="reviews",
                type="Testimonials",
                order=1,
                data={"title": text_value("New"), "testimonials": {"type": "array", "value": [make_testimonial("Ada")]}},
            ),
            LayoutComponentPayload(name="promo", type="PromoStrip", order=0, data={"headline": text_value("Sale")}),
        ],
        updated_by="editor",
    )

    assert saved["name"] == "home-main-v2"
    assert [c["name"] for c in saved["components"]] == ["promo", "reviews"]

    promo, reviews = saved["components"]
    assert promo["fields"] == []
    assert promo["data"]["headline"]["value"] == "Sale"

    assert reviews["id"] == existing.component_id
    assert reviews["version"] == 2
    assert [f["name"] for f in reviews["fields"]] == ["title", "testimonials"]
    assert reviews["data"]["title"]["value"] == "New"
    assert reviews["data"]["testimonials"]["value"][0]["name"]["value"] == "Ada"


@pytest.mark.asyncio
async def test_partial_failure_keeps_successful_writes(layout_service, component_service, testimonials_type, layout):
    with pytest.raises(PartialBulkFailure) as exc_info:
        await layout_service.save_layout(
            layout.layout_id,
            components=[
                LayoutComponentPayload(name="reviews", type="Testimonials", data={"title": text_value("Kept")}),
                LayoutComponentPayload(id="cmp_missing", name="ghost", type="Testimonials"),
            ],
        )

    failure = exc_info.value
    assert failure.status_code == 404
    summary = failure.result.to_dict()
    assert (summary["succeeded"], summary["failed"]) == (1, 1)
    assert summary["results"][1]["key"] == "cmp_missing"

    stored = await component_service.list_instances(layout.layout_id)
    assert [c.name for c in stored] == ["reviews"]


@pytest.mark.asyncio
async def test_editor_render_includes_inactive_components(layout_service, component_service, testimonials_type, layout):
    component = await component_service.create_instance("Testimonials", "reviews", layout_id=layout.layout_id)
    await component_service.soft_delete(component.component_id)

    editor = await layout_service.render_editor_layout(layout)
    public = await layout_service.render_public_layout(layout)

    assert editor["components"][0]["is_active"] is False
    assert editor["components"][0]["data"]["title"]["value"] == "What Our Clients Say"
    assert public["components"] == {}


@pytest.mark.asyncio
async def test_delete_layout_cascades(layout_service, component_service, page_service, testimonials_type, page, layout):
    await component_service.create_instance("Testimonials", "reviews", layout_id=layout.layout_id)

    summary = await layout_service.delete_layout(layout.layout_id)

    assert summary["components_removed"] == 1
    assert await component_service.list_instances(include_inactive=True) == []
    assert (await page_service.get_page(page.page_id)).layout_id is None
    with pytest.raises(NotFoundError):
        await layout_service.get_layout(layout.layout_id)


@pytest.mark.asyncio
async def test_delete_layout_can_detach_components(
    layout_service, component_service, testimonials_type, layout, monkeypatch
):
    monkeypatch.setattr(settings, "CASCADE_LAYOUT_DELETE", False)
    component = await component_service.create_instance("Testimonials", "reviews", layout_id=layout.layout_id)

    summary = await layout_service.delete_layout(layout.layout_id)

    assert summary["components_detached"] == 1
    assert (await component_service.get_instance(component.component_id)).layout_id is None
