import pytest

from conftest import make_testimonial, text_value
from content_cms.exceptions import CMSValidationError, DuplicateNameError, NotFoundError, PartialBulkFailure
from content_cms.services.content_pipeline import wrap


@pytest.mark.asyncio
async def test_create_instance_tags_data_against_type(component_service, testimonials_type):
    component = await component_service.create_instance(
        "testimonials",
        "home-reviews",
        data={"title": text_value("Loved by teams"), "testimonials": {"type": "array", "value": [make_testimonial("Ada")]}},
        created_by="admin",
    )

    assert component.component_id.startswith("cmp_")
    assert component.type_name == "Testimonials"
    assert component.version == 1
    assert component.data["title"] == wrap("text", "Loved by teams")
    assert component.data["testimonials"]["value"][0]["name"] == wrap("text", "Ada")
    assert component.data["testimonials"]["itemStructure"][0]["name"] == "name"


@pytest.mark.asyncio
async def test_unknown_data_keys_are_kept(component_service, testimonials_type):
    component = await component_service.create_instance(
        "Testimonials", "reviews", data={"subtitle": {"type": "text", "value": "Extra"}}
    )
    assert component.data["subtitle"] == wrap("text", "Extra")


@pytest.mark.asyncio
async def test_custom_type_names_are_accepted(component_service):
    component = await component_service.create_instance(
        "PromoStrip", "promo", data={"headline": {"type": "string", "value": "Sale"}, "count": 3}
    )
    assert component.type_name == "PromoStrip"
    assert component.data == {"headline": wrap("text", "Sale"), "count": wrap("number", 3)}


@pytest.mark.asyncio
async def test_unresolvable_type_names_are_rejected(component_service):
    with pytest.raises(CMSValidationError):
        await component_service.create_instance("Promo Strip!", "promo")


@pytest.mark.asyncio
async def test_component_names_are_unique(component_service, testimonials_type):
    await component_service.create_instance("Testimonials", "reviews")
    with pytest.raises(DuplicateNameError):
        await component_service.create_instance("Testimonials", "reviews")


@pytest.mark.asyncio
async def test_missing_layout_is_rejected(component_service, testimonials_type):
    with pytest.raises(NotFoundError):
        await component_service.create_instance("Testimonials", "reviews", layout_id="lay_missing")


@pytest.mark.asyncio
async def test_data_patch_merges_top_level_fields(component_service, testimonials_type):
    component = await component_service.create_instance(
        "Testimonials",
        "reviews",
        data={"title": text_value("Old"), "testimonials": {"type": "array", "value": [make_testimonial("Ada")]}},
    )

    updated = await component_service.update_instance_data(
        component.component_id, {"title": text_value("New")}, updated_by="editor"
    )

    assert updated.data["title"] == wrap("text", "New")
    assert updated.data["testimonials"] == component.data["testimonials"]
    assert updated.version == 2
    assert updated.change_history[0].summary == "data updated"
    assert updated.updated_by == "editor"


@pytest.mark.asyncio
async def test_replace_data_drops_missing_fields(component_service, testimonials_type):
    component = await component_service.create_instance(
        "Testimonials", "reviews", data={"title": text_value("Old"), "subtitle": text_value("Gone soon")}
    )

    updated = await component_service.update_instance(
        component.component_id, data_patch={"title": text_value("Old")}, replace_data=True
    )
    assert list(updated.data) == ["title"]


@pytest.mark.asyncio
async def test_unchanged_data_and_order_do_not_bump_version(component_service, testimonials_type):
    component = await component_service.create_instance("Testimonials", "reviews", data={"title": text_value("Same")})

    same = await component_service.update_instance_data(component.component_id, {"title": text_value("Same")})
    assert same.version == 1

    moved = await component_service.update_instance(component.component_id, order=5)
    assert moved.order == 5
    assert moved.version == 1


@pytest.mark.asyncio
async def test_soft_delete_and_restore(component_service, testimonials_type):
    component = await component_service.create_instance("Testimonials", "reviews")

    deleted = await component_service.soft_delete(component.component_id)
    assert deleted.is_active is False
    assert deleted.version == 2
    assert await component_service.list_instances() == []
    assert len(await component_service.list_instances(include_inactive=True)) == 1

    restored = await component_service.reactivate(component.component_id)
    assert restored.is_active is True
    assert restored.version == 3


@pytest.mark.asyncio
async def test_list_instances_sorted_by_order(component_service, testimonials_type):
    await component_service.create_instance("Testimonials", "third", order=3)
    await component_service.create_instance("Testimonials", "first", order=1)
    await component_service.create_instance("PromoStrip", "second", order=2)

    assert [c.name for c in await component_service.list_instances()] == ["first", "second", "third"]
    assert [c.name for c in await component_service.list_instances(type_name="PromoStrip")] == ["second"]


@pytest.mark.asyncio
async def test_reorder_settles_every_item(component_service, testimonials_type):
    first = await component_service.create_instance("Testimonials", "first", order=0)
    second = await component_service.create_instance("Testimonials", "second", order=1)

    result = await component_service.reorder(
        [(second.component_id, 0), ("cmp_missing", 1), (first.component_id, 2)]
    )

    assert [item.ok for item in result.items] == [True, False, True]
    assert isinstance(result.items[1].error, NotFoundError)
    assert [c.name for c in await component_service.list_instances()] == ["second", "first"]

    with pytest.raises(PartialBulkFailure) as exc_info:
        result.raise_for_failures()
    assert exc_info.value.status_code == 404
    assert exc_info.value.result.to_dict()["succeeded"] == 2


@pytest.mark.asyncio
async def test_get_missing_instance(component_service):
    with pytest.raises(NotFoundError):
        await component_service.get_instance("cmp_missing")
