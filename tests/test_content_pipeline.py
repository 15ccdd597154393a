import pytest

from conftest import TESTIMONIALS_FIELDS, make_testimonial, text_value
from content_cms.exceptions import CMSValidationError
from content_cms.services.content_pipeline import (
    enrich,
    flatten,
    normalize_component_data,
    resolve_kind,
    rewrap,
    sanitize_rich_text,
    wrap,
)
from content_cms.services.field_schema import dump_fields, validate_field_definitions


@pytest.fixture
def fields():
    return validate_field_definitions(TESTIMONIALS_FIELDS)


def test_normalize_then_flatten_gives_bare_values(fields):
    stored = normalize_component_data(
        {
            "title": text_value("Kind Words"),
            "testimonials": {"type": "array", "value": [make_testimonial("Ada", "CTO", "Great work")]},
        },
        fields,
    )

    assert stored["title"] == wrap("text", "Kind Words")
    assert stored["testimonials"]["fieldType"] == "array"
    assert [f["name"] for f in stored["testimonials"]["itemStructure"]] == ["name", "position", "message", "image"]
    assert stored["testimonials"]["value"][0]["name"] == wrap("text", "Ada")

    assert flatten(stored) == {
        "title": "Kind Words",
        "testimonials": [{"name": "Ada", "position": "CTO", "message": "Great work", "image": ""}],
    }


def test_empty_image_keeps_its_wrapper(fields):
    stored = normalize_component_data({"testimonials": {"type": "array", "value": [make_testimonial("Ada")]}}, fields)
    assert stored["testimonials"]["value"][0]["image"] == {"type": "image", "fieldType": "image", "value": ""}


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("", []),
        (None, []),
        ({"name": text_value("Ada")}, [{"name": wrap("text", "Ada")}]),
        ([], []),
    ],
)
def test_array_values_are_always_lists(fields, raw, expected):
    stored = normalize_component_data({"testimonials": {"type": "array", "fieldType": "array", "value": raw}}, fields)
    assert stored["testimonials"]["value"] == expected


def test_schema_kind_wins_over_wrapper_kind(fields):
    stored = normalize_component_data({"title": {"type": "number", "value": "Hello"}}, fields)
    assert stored["title"] == wrap("text", "Hello")


def test_unknown_keys_are_kept_and_tagged(fields):
    stored = normalize_component_data(
        {
            "badge": {"type": "string", "value": "new"},
            "rating": 5,
            "featured": True,
            "extra": {"note": "plain"},
        },
        fields,
    )
    assert stored["badge"] == wrap("text", "new")
    assert stored["rating"] == wrap("number", 5)
    assert stored["featured"] == wrap("boolean", True)
    assert stored["extra"] == wrap("object", {"note": wrap("text", "plain")})


def test_untyped_array_keeps_incoming_item_structure():
    structure = [{"name": "label", "kind": "text"}]
    stored = normalize_component_data(
        {"links": {"type": "array", "value": [{"label": "Home"}], "itemStructure": structure}}
    )
    assert stored["links"]["itemStructure"] == structure
    assert stored["links"]["value"] == [{"label": wrap("text", "Home")}]


def test_null_scalar_becomes_empty_string(fields):
    assert normalize_component_data({"title": {"type": "text", "value": None}}, fields)["title"]["value"] == ""


def test_rich_text_is_sanitized():
    cleaned = sanitize_rich_text('<p onclick="x()">Hi <strong>there</strong></p><script>alert(1)</script>')
    assert "<script>" not in cleaned
    assert "onclick" not in cleaned
    assert "<strong>there</strong>" in cleaned

    stored = normalize_component_data({"body": {"type": "richText", "value": "<p>ok</p><iframe></iframe>"}})
    assert stored["body"] == wrap("richText", "<p>ok</p>")


@pytest.mark.parametrize("key", ["a.b", "$where", ""])
def test_unstorable_keys_are_rejected(key):
    with pytest.raises(CMSValidationError):
        normalize_component_data({key: "x"})


def test_data_must_be_a_mapping():
    with pytest.raises(CMSValidationError):
        normalize_component_data(["title"])
    assert normalize_component_data(None) == {}


def test_resolve_kind_order():
    assert resolve_kind({"type": "text", "fieldType": "textarea", "value": ""}) == "textarea"
    assert resolve_kind({"type": "string", "value": ""}) == "text"
    assert resolve_kind({"type": "bogus", "value": ""}, fallback="image") == "image"
    assert resolve_kind({"value": ""}) == "text"


def test_enrich_fills_defaults_in_schema_order(fields):
    enriched = enrich({"extra": text_value("kept")}, fields)

    assert list(enriched) == ["title", "testimonials", "extra"]
    assert enriched["title"] == wrap("text", "What Our Clients Say")
    assert enriched["testimonials"]["value"] == []
    assert enriched["testimonials"]["itemStructure"] == dump_fields(fields[1].children)
    assert enriched["extra"] == text_value("kept")


def test_enrich_reflects_schema_edits(fields):
    stored = normalize_component_data(
        {"testimonials": {"type": "array", "value": [{"name": text_value("Ada")}]}},
        validate_field_definitions(
            [{"name": "testimonials", "kind": "array", "children": [{"name": "name", "kind": "text"}]}]
        ),
    )
    assert [f["name"] for f in stored["testimonials"]["itemStructure"]] == ["name"]

    enriched = enrich(stored, fields)
    item = enriched["testimonials"]["value"][0]
    assert [f["name"] for f in enriched["testimonials"]["itemStructure"]] == ["name", "position", "message", "image"]
    assert item["name"] == wrap("text", "Ada")
    assert item["position"] == wrap("text", "")
    assert item["image"] == wrap("image", "")


def test_enrich_tolerates_bare_stored_values(fields):
    enriched = enrich({"title": "Plain", "testimonials": {"name": "Ada"}}, fields)
    assert enriched["title"] == wrap("text", "Plain")
    assert enriched["testimonials"]["value"][0]["name"] == wrap("text", "Ada")


def test_rewrap_without_schema():
    rewrapped = rewrap(
        {
            "title": {"type": "string", "value": None},
            "items": {"type": "array", "value": "", "itemStructure": [{"name": "a", "kind": "text"}]},
            "count": 3,
        }
    )
    assert rewrapped["title"] == wrap("text", "")
    assert rewrapped["items"] == {
        "type": "array",
        "fieldType": "array",
        "value": [],
        "itemStructure": [{"name": "a", "kind": "text"}],
    }
    assert rewrapped["count"] == wrap("number", 3)


def test_flatten_nested_structures():
    assert flatten(
        {
            "settings": wrap("object", {"autoplay": wrap("boolean", True)}),
            "slides": wrap("array", [{"title": wrap("text", "One")}, "raw"]),
            "plain": 1,
        }
    ) == {"settings": {"autoplay": True}, "slides": [{"title": "One"}, "raw"], "plain": 1}


def test_children_named_like_wrapper_keys_survive_flatten():
    contact_fields = validate_field_definitions(
        [
            {
                "name": "contacts",
                "kind": "array",
                "children": [
                    {"name": "type", "kind": "select", "options": ["email", "phone"]},
                    {"name": "value", "kind": "text"},
                ],
            }
        ]
    )
    stored = normalize_component_data(
        {"contacts": {"type": "array", "value": [{"type": "email", "value": "a@b.c"}]}},
        contact_fields,
    )

    assert stored["contacts"]["value"][0] == {"type": wrap("select", "email"), "value": wrap("text", "a@b.c")}
    assert flatten(stored) == {"contacts": [{"type": "email", "value": "a@b.c"}]}
    assert flatten(enrich(stored, contact_fields)) == flatten(stored)


def test_enrich_then_flatten_matches_stored_values(fields):
    stored = normalize_component_data(
        {
            "title": text_value("Kind Words"),
            "testimonials": {"type": "array", "value": [make_testimonial("Ada", "CTO", "Great", "/a.png")]},
        },
        fields,
    )
    assert flatten(enrich(stored, fields)) == flatten(stored)
    assert enrich(enrich(stored, fields), fields) == enrich(stored, fields)
