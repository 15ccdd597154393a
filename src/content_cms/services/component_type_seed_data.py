"""
# Component Type Seed Data

The **default catalogue** of component types seeded into an empty `component_types`
collection at startup, and by the `content-cms-admin seed` command.

Definitions are written in the legacy field dialect (`type` plus `fieldType`, `default`,
`itemStructure` for array items, `fields` for object members, plain string `options`),
which is exactly what older admin clients send. The component type service normalizes
them on the way in.

## Usage

```python
from content_cms.services.component_type_seed_data import get_default_component_types_seed_data

for definition in get_default_component_types_seed_data():
    await component_type_service.define_type(**definition)
```
"""

from typing import Any, Dict, List


def get_default_component_types_seed_data() -> List[Dict[str, Any]]:
    """Return fresh copies of the default component type definitions."""
    return [
        {
            "name": "Banner",
            "description": "Full-width hero banner with call to action",
            "tags": ["hero"],
            "fields": [
                {"name": "title", "type": "string", "fieldType": "text", "default": "Welcome to Our Website"},
                {"name": "subtitle", "type": "string", "fieldType": "text", "default": "We provide the best services"},
                {"name": "backgroundImage", "type": "image", "fieldType": "image", "default": ""},
                {"name": "ctaText", "type": "string", "fieldType": "text", "default": "Learn More"},
                {"name": "ctaLink", "type": "string", "fieldType": "text", "default": "/about"},
                {
                    "name": "style",
                    "type": "string",
                    "fieldType": "select",
                    "options": ["fullscreen", "centered", "split", "video"],
                    "default": "centered",
                },
                {
                    "name": "overlayOpacity",
                    "type": "number",
                    "fieldType": "number",
                    "default": 0.5,
                    "min": 0,
                    "max": 1,
                    "step": 0.1,
                },
            ],
        },
        {
            "name": "About",
            "description": "Heading, rich text body and an image",
            "tags": ["content"],
            "fields": [
                {"name": "heading", "type": "string", "fieldType": "text", "default": "About Us"},
                {"name": "content", "type": "richText", "fieldType": "richText", "default": "We are a company that..."},
                {"name": "image", "type": "image", "fieldType": "image", "default": ""},
            ],
        },
        {
            "name": "Testimonials",
            "description": "Client quotes",
            "tags": ["social-proof"],
            "fields": [
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
            ],
        },
        {
            "name": "Team",
            "description": "Team member cards",
            "tags": ["content"],
            "fields": [
                {"name": "sectionTitle", "type": "string", "fieldType": "text", "default": "Meet the Team"},
                {
                    "name": "members",
                    "type": "array",
                    "fieldType": "array",
                    "itemStructure": [
                        {"name": "name", "type": "string", "fieldType": "text"},
                        {"name": "role", "type": "string", "fieldType": "text"},
                        {"name": "photo", "type": "image", "fieldType": "image"},
                        {"name": "bio", "type": "text", "fieldType": "textarea"},
                    ],
                },
            ],
        },
        {
            "name": "Services",
            "description": "Service offerings with icons",
            "tags": ["content"],
            "fields": [
                {"name": "title", "type": "string", "fieldType": "text", "default": "Our Services"},
                {
                    "name": "services",
                    "type": "array",
                    "fieldType": "array",
                    "itemStructure": [
                        {"name": "icon", "type": "string", "fieldType": "text"},
                        {"name": "title", "type": "string", "fieldType": "text"},
                        {"name": "description", "type": "text", "fieldType": "textarea"},
                    ],
                },
            ],
        },
        {
            "name": "Gallery",
            "description": "Image grid",
            "tags": ["media"],
            "fields": [
                {"name": "title", "type": "string", "fieldType": "text", "default": "Our Work"},
                {
                    "name": "images",
                    "type": "array",
                    "fieldType": "array",
                    "itemStructure": [{"name": "image", "type": "image", "fieldType": "image"}],
                },
            ],
        },
        {
            "name": "Pricing",
            "description": "Pricing plans with per-plan feature lists",
            "tags": ["commerce"],
            "fields": [
                {"name": "sectionTitle", "type": "string", "fieldType": "text", "default": "Our Pricing Plans"},
                {
                    "name": "subtitle",
                    "type": "string",
                    "fieldType": "text",
                    "default": "Choose the plan that fits your needs",
                },
                {
                    "name": "plans",
                    "type": "array",
                    "fieldType": "array",
                    "itemStructure": [
                        {"name": "name", "type": "string", "fieldType": "text"},
                        {"name": "price", "type": "number", "fieldType": "number"},
                        {"name": "currency", "type": "string", "fieldType": "text", "default": "$"},
                        {"name": "period", "type": "string", "fieldType": "text", "default": "month"},
                        {
                            "name": "features",
                            "type": "array",
                            "fieldType": "array",
                            "itemStructure": [
                                {"name": "text", "type": "string", "fieldType": "text"},
                                {"name": "included", "type": "boolean", "fieldType": "boolean", "default": True},
                            ],
                        },
                        {"name": "isPopular", "type": "boolean", "fieldType": "boolean", "default": False},
                        {"name": "ctaText", "type": "string", "fieldType": "text", "default": "Get Started"},
                        {"name": "ctaLink", "type": "string", "fieldType": "text", "default": "#"},
                    ],
                },
            ],
        },
        {
            "name": "Carousel",
            "description": "Slides with playback settings",
            "tags": ["media", "hero"],
            "fields": [
                {
                    "name": "slides",
                    "type": "array",
                    "fieldType": "array",
                    "itemStructure": [
                        {"name": "image", "type": "image", "fieldType": "image"},
                        {"name": "title", "type": "string", "fieldType": "text"},
                        {"name": "description", "type": "text", "fieldType": "textarea"},
                        {"name": "ctaText", "type": "string", "fieldType": "text"},
                        {"name": "ctaLink", "type": "string", "fieldType": "text"},
                    ],
                },
                {
                    "name": "settings",
                    "type": "object",
                    "fieldType": "object",
                    "fields": [
                        {"name": "autoplay", "type": "boolean", "fieldType": "boolean", "default": True},
                        {"name": "interval", "type": "number", "fieldType": "number", "default": 5000},
                        {"name": "showArrows", "type": "boolean", "fieldType": "boolean", "default": True},
                        {"name": "showDots", "type": "boolean", "fieldType": "boolean", "default": True},
                    ],
                },
            ],
        },
        {
            "name": "FAQ",
            "description": "Frequently asked questions",
            "tags": ["content"],
            "fields": [
                {"name": "title", "type": "string", "fieldType": "text", "default": "Frequently Asked Questions"},
                {"name": "subtitle", "type": "string", "fieldType": "text"},
                {
                    "name": "questions",
                    "type": "array",
                    "fieldType": "array",
                    "itemStructure": [
                        {"name": "question", "type": "string", "fieldType": "text"},
                        {"name": "answer", "type": "richText", "fieldType": "richText"},
                        {"name": "category", "type": "string", "fieldType": "text"},
                    ],
                },
                {
                    "name": "style",
                    "type": "string",
                    "fieldType": "select",
                    "options": ["accordion", "grid", "tabs"],
                    "default": "accordion",
                },
            ],
        },
        {
            "name": "Stats",
            "description": "Key figures",
            "tags": ["social-proof"],
            "fields": [
                {"name": "title", "type": "string", "fieldType": "text", "default": "Our Impact"},
                {
                    "name": "stats",
                    "type": "array",
                    "fieldType": "array",
                    "itemStructure": [
                        {"name": "value", "type": "string", "fieldType": "text"},
                        {"name": "label", "type": "string", "fieldType": "text"},
                        {"name": "icon", "type": "string", "fieldType": "text"},
                        {"name": "prefix", "type": "string", "fieldType": "text"},
                        {"name": "suffix", "type": "string", "fieldType": "text"},
                    ],
                },
                {
                    "name": "layout",
                    "type": "string",
                    "fieldType": "select",
                    "options": ["grid", "bar", "circular"],
                    "default": "grid",
                },
            ],
        },
        {
            "name": "CTASection",
            "description": "Call to action with primary and secondary buttons",
            "tags": ["conversion"],
            "fields": [
                {"name": "title", "type": "string", "fieldType": "text", "default": "Ready to Get Started?"},
                {"name": "description", "type": "text", "fieldType": "textarea"},
                {
                    "name": "primaryButton",
                    "type": "object",
                    "fieldType": "object",
                    "fields": [
                        {"name": "text", "type": "string", "fieldType": "text", "default": "Get Started"},
                        {"name": "link", "type": "string", "fieldType": "text"},
                        {
                            "name": "style",
                            "type": "string",
                            "fieldType": "select",
                            "options": ["solid", "outline", "link"],
                            "default": "solid",
                        },
                    ],
                },
                {
                    "name": "secondaryButton",
                    "type": "object",
                    "fieldType": "object",
                    "fields": [
                        {"name": "text", "type": "string", "fieldType": "text"},
                        {"name": "link", "type": "string", "fieldType": "text"},
                        {
                            "name": "style",
                            "type": "string",
                            "fieldType": "select",
                            "options": ["solid", "outline", "link"],
                            "default": "outline",
                        },
                    ],
                },
                {
                    "name": "background",
                    "type": "string",
                    "fieldType": "select",
                    "options": ["light", "dark", "gradient", "image"],
                    "default": "light",
                },
                {"name": "backgroundImage", "type": "image", "fieldType": "image"},
            ],
        },
    ]
