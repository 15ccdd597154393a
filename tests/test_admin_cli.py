import json

import httpx
import pytest

from content_cms.cli import admin_cli
from content_cms.cli.admin_cli import AdminCLI
from content_cms.services.component_type_seed_data import get_default_component_types_seed_data


@pytest.fixture
def api(monkeypatch):
    """Serve the CLI's HTTP calls from an in-memory handler and record them."""
    calls = []
    existing = {"banner"}
    real_client = httpx.AsyncClient

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        assert request.headers["Authorization"] == "Bearer secret"
        if request.method == "POST" and request.url.path == "/component-types":
            name = json.loads(request.content)["name"]
            if name.lower() in existing:
                return httpx.Response(409, json={"success": False, "message": f"Component type with name '{name}' already exists"})
            existing.add(name.lower())
            return httpx.Response(201, json={"success": True, "data": {"name": name}})
        if request.method == "POST" and request.url.path == "/component-types/seed":
            return httpx.Response(200, json={"success": True, "data": {"created": 11, "skipped": 0, "removed": 3}})
        if request.method == "GET" and request.url.path == "/component-types":
            return httpx.Response(
                200,
                json={"success": True, "data": [{"name": "Banner", "version": 2, "fields": [{}, {}], "is_active": True}]},
            )
        return httpx.Response(404, json={"success": False, "message": "not found"})

    def client_factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(admin_cli.httpx, "AsyncClient", client_factory)
    return calls


@pytest.mark.asyncio
async def test_seed_posts_each_default_and_skips_existing(api):
    cli = AdminCLI("http://cms.local/", "secret")

    assert await cli.seed() is True
    assert len(api) == len(get_default_component_types_seed_data())
    assert all(str(call.url).startswith("http://cms.local/component-types") for call in api)


@pytest.mark.asyncio
async def test_seed_reset_uses_server_side_seed(api):
    assert await AdminCLI("http://cms.local", "secret").seed(reset=True) is True
    assert api[0].url.params["reset"] == "true"


@pytest.mark.asyncio
async def test_define_from_file(api, tmp_path):
    path = tmp_path / "types.json"
    path.write_text(json.dumps([{"name": "Promo", "fields": [{"name": "headline", "kind": "text"}]}]))

    assert await AdminCLI("http://cms.local", "secret").define(str(path)) is True
    assert await AdminCLI("http://cms.local", "secret").define(str(tmp_path / "missing.json")) is False


@pytest.mark.asyncio
async def test_list_types_prints_catalogue(api, capsys):
    assert await AdminCLI("http://cms.local", "secret").list_types() is True
    output = capsys.readouterr().out
    assert "Banner" in output
    assert "2 fields" in output
