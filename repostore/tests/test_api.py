"""Endpoint tests — documents, products, branding and assets over HTTP.

The gateway dependency is overridden with an InMemoryFileGateway so every
request runs the real codecs and store against seeded files.
"""

import base64
import json
from dataclasses import replace

import httpx
import pytest
from httpx import ASGITransport

from repostore.api.deps import get_app_settings, get_gateway
from repostore.codecs.products import encode
from repostore.config import get_settings
from repostore.hooks.memory import InMemoryFileGateway
from repostore.main import app
from repostore.schemas import RepoCoordinates

QUERY = {"owner": "acme", "repo": "website"}


@pytest.fixture
def gateway():
    gateway = InMemoryFileGateway()
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield gateway
    app.dependency_overrides.pop(get_gateway, None)


@pytest.fixture
def client() -> httpx.AsyncClient:
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


@pytest.fixture
def settings():
    return get_settings()


# ---------------------------------------------------------------------------
# Repo coordinates
# ---------------------------------------------------------------------------


class TestCoordinates:
    @pytest.mark.asyncio
    async def test_missing_owner_is_400(self, client, gateway, settings) -> None:
        app.dependency_overrides[get_app_settings] = lambda: replace(settings, default_owner="")
        try:
            async with client:
                resp = await client.get("/api/v1/documents/content", params={"repo": "website"})
        finally:
            app.dependency_overrides.pop(get_app_settings, None)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "BAD_REQUEST"

    @pytest.mark.asyncio
    async def test_aliases_and_branch(self, client, gateway, settings) -> None:
        staging = RepoCoordinates(owner="acme", repo="website", ref="staging")
        gateway.seed(staging, settings.content_file_path, b'{"where": "staging"}')
        async with client:
            resp = await client.get(
                "/api/v1/documents/content",
                params={"repoOwner": "acme", "repo-name": "website", "branch": "staging"},
            )
        assert resp.status_code == 200
        assert resp.json()["data"]["document"] == {"where": "staging"}


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class TestDocuments:
    @pytest.mark.asyncio
    async def test_read_write_and_conflict(self, client, gateway, coords, settings) -> None:
        gateway.seed(coords, settings.pages_file_path, b'[{"slug": "home"}]')
        async with client:
            read = await client.get("/api/v1/documents/pages", params=QUERY)
            stamp = read.json()["data"]["versionStamp"]

            first = await client.put(
                "/api/v1/documents/pages",
                params=QUERY,
                json={"document": [{"slug": "about"}], "versionStamp": stamp},
            )
            second = await client.put(
                "/api/v1/documents/pages",
                params=QUERY,
                json={"document": [{"slug": "stale"}], "versionStamp": stamp},
            )

        assert read.json()["data"]["document"] == [{"slug": "home"}]
        assert first.status_code == 200
        assert first.json()["data"]["commitUrl"].startswith("memory://acme/website/commit/")
        assert second.status_code == 409
        assert second.json()["error"]["code"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_missing_document_is_404(self, client, gateway) -> None:
        async with client:
            resp = await client.get("/api/v1/documents/sections", params=QUERY)
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_malformed_document_is_422(self, client, gateway, coords, settings) -> None:
        gateway.seed(coords, settings.content_file_path, b"{not json")
        async with client:
            resp = await client.get("/api/v1/documents/content", params=QUERY)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "DECODE_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_kind_is_422(self, client, gateway) -> None:
        async with client:
            resp = await client.get("/api/v1/documents/secrets", params=QUERY)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


class TestProducts:
    @pytest.mark.asyncio
    async def test_read_then_save(self, client, gateway, coords, settings, make_product) -> None:
        gateway.seed(coords, settings.products_file_path, encode([make_product()]).encode())
        image_stamp = gateway.seed(coords, "public/assets/images/products/semaglutide.png", b"img")

        async with client:
            read = await client.get("/api/v1/products", params=QUERY)
            data = read.json()["data"]
            products = data["products"]
            products[0]["name"] = "Semaglutide 2"
            saved = await client.put(
                "/api/v1/products",
                params=QUERY,
                json={"products": products, "versionStamp": data["versionStamp"]},
            )

        assert data["hasUnmanagedContent"] is False
        asset = data["assets"]["/assets/images/products/semaglutide.png"]
        assert asset["versionStamp"] == image_stamp
        assert asset["url"].endswith(f"?v={image_stamp[:12]}")
        assert saved.status_code == 200
        assert any("regenerated" in w for w in saved.json()["data"]["warnings"])

    @pytest.mark.asyncio
    async def test_duplicate_ids_are_400(self, client, gateway) -> None:
        products = [{"id": "a", "name": "A"}, {"id": "a", "name": "B"}]
        async with client:
            resp = await client.put(
                "/api/v1/products", params=QUERY, json={"products": products, "versionStamp": "x"}
            )
        assert resp.status_code == 400
        assert "Duplicate" in resp.json()["error"]["message"]

    @pytest.mark.asyncio
    async def test_unparseable_file_is_422(self, client, gateway, coords, settings) -> None:
        gateway.seed(coords, settings.products_file_path, b"export const products: Product[] = [x];")
        async with client:
            resp = await client.get("/api/v1/products", params=QUERY)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "PARSE_ERROR"


# ---------------------------------------------------------------------------
# Branding
# ---------------------------------------------------------------------------


class TestBranding:
    @pytest.mark.asyncio
    async def test_read_then_save(self, client, gateway, coords, settings, tailwind_source) -> None:
        gateway.seed(coords, settings.tailwind_config_path, tailwind_source.encode())
        async with client:
            read = await client.get("/api/v1/branding", params=QUERY)
            data = read.json()["data"]
            saved = await client.put(
                "/api/v1/branding",
                params=QUERY,
                json={
                    "colors": {**data["colors"], "accentColor1": "#00aa00"},
                    "versionStamp": data["versionStamp"],
                },
            )

        assert data["colors"]["backgroundColor"] == "#FAFAFA"
        assert data["logos"]["primary"]["repoPath"] == settings.brand_logo_path
        assert saved.status_code == 200
        assert saved.json()["data"]["colors"]["accentColor1"] == "#00AA00"

    @pytest.mark.asyncio
    async def test_invalid_color_is_400(self, client, gateway) -> None:
        colors = {
            "backgroundColor": "white",
            "bodyColor": "#000000",
            "accentColor1": "#000000",
            "accentColor2": "#000000",
        }
        async with client:
            resp = await client.put(
                "/api/v1/branding", params=QUERY, json={"colors": colors, "versionStamp": "x"}
            )
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


class TestAssets:
    @pytest.mark.asyncio
    async def test_list(self, client, gateway) -> None:
        async with client:
            resp = await client.get("/api/v1/assets", params=QUERY)
        assets = resp.json()["data"]["assets"]
        assert resp.status_code == 200
        assert {a["category"] for a in assets} == {"brand", "before-after", "client-logo"}
        assert all(a["url"] == "" for a in assets)

    @pytest.mark.asyncio
    async def test_product_image_upload(self, client, gateway, coords) -> None:
        async with client:
            resp = await client.post(
                "/api/v1/assets/product-images",
                params=QUERY,
                json={"path": "/assets/images/products/new.png", "contentBase64": _b64(b"png")},
            )
        assert resp.status_code == 200
        assert resp.json()["data"]["created"] is True
        record = await gateway.read(coords, "public/assets/images/products/new.png")
        assert record.raw_bytes == b"png"

    @pytest.mark.asyncio
    async def test_traversal_is_400(self, client, gateway) -> None:
        async with client:
            resp = await client.post(
                "/api/v1/assets/product-images",
                params=QUERY,
                json={"path": "/assets/../../secrets", "contentBase64": _b64(b"x")},
            )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_managed_update_rejects_unmanaged_path(self, client, gateway) -> None:
        async with client:
            resp = await client.put(
                "/api/v1/assets",
                params=QUERY,
                json={"path": "/assets/random.png", "contentBase64": _b64(b"x")},
            )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_client_logo_lifecycle(self, client, gateway, coords, settings) -> None:
        gateway.seed(coords, settings.content_file_path, json.dumps({"home": {}}).encode())
        async with client:
            added = await client.post(
                "/api/v1/assets/client-logos",
                params=QUERY,
                json={"fileName": "acme.png", "contentBase64": _b64(b"png"), "alt": "Acme"},
            )
            duplicate = await client.post(
                "/api/v1/assets/client-logos",
                params=QUERY,
                json={"fileName": "acme.png", "contentBase64": _b64(b"png")},
            )
            listing = await client.get(
                "/api/v1/assets/directory",
                params={**QUERY, "path": "public/assets/images/clients"},
            )
            removed = await client.delete(
                "/api/v1/assets/client-logos",
                params={**QUERY, "src": "/assets/images/clients/acme.png"},
            )

        assert added.status_code == 200
        assert added.json()["data"]["logo"] == {"src": "/assets/images/clients/acme.png", "alt": "Acme"}
        assert duplicate.status_code == 409
        assert listing.json()["data"]["files"] == ["acme.png"]
        assert removed.status_code == 200
        assert removed.json()["data"]["logos"] == []
        assert await gateway.read(coords, "public/assets/images/clients/acme.png") is None
