"""Asset metadata resolver and the managed asset catalog.

Documents reference images by path. To preview them the dashboard needs
each file's current stamp and a servable URL, so the resolver reads every
unique path in parallel. One broken reference never fails the batch: a
missing file and any per-path error both resolve to an empty entry.

Fan-out equals the number of distinct paths; callers sending very large
batches throttle on their side.

Tier 2 service — imports from hooks.interfaces (Tier 1), paths, schemas.

Usage:
    resolver = AssetMetadataResolver(gateway, settings.raw_content_root)
    lookup = await resolver.resolve_many({"/assets/a.png", "/assets/b.png"}, coords)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from repostore.hooks.interfaces import FileGateway
from repostore.paths import (
    build_servable_url,
    ensure_leading_slash,
    to_repo_path,
    to_website_path,
    website_src_to_repo_path,
)
from repostore.schemas import (
    AssetMetadata,
    AssetReference,
    ManagedAsset,
    ProductRecord,
    RepoCoordinates,
)

logger = logging.getLogger(__name__)


class AssetMetadataResolver:
    """Resolves paths to their current stamp and servable URL."""

    def __init__(
        self,
        gateway: FileGateway,
        raw_content_root: str = "https://raw.githubusercontent.com",
    ) -> None:
        self._gateway = gateway
        self._raw_content_root = raw_content_root

    def url_for(self, path: str, version_stamp: str | None, coords: RepoCoordinates) -> str:
        return build_servable_url(
            path,
            version_stamp,
            coords.owner,
            coords.repo,
            coords.ref,
            self._raw_content_root,
        )

    async def resolve(self, path: str, coords: RepoCoordinates) -> AssetMetadata:
        """Resolves one path. Never raises; failures give an empty entry."""
        repo_path = to_repo_path(path)
        if not repo_path:
            return AssetMetadata()
        try:
            record = await self._gateway.read(coords, repo_path)
        except Exception:
            logger.exception("Error fetching asset metadata for %s", path)
            return AssetMetadata()
        if record is None:
            return AssetMetadata()
        return AssetMetadata(
            url=self.url_for(repo_path, record.version_stamp, coords),
            version_stamp=record.version_stamp,
        )

    async def resolve_many(
        self, paths: Iterable[str], coords: RepoCoordinates
    ) -> dict[str, AssetMetadata]:
        """Resolves every unique path concurrently.

        Returns:
            Mapping with one entry per unique input path, keyed by the path
            exactly as given.
        """
        unique = list(dict.fromkeys(paths))
        results = await asyncio.gather(*(self.resolve(path, coords) for path in unique))
        return dict(zip(unique, results))

    async def reference(self, path: str, coords: RepoCoordinates) -> AssetReference:
        """Resolves a path into a full AssetReference (both path dialects)."""
        repo_path = to_repo_path(path)
        metadata = await self.resolve(repo_path, coords)
        return AssetReference(
            repo_path=repo_path,
            website_path=to_website_path(repo_path),
            version_stamp=metadata.version_stamp,
            url=metadata.url,
        )


def product_asset_paths(products: Iterable[ProductRecord]) -> list[str]:
    """Unique, trimmed, non-empty img/thumbnail values in catalog order."""
    paths: dict[str, None] = {}
    for product in products:
        for value in (product.img, product.thumbnail):
            if isinstance(value, str) and value.strip():
                paths[value.strip()] = None
    return list(paths)


# ---------------------------------------------------------------------------
# Managed asset catalog
# ---------------------------------------------------------------------------

CLIENT_LOGO_DIR = "public/assets/images/clients"

BRAND_ASSETS: list[ManagedAsset] = [
    ManagedAsset(path="public/assets/images/brand/hero-bg.png", label="Hero Background", category="brand"),
    ManagedAsset(path="public/assets/images/brand/hero-img.png", label="Hero Image", category="brand"),
    ManagedAsset(path="public/assets/images/brand/logo.svg", label="Primary Logo", category="brand"),
    ManagedAsset(path="public/assets/images/brand/logo-alt.svg", label="Alternate Logo", category="brand"),
]

BEFORE_AFTER_ASSETS: list[ManagedAsset] = [
    ManagedAsset(
        path=f"public/assets/images/before-after-{index}.png",
        label=f"Before & After {index}",
        category="before-after",
    )
    for index in range(1, 5)
]

_DEFAULT_CLIENT_LOGOS: list[tuple[str, str]] = [
    ("schweiger.png", "Schweiger Dermatology Group"),
    ("echelon.png", "Echelon Fitness"),
    ("yesyoucan.png", "Yes You Can"),
    ("dietdirect.png", "Diet Direct"),
    ("alpha.png", "Alpha"),
    ("fifty410.png", "Fifty 410"),
    ("skinclique.png", "Skin Clique"),
    ("medvi.png", "Medvi"),
    ("bloomberg.png", "Bloomberg"),
    ("forbes.png", "Forbes"),
    ("healthline.png", "Healthline"),
    ("web-md.png", "WebMD"),
    ("fortune.png", "Fortune"),
    ("fast-company.png", "Fast Company"),
    ("new-york-times.png", "The New York Times"),
]

DEFAULT_CLIENT_LOGO_ASSETS: list[ManagedAsset] = [
    ManagedAsset(path=f"{CLIENT_LOGO_DIR}/{name}", label=label, category="client-logo")
    for name, label in _DEFAULT_CLIENT_LOGOS
]

MANAGED_ASSETS: list[ManagedAsset] = [*BRAND_ASSETS, *BEFORE_AFTER_ASSETS]


def trusted_by_logos(content: Any) -> list[dict[str, Any]] | None:
    """The ``home.trustedBy.logos`` list of a content document, if present."""
    if not isinstance(content, dict):
        return None
    logos = ((content.get("home") or {}).get("trustedBy") or {}).get("logos")
    return logos if isinstance(logos, list) else None


def ensure_trusted_by_logos(content: dict[str, Any]) -> list[dict[str, Any]]:
    """Creates ``home.trustedBy.logos`` as needed and returns the list (mutable)."""
    if not isinstance(content.get("home"), dict):
        content["home"] = {}
    home = content["home"]
    if not isinstance(home.get("trustedBy"), dict):
        home["trustedBy"] = {}
    trusted_by = home["trustedBy"]
    if not isinstance(trusted_by.get("logos"), list):
        trusted_by["logos"] = []
    return trusted_by["logos"]


def client_logo_assets(content: Any) -> list[ManagedAsset]:
    """Client logo slots declared by the content document.

    Falls back to the built-in list when the document has no logos array.
    """
    logos = trusted_by_logos(content)
    if logos is None:
        return list(DEFAULT_CLIENT_LOGO_ASSETS)

    assets = []
    for index, logo in enumerate(logos, start=1):
        src = logo.get("src") if isinstance(logo, dict) else None
        repo_path = website_src_to_repo_path(src) if isinstance(src, str) else ""
        if not repo_path:
            continue
        alt = logo.get("alt")
        label = alt.strip() if isinstance(alt, str) and alt.strip() else f"Client Logo {index}"
        assets.append(
            ManagedAsset(
                path=repo_path,
                label=label,
                category="client-logo",
                website_src=ensure_leading_slash(src.strip()),
            )
        )
    return assets


def is_managed_asset_path(path: str) -> bool:
    """Whether path is a slot the dashboard may upload to."""
    if any(asset.path == path for asset in MANAGED_ASSETS):
        return True
    return path.startswith(CLIENT_LOGO_DIR + "/")
