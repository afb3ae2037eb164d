"""Content store — the operations the dashboard performs on a website repo.

Composes the gateway, the three codecs and the asset resolver, and knows
where each managed file lives (from Settings). Holds no state between
calls: every operation re-reads what it needs, so any number of store
instances and editors can work on the same repo. Write conflicts surface
as ConflictError and are resolved by the editor (refresh and retry).

Tier 3 orchestration module: imports from codecs/*, assets, hooks,
config, schemas, errors.

Usage:
    store = ContentStore(gateway, settings)
    catalog, assets = await store.read_catalog(coords)
    result = await store.write_catalog(coords, catalog.products, catalog.version_stamp)
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Literal

from repostore.assets import (
    CLIENT_LOGO_DIR,
    MANAGED_ASSETS,
    AssetMetadataResolver,
    client_logo_assets,
    ensure_trusted_by_logos,
    is_managed_asset_path,
    product_asset_paths,
)
from repostore.codecs.branding import BrandingCodec, BrandingConfig
from repostore.codecs.json_document import JsonDocumentCodec
from repostore.codecs.products import ProductCatalog, ProductsCodec
from repostore.config import Settings
from repostore.errors import ConflictError, NotFoundError, StoreError
from repostore.hooks.interfaces import FileGateway
from repostore.paths import (
    ensure_leading_slash,
    is_safe_path,
    to_repo_path,
    to_website_path,
    website_src_to_repo_path,
)
from repostore.schemas import (
    AssetMetadata,
    AssetReference,
    BrandingColorSet,
    ProductRecord,
    RepoCoordinates,
    WriteResult,
)

logger = logging.getLogger(__name__)

DocumentKind = Literal["content", "pages", "sections"]

_HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
_FILE_EXTENSION_RE = re.compile(r"\.[A-Za-z0-9]+$")


class InvalidRequest(ValueError):
    """Input rejected before any remote call was made."""


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


def validate_catalog(products: list[ProductRecord]) -> None:
    """Checks catalog invariants the store itself does not enforce.

    Raises:
        InvalidRequest: An id is empty or repeated, or a name is empty.
    """
    seen: set[str] = set()
    for product in products:
        if not product.id.strip():
            label = product.name or "Unnamed"
            raise InvalidRequest(
                f'Each product must have a unique id. Product "{label}" is missing an ID.'
            )
        if product.id in seen:
            raise InvalidRequest(f'Duplicate product id "{product.id}".')
        seen.add(product.id)
        if not product.name.strip():
            raise InvalidRequest(f'Product "{product.id}" is missing a name.')


def normalize_hex_for_save(value: str) -> str:
    """Normalizes a colour to uppercase ``#RRGGBB``.

    Raises:
        InvalidRequest: The value is not a six-digit hex colour.
    """
    trimmed = value.strip()
    with_hash = trimmed if trimmed.startswith("#") else f"#{trimmed}"
    if not _HEX_COLOR_RE.match(with_hash):
        raise InvalidRequest(
            f"{value} is not a valid hex color. Use the format #RRGGBB (6 digits)."
        )
    return with_hash.upper()


def normalize_colors(colors: BrandingColorSet) -> BrandingColorSet:
    return BrandingColorSet(
        background_color=normalize_hex_for_save(colors.background_color),
        body_color=normalize_hex_for_save(colors.body_color),
        accent_color1=normalize_hex_for_save(colors.accent_color1),
        accent_color2=normalize_hex_for_save(colors.accent_color2),
    )


def decode_base64(content_base64: str) -> bytes:
    """Decodes an upload body, accepting an optional ``data:...;base64,`` prefix."""
    payload = content_base64.split(",", 1)[1] if content_base64.startswith("data:") else content_base64
    try:
        return base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise InvalidRequest("contentBase64 is not valid base64.") from exc


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BrandingView:
    config: BrandingConfig
    primary_logo: AssetReference
    secondary_logo: AssetReference


@dataclass(frozen=True)
class AssetEntry:
    """A managed asset slot with its current state in the repo."""

    path: str
    label: str
    category: str
    website_src: str
    version_stamp: str
    url: str


@dataclass(frozen=True)
class UploadResult:
    write: WriteResult
    file_url: str
    created: bool
    deleted_path: str | None = None


@dataclass(frozen=True)
class ClientLogoChange:
    logos: list[dict[str, Any]]
    content: WriteResult
    logo: dict[str, Any] | None = None
    asset: UploadResult | None = None
    warnings: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class ContentStore:
    """Stateless facade over one remote store and a repo file layout.

    Args:
        gateway: The remote file gateway.
        settings: Supplies the managed file paths and raw-content root.
    """

    def __init__(self, gateway: FileGateway, settings: Settings) -> None:
        self._gateway = gateway
        self._settings = settings
        self.documents = JsonDocumentCodec(gateway)
        self.products = ProductsCodec(gateway)
        self.branding = BrandingCodec(gateway)
        self.resolver = AssetMetadataResolver(gateway, settings.raw_content_root)

    def document_path(self, kind: DocumentKind) -> str:
        paths = {
            "content": self._settings.content_file_path,
            "pages": self._settings.pages_file_path,
            "sections": self._settings.sections_file_path,
        }
        return paths[kind]

    # -- JSON documents ----------------------------------------------------

    async def read_document(self, coords: RepoCoordinates, kind: DocumentKind) -> tuple[Any, str]:
        return await self.documents.read(coords, self.document_path(kind))

    async def write_document(
        self,
        coords: RepoCoordinates,
        kind: DocumentKind,
        document: Any,
        version_stamp: str,
        message: str | None = None,
    ) -> WriteResult:
        path = self.document_path(kind)
        return await self.documents.write(
            coords,
            path,
            document,
            version_stamp,
            message or f"CMS: Automated {kind} update for {path}",
        )

    # -- Products ----------------------------------------------------------

    async def read_catalog(
        self, coords: RepoCoordinates
    ) -> tuple[ProductCatalog, dict[str, AssetMetadata]]:
        """Reads the catalog and resolves every product image it references."""
        catalog = await self.products.read(coords, self._settings.products_file_path)
        assets = await self.resolver.resolve_many(
            product_asset_paths(catalog.products), coords
        )
        return catalog, assets

    async def write_catalog(
        self,
        coords: RepoCoordinates,
        products: list[ProductRecord],
        version_stamp: str,
        message: str | None = None,
    ) -> WriteResult:
        validate_catalog(products)
        return await self.products.write(
            coords, self._settings.products_file_path, products, version_stamp, message
        )

    # -- Branding ----------------------------------------------------------

    async def read_branding(self, coords: RepoCoordinates) -> BrandingView:
        config = await self.branding.read(coords, self._settings.tailwind_config_path)
        primary = await self.resolver.reference(self._settings.brand_logo_path, coords)
        secondary = await self.resolver.reference(self._settings.brand_alt_logo_path, coords)
        return BrandingView(config=config, primary_logo=primary, secondary_logo=secondary)

    async def write_branding(
        self,
        coords: RepoCoordinates,
        colors: BrandingColorSet,
        version_stamp: str,
        message: str | None = None,
    ) -> tuple[WriteResult, BrandingColorSet]:
        return await self.branding.write(
            coords,
            self._settings.tailwind_config_path,
            normalize_colors(colors),
            version_stamp,
            message,
        )

    # -- Assets ------------------------------------------------------------

    async def list_assets(self, coords: RepoCoordinates) -> list[AssetEntry]:
        """Every managed slot, with stamp and URL ("" when the file is absent)."""
        try:
            content, _ = await self.read_document(coords, "content")
        except StoreError as exc:
            logger.error("Error building client logo assets: %s", exc)
            content = None
        slots = [*MANAGED_ASSETS, *client_logo_assets(content)]
        lookup = await self.resolver.resolve_many([slot.path for slot in slots], coords)
        return [
            AssetEntry(
                path=slot.path,
                label=slot.label,
                category=slot.category,
                website_src=slot.website_src or to_website_path(slot.path),
                version_stamp=lookup[slot.path].version_stamp or "",
                url=lookup[slot.path].url or "",
            )
            for slot in slots
        ]

    async def upload_asset(
        self,
        coords: RepoCoordinates,
        path: str,
        content: bytes,
        version_stamp: str | None = None,
        message: str | None = None,
        delete_path: str | None = None,
        delete_version_stamp: str | None = None,
        managed_only: bool = False,
    ) -> UploadResult:
        """Creates or replaces an asset, optionally deleting the one it supersedes.

        Without version_stamp the path must not exist yet (create); with
        one, the file must still be at that stamp (update).

        Raises:
            InvalidRequest: Unsafe path, or delete_path without its stamp.
            ConflictError: The asset changed since version_stamp, or exists
                already on a create.
        """
        if not is_safe_path(path):
            raise InvalidRequest("Invalid path.")
        repo_path = to_repo_path(path)
        if managed_only and not is_managed_asset_path(repo_path):
            raise InvalidRequest("Unsupported asset path.")

        delete_repo_path = to_repo_path(delete_path) if delete_path else ""
        if delete_repo_path and delete_repo_path != repo_path and not delete_version_stamp:
            raise InvalidRequest("deleteVersionStamp is required when deletePath is provided.")

        stamp = version_stamp or None

        write = await self._gateway.write(
            coords,
            repo_path,
            content,
            message or f"CMS: {'Update' if stamp else 'Create'} asset {repo_path}",
            expected_version_stamp=stamp,
        )
        file_url = self.resolver.url_for(repo_path, write.new_version_stamp, coords)

        deleted = None
        if delete_repo_path and delete_repo_path != repo_path:
            await self._gateway.delete(
                coords,
                delete_repo_path,
                delete_version_stamp,
                f"CMS: Delete asset {delete_repo_path}",
            )
            deleted = delete_repo_path

        return UploadResult(
            write=write, file_url=file_url, created=stamp is None, deleted_path=deleted
        )

    async def add_client_logo(
        self,
        coords: RepoCoordinates,
        file_name: str,
        content: bytes,
        alt: str | None = None,
        message: str | None = None,
    ) -> ClientLogoChange:
        """Uploads a client logo and registers it in the content document.

        Raises:
            InvalidRequest: The file name is unsafe or has no extension.
            ConflictError: The logo is already registered or the content
                document changed concurrently.
        """
        name = (file_name or "").strip()
        if not name or ".." in name or "/" in name or "\\" in name:
            raise InvalidRequest("Invalid file name provided.")
        if not _FILE_EXTENSION_RE.search(name):
            raise InvalidRequest("File name must include an extension (e.g., logo.png).")

        asset_path = f"{CLIENT_LOGO_DIR}/{name}"
        website_src = to_website_path(asset_path)

        content_doc, content_stamp = await self.read_document(coords, "content")
        logos = ensure_trusted_by_logos(content_doc)
        if any(isinstance(logo, dict) and logo.get("src") == website_src for logo in logos):
            raise ConflictError(asset_path, "A client logo with that path already exists.")

        # An unregistered file at the path (left by an attempt whose
        # registration conflicted) is overwritten.
        existing = await self._gateway.read(coords, asset_path)
        write = await self._gateway.write(
            coords,
            asset_path,
            content,
            message or f"CMS: Add client logo {name}",
            existing.version_stamp if existing else None,
        )
        asset = UploadResult(
            write=write,
            file_url=self.resolver.url_for(asset_path, write.new_version_stamp, coords),
            created=existing is None,
        )

        derived_alt = (alt or "").strip() or re.sub(r"[-_]", " ", re.sub(r"\.[^.]+$", "", name)).strip()
        logo = {"src": website_src, "alt": derived_alt or "Client Logo"}
        logos.append(logo)

        content_write = await self.write_document(
            coords,
            "content",
            content_doc,
            content_stamp,
            "CMS: Register client logo in website content",
        )
        return ClientLogoChange(logos=logos, content=content_write, logo=logo, asset=asset)

    async def remove_client_logo(
        self,
        coords: RepoCoordinates,
        src: str,
        message: str | None = None,
    ) -> ClientLogoChange:
        """Unregisters a client logo, then deletes its file if it still exists.

        The content document is the source of truth; the file deletion is
        best effort and a failure there is returned as a warning.

        Raises:
            InvalidRequest: src does not map to a repo path.
            NotFoundError: No logo with that src is registered.
            ConflictError: The content document changed concurrently.
        """
        normalized_src = ensure_leading_slash((src or "").strip())
        asset_path = website_src_to_repo_path(normalized_src)
        if not asset_path:
            raise InvalidRequest("Unable to resolve asset path for the provided logo.")

        content_doc, content_stamp = await self.read_document(coords, "content")
        logos = ensure_trusted_by_logos(content_doc)
        remaining = [
            logo for logo in logos
            if not (isinstance(logo, dict) and logo.get("src") == normalized_src)
        ]
        if len(remaining) == len(logos):
            raise NotFoundError(asset_path, "Client logo not found in website content.")
        content_doc["home"]["trustedBy"]["logos"] = remaining

        content_write = await self.write_document(
            coords,
            "content",
            content_doc,
            content_stamp,
            "CMS: Remove client logo from website content",
        )

        warnings: list[str] = []
        try:
            record = await self._gateway.read(coords, asset_path)
            if record is not None:
                await self._gateway.delete(
                    coords,
                    asset_path,
                    record.version_stamp,
                    message or f"CMS: Delete client logo {normalized_src}",
                )
        except StoreError as exc:
            logger.error("Failed to delete client logo asset %s: %s", asset_path, exc)
            warnings.append(f"Logo file {asset_path} could not be deleted: {exc.reason}")

        return ClientLogoChange(logos=remaining, content=content_write, warnings=warnings)

    async def list_directory(self, coords: RepoCoordinates, path: str) -> list[str]:
        if not is_safe_path(path):
            raise InvalidRequest("Invalid path.")
        return await self._gateway.list_directory(coords, path.strip().strip("/"))
