"""Asset routes — managed asset slots, uploads, client logos, directory listing.

Six endpoints:
- GET    /assets                 managed slots with stamp and URL
- PUT    /assets                 replace a managed slot (brand, before/after, client logo)
- POST   /assets/product-images  upload any image path, optionally deleting the old one
- POST   /assets/client-logos    upload and register a client logo
- DELETE /assets/client-logos    unregister a client logo and delete its file
- GET    /assets/directory       file names directly inside a directory

Uploads arrive as base64 in JSON bodies; a ``data:`` URL prefix is accepted.

Tier 2 service module: imports from deps (Tier 2), store, schemas (Tier 1).
"""

from fastapi import APIRouter, Depends, Query

from repostore.api.deps import get_coordinates, get_store, write_payload
from repostore.schemas import ApiResponse, CamelModel, RepoCoordinates
from repostore.store import ContentStore, UploadResult, decode_base64

router = APIRouter()


# ---------------------------------------------------------------------------
# Request bodies (API-boundary types, local to this module)
# ---------------------------------------------------------------------------


class UploadAssetRequest(CamelModel):
    """Request body for PUT /assets and POST /assets/product-images."""

    path: str
    content_base64: str
    version_stamp: str | None = None
    message: str | None = None
    delete_path: str | None = None
    delete_version_stamp: str | None = None


class AddClientLogoRequest(CamelModel):
    """Request body for POST /assets/client-logos."""

    file_name: str
    content_base64: str
    alt: str | None = None
    message: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _upload_payload(result: UploadResult) -> dict:
    return {
        **write_payload(result.write),
        "fileUrl": result.file_url,
        "created": result.created,
        "deletedPath": result.deleted_path,
    }


async def _upload(
    body: UploadAssetRequest,
    coords: RepoCoordinates,
    store: ContentStore,
    managed_only: bool,
) -> dict:
    result = await store.upload_asset(
        coords,
        body.path,
        decode_base64(body.content_base64),
        version_stamp=body.version_stamp,
        message=body.message,
        delete_path=body.delete_path,
        delete_version_stamp=body.delete_version_stamp,
        managed_only=managed_only,
    )
    return ApiResponse(ok=True, data=_upload_payload(result)).model_dump()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("")
async def list_assets(
    coords: RepoCoordinates = Depends(get_coordinates),
    store: ContentStore = Depends(get_store),
) -> dict:
    entries = await store.list_assets(coords)
    return ApiResponse(
        ok=True,
        data={
            "assets": [
                {
                    "path": entry.path,
                    "label": entry.label,
                    "category": entry.category,
                    "websiteSrc": entry.website_src,
                    "versionStamp": entry.version_stamp,
                    "url": entry.url,
                }
                for entry in entries
            ]
        },
    ).model_dump()


@router.put("")
async def update_managed_asset(
    body: UploadAssetRequest,
    coords: RepoCoordinates = Depends(get_coordinates),
    store: ContentStore = Depends(get_store),
) -> dict:
    """Replaces one managed slot. Paths outside the catalog get 400."""
    return await _upload(body, coords, store, managed_only=True)


@router.post("/product-images")
async def upload_product_image(
    body: UploadAssetRequest,
    coords: RepoCoordinates = Depends(get_coordinates),
    store: ContentStore = Depends(get_store),
) -> dict:
    """Creates or updates an image at any safe path.

    With deletePath/deleteVersionStamp the superseded file is removed
    after the new one is written.
    """
    return await _upload(body, coords, store, managed_only=False)


@router.post("/client-logos")
async def add_client_logo(
    body: AddClientLogoRequest,
    coords: RepoCoordinates = Depends(get_coordinates),
    store: ContentStore = Depends(get_store),
) -> dict:
    change = await store.add_client_logo(
        coords,
        body.file_name,
        decode_base64(body.content_base64),
        alt=body.alt,
        message=body.message,
    )
    return ApiResponse(
        ok=True,
        data={
            "logo": change.logo,
            "logos": change.logos,
            "asset": _upload_payload(change.asset) if change.asset else None,
            "content": write_payload(change.content),
        },
    ).model_dump()


@router.delete("/client-logos")
async def remove_client_logo(
    src: str = Query(...),
    coords: RepoCoordinates = Depends(get_coordinates),
    store: ContentStore = Depends(get_store),
) -> dict:
    """Removes a client logo. A file that could not be deleted is a warning."""
    change = await store.remove_client_logo(coords, src)
    return ApiResponse(
        ok=True,
        data={
            "logos": change.logos,
            "content": write_payload(change.content),
            "warnings": change.warnings,
        },
    ).model_dump()


@router.get("/directory")
async def list_directory(
    path: str = Query(...),
    coords: RepoCoordinates = Depends(get_coordinates),
    store: ContentStore = Depends(get_store),
) -> dict:
    files = await store.list_directory(coords, path)
    return ApiResponse(ok=True, data={"path": path, "files": files}).model_dump()
