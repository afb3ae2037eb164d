"""Product catalog routes.

GET returns the decoded catalog together with the servable URL and stamp
of every product image, and whether the file holds hand-written content
the next save will drop. PUT validates and regenerates the catalog file.

Tier 2 service module: imports from deps (Tier 2), store, schemas (Tier 1).
"""

from fastapi import APIRouter, Depends

from repostore.api.deps import get_coordinates, get_store, write_payload
from repostore.schemas import ApiResponse, CamelModel, ProductRecord, RepoCoordinates
from repostore.store import ContentStore

router = APIRouter()


class WriteProductsRequest(CamelModel):
    """Request body for PUT /products."""

    products: list[ProductRecord]
    version_stamp: str
    message: str | None = None


@router.get("")
async def read_products(
    coords: RepoCoordinates = Depends(get_coordinates),
    store: ContentStore = Depends(get_store),
) -> dict:
    catalog, assets = await store.read_catalog(coords)
    return ApiResponse(
        ok=True,
        data={
            "products": [product.to_literal() for product in catalog.products],
            "versionStamp": catalog.version_stamp,
            "assets": {
                path: metadata.model_dump(by_alias=True)
                for path, metadata in assets.items()
            },
            "hasUnmanagedContent": catalog.has_unmanaged_content,
            "warnings": catalog.warnings,
        },
    ).model_dump()


@router.put("")
async def write_products(
    body: WriteProductsRequest,
    coords: RepoCoordinates = Depends(get_coordinates),
    store: ContentStore = Depends(get_store),
) -> dict:
    """Saves the catalog. The response always carries the regeneration warning."""
    result = await store.write_catalog(
        coords, body.products, body.version_stamp, body.message
    )
    return ApiResponse(ok=True, data=write_payload(result)).model_dump()
