"""Branding routes — brand colours in the tailwind config plus logo references.

Tier 2 service module: imports from deps (Tier 2), store, schemas (Tier 1).
"""

from fastapi import APIRouter, Depends

from repostore.api.deps import get_coordinates, get_store, write_payload
from repostore.schemas import ApiResponse, BrandingColorSet, CamelModel, RepoCoordinates
from repostore.store import ContentStore

router = APIRouter()


class WriteBrandingRequest(CamelModel):
    """Request body for PUT /branding."""

    colors: BrandingColorSet
    version_stamp: str
    message: str | None = None


@router.get("")
async def read_branding(
    coords: RepoCoordinates = Depends(get_coordinates),
    store: ContentStore = Depends(get_store),
) -> dict:
    view = await store.read_branding(coords)
    return ApiResponse(
        ok=True,
        data={
            "colors": view.config.colors.model_dump(by_alias=True),
            "versionStamp": view.config.version_stamp,
            "warnings": view.config.warnings,
            "logos": {
                "primary": view.primary_logo.model_dump(by_alias=True),
                "secondary": view.secondary_logo.model_dump(by_alias=True),
            },
        },
    ).model_dump()


@router.put("")
async def write_branding(
    body: WriteBrandingRequest,
    coords: RepoCoordinates = Depends(get_coordinates),
    store: ContentStore = Depends(get_store),
) -> dict:
    """Normalizes and saves the four colours.

    Fields the config has no token for keep their old value and are
    listed in warnings.
    """
    result, colors = await store.write_branding(
        coords, body.colors, body.version_stamp, body.message
    )
    return ApiResponse(
        ok=True,
        data={**write_payload(result), "colors": colors.model_dump(by_alias=True)},
    ).model_dump()
