"""JSON document routes — website content, pages and sections.

Each document is read whole and written whole. A write carries the stamp
the editor read; a stale stamp comes back as 409 CONFLICT.

Tier 2 service module: imports from deps (Tier 2), store, schemas (Tier 1).
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import Field

from repostore.api.deps import get_coordinates, get_store, write_payload
from repostore.schemas import ApiResponse, CamelModel, RepoCoordinates
from repostore.store import ContentStore, DocumentKind

router = APIRouter()


class WriteDocumentRequest(CamelModel):
    """Request body for PUT /{kind}."""

    document: Any = Field(...)
    version_stamp: str
    message: str | None = None


@router.get("/{kind}")
async def read_document(
    kind: DocumentKind,
    coords: RepoCoordinates = Depends(get_coordinates),
    store: ContentStore = Depends(get_store),
) -> dict:
    """Returns the document and the stamp to send back on save."""
    document, version_stamp = await store.read_document(coords, kind)
    return ApiResponse(
        ok=True,
        data={
            "path": store.document_path(kind),
            "document": document,
            "versionStamp": version_stamp,
        },
    ).model_dump()


@router.put("/{kind}")
async def write_document(
    kind: DocumentKind,
    body: WriteDocumentRequest,
    coords: RepoCoordinates = Depends(get_coordinates),
    store: ContentStore = Depends(get_store),
) -> dict:
    """Replaces the whole document, guarded by the stamp in the body."""
    result = await store.write_document(
        coords, kind, body.document, body.version_stamp, body.message
    )
    return ApiResponse(ok=True, data=write_payload(result)).model_dump()
