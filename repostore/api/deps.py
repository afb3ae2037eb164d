"""Shared FastAPI dependencies — settings, gateway, store and repo coordinates.

The file gateway is a module-level singleton set by create_app() from
settings.gateway_backend. Route handlers reach it only through Depends(),
so tests swap it with app.dependency_overrides[get_gateway] and production
swaps backends with GATEWAY_BACKEND, without touching any handler.

Repo coordinates are request-scoped: every request names its owner/repo
(and optionally branch) in the query string, falling back to the
CONTENT_REPO_* defaults.

Tier 2 service module: imports from hooks/* (Tier 2), hooks/interfaces
(Tier 1), store (Tier 3 logic, no FastAPI), config, schemas (Tier 1).

Usage:
    from repostore.api.deps import get_coordinates, get_store

    @router.get("/something")
    async def do_thing(
        coords: RepoCoordinates = Depends(get_coordinates),
        store: ContentStore = Depends(get_store),
    ): ...
"""

import logging
from typing import Any

from fastapi import Depends, HTTPException, Query

from repostore.config import Settings, get_settings
from repostore.hooks.interfaces import FileGateway
from repostore.schemas import ApiError, ApiResponse, RepoCoordinates, WriteResult
from repostore.store import ContentStore

logger = logging.getLogger("repostore")

# ---------------------------------------------------------------------------
# Service singleton — the swap point
# ---------------------------------------------------------------------------

# Set by create_app() (see main._init_gateway); closed by the app lifespan.
_gateway: FileGateway | None = None


# ---------------------------------------------------------------------------
# Dependency providers
# ---------------------------------------------------------------------------


def get_app_settings() -> Settings:
    """Returns the settings singleton."""
    return get_settings()


def get_gateway() -> FileGateway:
    """Returns the file gateway singleton.

    Raises HTTPException(503) if the gateway hasn't been initialized yet
    (startup not complete).
    """
    if _gateway is None:
        raise HTTPException(
            status_code=503,
            detail=ApiResponse(
                ok=False,
                error=ApiError(
                    code="SERVICE_UNAVAILABLE",
                    message="File gateway is not yet available. Server is starting up.",
                ),
            ).model_dump(),
        )
    return _gateway


def get_store(
    gateway: FileGateway = Depends(get_gateway),
    settings: Settings = Depends(get_app_settings),
) -> ContentStore:
    """Builds a ContentStore over the current gateway.

    The store is stateless, so one per request costs nothing.
    """
    return ContentStore(gateway, settings)


def bad_request(message: str) -> HTTPException:
    """A 400 HTTPException carrying the ApiResponse envelope."""
    return HTTPException(
        status_code=400,
        detail=ApiResponse(
            ok=False,
            error=ApiError(code="BAD_REQUEST", message=message),
        ).model_dump(),
    )


def _first(*values: str | None) -> str:
    for value in values:
        if value and value.strip():
            return value.strip()
    return ""


def get_coordinates(
    owner: str | None = Query(default=None),
    repo: str | None = Query(default=None),
    branch: str | None = Query(default=None),
    repo_owner_dashed: str | None = Query(default=None, alias="repo-owner"),
    repo_owner_camel: str | None = Query(default=None, alias="repoOwner"),
    repo_name_dashed: str | None = Query(default=None, alias="repo-name"),
    repo_name_camel: str | None = Query(default=None, alias="repoName"),
    settings: Settings = Depends(get_app_settings),
) -> RepoCoordinates:
    """Resolves which repo and branch a request addresses.

    Raises:
        HTTPException: 400 when neither the query nor the defaults name
            an owner and a repo.
    """
    resolved_owner = _first(owner, repo_owner_dashed, repo_owner_camel, settings.default_owner)
    resolved_repo = _first(repo, repo_name_dashed, repo_name_camel, settings.default_repo)
    if not resolved_owner or not resolved_repo:
        raise bad_request("Missing owner or repo.")
    return RepoCoordinates(
        owner=resolved_owner,
        repo=resolved_repo,
        ref=_first(branch, settings.default_branch) or "main",
    )


def write_payload(result: WriteResult) -> dict[str, Any]:
    """Wire form of a write receipt."""
    return {
        "newVersionStamp": result.new_version_stamp,
        "commitUrl": result.commit_url,
        "warnings": list(result.warnings),
    }
