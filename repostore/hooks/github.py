"""GitHub file gateway — FileGateway over the GitHub REST contents API.

The gateway receives an already-authenticated httpx.AsyncClient. How the
token is obtained (GitHub App installation exchange, PAT, etc.) is not
this module's concern; ``create_github_client`` only wraps a token that
the environment supplies.

Status mapping:
    404                      → read returns None / NotFoundError
    409                      → ConflictError (stale sha)
    422 mentioning "sha"     → ConflictError (create over existing file)
    any other non-2xx        → GatewayError(status)

Timeouts and cancellation come from the client; nothing is retried here.
A write either lands as one commit or raises.

Tier 2 service — imports from interfaces.py (Tier 1) + httpx.
"""

import base64
import logging
from typing import Any
from urllib.parse import quote

import httpx

from repostore.errors import ConflictError, GatewayError, NotFoundError
from repostore.hooks.interfaces import FileGateway
from repostore.schemas import FileRecord, RepoCoordinates, WriteResult

logger = logging.getLogger(__name__)

_API_VERSION = "2022-11-28"
_JSON_MEDIA_TYPE = "application/vnd.github+json"
_RAW_MEDIA_TYPE = "application/vnd.github.raw"


def create_github_client(
    token: str,
    api_url: str = "https://api.github.com",
    timeout: float = 30.0,
) -> httpx.AsyncClient:
    """Builds an AsyncClient that authenticates every call with token."""
    headers = {
        "Accept": _JSON_MEDIA_TYPE,
        "X-GitHub-Api-Version": _API_VERSION,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return httpx.AsyncClient(base_url=api_url, headers=headers, timeout=timeout)


def _contents_url(coords: RepoCoordinates, path: str) -> str:
    encoded = "/".join(quote(part, safe="") for part in path.split("/") if part)
    return f"/repos/{coords.owner}/{coords.repo}/contents/{encoded}"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


def _raise_for_status(response: httpx.Response, path: str) -> None:
    """Translates a non-2xx contents API response into a StoreError."""
    if response.is_success:
        return
    status = response.status_code
    message = _error_message(response)
    if status == 404:
        raise NotFoundError(path, message)
    if status == 409:
        raise ConflictError(path, f"File was modified by someone else ({message}).")
    if status == 422 and "sha" in message.lower():
        raise ConflictError(path, f"Version stamp rejected ({message}).")
    raise GatewayError(path, message, status)


class GitHubFileGateway(FileGateway):
    """FileGateway backed by GitHub's repository contents endpoints.

    Args:
        client: Authenticated client whose base_url is the API root.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def aclose(self) -> None:
        """Closes the underlying HTTP client."""
        await self._client.aclose()

    async def _get(self, coords: RepoCoordinates, path: str) -> httpx.Response:
        return await self._client.get(
            _contents_url(coords, path), params={"ref": coords.ref}
        )

    async def _read_raw(self, coords: RepoCoordinates, path: str) -> bytes:
        """Fetches file bytes via the raw media type (files over 1 MB)."""
        response = await self._client.get(
            _contents_url(coords, path),
            params={"ref": coords.ref},
            headers={"Accept": _RAW_MEDIA_TYPE},
        )
        _raise_for_status(response, path)
        return response.content

    async def read(self, coords: RepoCoordinates, path: str) -> FileRecord | None:
        response = await self._get(coords, path)
        if response.status_code == 404:
            return None
        _raise_for_status(response, path)

        data: Any = response.json()
        if not isinstance(data, dict) or data.get("type") != "file":
            return None

        encoded = data.get("content") or ""
        if data.get("encoding") == "base64" and encoded:
            raw = base64.b64decode(encoded)
        elif data.get("size", 0):
            raw = await self._read_raw(coords, path)
        else:
            raw = b""

        return FileRecord(path=path, version_stamp=data["sha"], raw_bytes=raw)

    async def write(
        self,
        coords: RepoCoordinates,
        path: str,
        content: bytes,
        message: str,
        expected_version_stamp: str | None = None,
    ) -> WriteResult:
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": coords.ref,
        }
        if expected_version_stamp:
            body["sha"] = expected_version_stamp

        response = await self._client.put(_contents_url(coords, path), json=body)
        if response.status_code == 404 and expected_version_stamp:
            # The file vanished between read and write.
            raise ConflictError(path, "File no longer exists.")
        _raise_for_status(response, path)

        data = response.json()
        new_stamp = (data.get("content") or {}).get("sha", "")
        commit_url = (data.get("commit") or {}).get("html_url", "")
        logger.info(
            "Committed %s to %s@%s (%s)",
            path, coords.repo_id, coords.ref, new_stamp[:12],
        )
        return WriteResult(new_version_stamp=new_stamp, commit_url=commit_url)

    async def delete(
        self,
        coords: RepoCoordinates,
        path: str,
        expected_version_stamp: str,
        message: str,
    ) -> None:
        response = await self._client.request(
            "DELETE",
            _contents_url(coords, path),
            json={
                "message": message,
                "sha": expected_version_stamp,
                "branch": coords.ref,
            },
        )
        _raise_for_status(response, path)
        logger.info("Deleted %s from %s@%s", path, coords.repo_id, coords.ref)

    async def list_directory(self, coords: RepoCoordinates, path: str) -> list[str]:
        response = await self._get(coords, path)
        if response.status_code == 404:
            return []
        _raise_for_status(response, path)

        data = response.json()
        if not isinstance(data, list):
            return []
        return [item["name"] for item in data if item.get("type") == "file"]
