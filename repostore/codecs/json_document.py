"""JSON document codec — whole-document reads and writes of JSON files.

Website content, pages and sections are each one JSON file. There is no
partial patching: the caller merges its change into the full document it
read and writes the whole thing back with the stamp it read. One logical
change is one commit.

Keys are written in the document's own insertion order, which json.loads
preserves, so an unchanged subtree serializes to the same text every time.
"""

import json
import logging
from typing import Any

from repostore.errors import DecodeError, NotFoundError
from repostore.hooks.interfaces import FileGateway
from repostore.schemas import RepoCoordinates, WriteResult

logger = logging.getLogger(__name__)


def serialize_document(document: Any) -> bytes:
    """Two-space indented JSON, UTF-8, non-ASCII kept literal."""
    return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")


class JsonDocumentCodec:
    """Reads and writes JSON documents through a FileGateway."""

    def __init__(self, gateway: FileGateway) -> None:
        self._gateway = gateway

    async def read(self, coords: RepoCoordinates, path: str) -> tuple[Any, str]:
        """Reads a document and the stamp it was read at.

        Raises:
            NotFoundError: No file at path.
            DecodeError: The file is not valid UTF-8 JSON.
        """
        record = await self._gateway.read(coords, path)
        if record is None:
            raise NotFoundError(path, "Document not found.")

        try:
            document = json.loads(record.raw_bytes.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise DecodeError(path, f"File is not UTF-8 text: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise DecodeError(
                path, f"Invalid JSON at line {exc.lineno}, column {exc.colno}: {exc.msg}"
            ) from exc

        return document, record.version_stamp

    async def write(
        self,
        coords: RepoCoordinates,
        path: str,
        document: Any,
        version_stamp: str,
        message: str | None = None,
    ) -> WriteResult:
        """Replaces the whole document, guarded by version_stamp.

        Raises:
            ConflictError: The document changed since version_stamp.
        """
        result = await self._gateway.write(
            coords,
            path,
            serialize_document(document),
            message or f"CMS: Automated content update for {path}",
            expected_version_stamp=version_stamp,
        )
        logger.info("Wrote document %s (%s)", path, result.new_version_stamp[:12])
        return result
