"""In-memory file gateway — development stub for FileGateway.

Python dict-backed store that behaves like a git branch: each write
replaces the whole file and produces a new content-derived stamp,
computed the way git computes blob ids. Data lives only in memory and is
lost on restart.

Stamp checks are strict, so the stub is useful for exercising conflict
handling: a stale stamp, a create over an existing file, or an update of
a missing file all raise ConflictError.

Tier 2 service module: imports from repostore.hooks.interfaces (Tier 1).

Usage:
    from repostore.hooks.memory import InMemoryFileGateway

    gateway = InMemoryFileGateway()
    stamp = gateway.seed(coords, "data/pages.json", b"{}")
    record = await gateway.read(coords, "data/pages.json")
"""

import hashlib
import itertools

from repostore.errors import ConflictError, NotFoundError
from repostore.hooks.interfaces import FileGateway
from repostore.schemas import FileRecord, RepoCoordinates, WriteResult


def blob_stamp(content: bytes) -> str:
    """Returns the git blob id for content (sha1 of header + bytes)."""
    header = f"blob {len(content)}\0".encode()
    return hashlib.sha1(header + content).hexdigest()


class InMemoryFileGateway(FileGateway):
    """STUB — dict-backed remote store, loses data on restart.

    Files are keyed by (owner, repo, ref, path). Every successful write
    records a fake commit whose URL is returned in the WriteResult.
    """

    def __init__(self) -> None:
        """Initialises an empty store."""
        self._files: dict[tuple[str, str, str, str], FileRecord] = {}
        self._commits = itertools.count(1)

    @staticmethod
    def _key(coords: RepoCoordinates, path: str) -> tuple[str, str, str, str]:
        return (coords.owner, coords.repo, coords.ref, path.strip("/"))

    def _commit_url(self, coords: RepoCoordinates) -> str:
        return f"memory://{coords.owner}/{coords.repo}/commit/{next(self._commits)}"

    def seed(self, coords: RepoCoordinates, path: str, content: bytes) -> str:
        """Stores a file without any stamp check and returns its stamp.

        Not part of the FileGateway ABC — a test convenience.
        """
        stamp = blob_stamp(content)
        self._files[self._key(coords, path)] = FileRecord(
            path=path.strip("/"), version_stamp=stamp, raw_bytes=content
        )
        return stamp

    async def read(self, coords: RepoCoordinates, path: str) -> FileRecord | None:
        return self._files.get(self._key(coords, path))

    async def write(
        self,
        coords: RepoCoordinates,
        path: str,
        content: bytes,
        message: str,
        expected_version_stamp: str | None = None,
    ) -> WriteResult:
        key = self._key(coords, path)
        current = self._files.get(key)

        if expected_version_stamp is None:
            if current is not None:
                raise ConflictError(path, "File already exists; a version stamp is required to update it.")
        elif current is None:
            raise ConflictError(path, "File no longer exists.")
        elif current.version_stamp != expected_version_stamp:
            raise ConflictError(path, "File was modified by someone else.")

        stamp = self.seed(coords, path, content)
        return WriteResult(new_version_stamp=stamp, commit_url=self._commit_url(coords))

    async def delete(
        self,
        coords: RepoCoordinates,
        path: str,
        expected_version_stamp: str,
        message: str,
    ) -> None:
        key = self._key(coords, path)
        current = self._files.get(key)
        if current is None:
            raise NotFoundError(path, "File does not exist.")
        if current.version_stamp != expected_version_stamp:
            raise ConflictError(path, "File was modified by someone else.")
        del self._files[key]

    async def list_directory(self, coords: RepoCoordinates, path: str) -> list[str]:
        prefix = path.strip("/")
        prefix = f"{prefix}/" if prefix else ""
        names = []
        for owner, repo, ref, file_path in self._files:
            if (owner, repo, ref) != (coords.owner, coords.repo, coords.ref):
                continue
            if not file_path.startswith(prefix):
                continue
            remainder = file_path[len(prefix):]
            if remainder and "/" not in remainder:
                names.append(remainder)
        return sorted(names)
