"""Hook interfaces — the remote file gateway contract.

Everything above this layer treats the remote store as an opaque
key/value store with versions: bytes go in and out by path, and every
file carries a version stamp that the store assigns. Codecs never talk to
the transport directly.

Tier 1 leaf module: imports only from abc (stdlib), repostore.schemas and
repostore.errors (also Tier 1).

TEAM: To add a store, subclass FileGateway and implement every abstract
method. Then register it in tests/contracts/conftest.py so the contract
suite runs against it.

Usage:
    from repostore.hooks.interfaces import FileGateway
"""

from abc import ABC, abstractmethod

from repostore.schemas import FileRecord, RepoCoordinates, WriteResult


class FileGateway(ABC):
    """Read/write/delete files in a version-controlled remote store.

    Optimistic concurrency lives here: writes and deletes carry the stamp
    the caller last observed, and the store refuses them when that stamp is
    no longer current. There is no locking anywhere else.

    Implementations:
        InMemoryFileGateway (repostore.hooks.memory) — dict-backed stub.
        GitHubFileGateway (repostore.hooks.github) — GitHub contents API.
    """

    @abstractmethod
    async def read(self, coords: RepoCoordinates, path: str) -> FileRecord | None:
        """Fetches the current contents and stamp of a file.

        Args:
            coords: Repository and ref to read from.
            path: Repo-relative file path.

        Returns:
            The FileRecord, or None when no file exists at that path and ref
            (a directory at the path also reads as None).

        Raises:
            GatewayError: On any other non-success transport response.
        """
        ...

    @abstractmethod
    async def write(
        self,
        coords: RepoCoordinates,
        path: str,
        content: bytes,
        message: str,
        expected_version_stamp: str | None = None,
    ) -> WriteResult:
        """Creates or updates a file.

        Without expected_version_stamp the call creates a new file; with
        it, the call updates the existing file only if its current stamp
        still matches.

        Args:
            coords: Repository and ref (branch) to commit to.
            path: Repo-relative file path.
            content: New raw bytes for the whole file.
            message: Commit message.
            expected_version_stamp: The stamp the caller read, or None to
                create.

        Returns:
            WriteResult with the new stamp and commit URL.

        Raises:
            ConflictError: The stamp is stale, or a create hit an existing
                file.
            GatewayError: On any other non-success transport response.
        """
        ...

    @abstractmethod
    async def delete(
        self,
        coords: RepoCoordinates,
        path: str,
        expected_version_stamp: str,
        message: str,
    ) -> None:
        """Deletes a file guarded by its current stamp.

        Raises:
            NotFoundError: The file is already gone.
            ConflictError: The stamp is stale.
            GatewayError: On any other non-success transport response.
        """
        ...

    @abstractmethod
    async def list_directory(self, coords: RepoCoordinates, path: str) -> list[str]:
        """Lists the names of files directly inside a directory.

        Subdirectories are skipped. A missing directory, or a path that
        is a file, yields an empty list.
        """
        ...
