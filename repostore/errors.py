"""Store error taxonomy — every failure a caller is expected to handle.

Tier 1 leaf module: stdlib only.

    StoreError
    ├── NotFoundError   path absent (often expected, recoverable)
    ├── ConflictError   version stamp no longer current (refresh and retry)
    ├── ParseError      products array missing or not a plain literal
    ├── DecodeError     JSON document is malformed
    └── GatewayError    any other non-2xx from the remote store

Usage:
    from repostore.errors import ConflictError, NotFoundError
"""


class StoreError(Exception):
    """Base for all content-store failures.

    Attributes:
        path: Repo-relative path of the file involved (may be empty).
        reason: Human-readable description, safe to show to an editor.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}" if path else reason)


class NotFoundError(StoreError):
    """The path does not exist at the requested ref."""


class ConflictError(StoreError):
    """The file changed since the caller read it.

    Raised instead of overwriting when the expected version stamp is stale,
    or when a create targets a path that already exists.
    """


class ParseError(StoreError):
    """The products source file could not be decoded.

    Attributes:
        offset: Character offset into the source where parsing stopped,
            or None when the array binding itself was not found.
    """

    def __init__(self, path: str, reason: str, offset: int | None = None) -> None:
        self.offset = offset
        super().__init__(path, reason)


class DecodeError(StoreError):
    """A JSON document is not valid JSON."""


class GatewayError(StoreError):
    """The remote store answered with an unexpected status.

    Attributes:
        status: The transport status code (e.g. 500, 403).
    """

    def __init__(self, path: str, reason: str, status: int) -> None:
        self.status = status
        super().__init__(path, reason)
