"""Core data models — shared types for the repository-backed content store.

Records that cross the HTTP boundary are Pydantic models serialized with
camelCase aliases (the website repo and the dashboard both speak camelCase).
Records that never leave the process (raw files, write receipts) are frozen
dataclasses.

This is a Tier 1 leaf module: it imports only from pydantic and the stdlib.

Usage:
    from repostore.schemas import FileRecord, ProductRecord, RepoCoordinates
"""

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for models whose wire form uses camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Remote store records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RepoCoordinates:
    """Which repository and ref a request addresses."""

    owner: str
    repo: str
    ref: str = "main"

    @property
    def repo_id(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class FileRecord:
    """One file as the remote store currently holds it.

    version_stamp is assigned by the store on every write and is never
    computed by callers.
    """

    path: str
    version_stamp: str
    raw_bytes: bytes

    def text(self) -> str:
        return self.raw_bytes.decode("utf-8")


@dataclass(frozen=True)
class WriteResult:
    """Receipt for a successful write.

    Attributes:
        new_version_stamp: The stamp to send with the next write.
        commit_url: Link to the commit that recorded the change.
        warnings: Non-fatal notices the editor should see.
    """

    new_version_stamp: str
    commit_url: str
    warnings: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


class ProductRecord(CamelModel):
    """One entry of the product catalog array.

    Unknown keys are kept so a save never drops fields this service does
    not know about. id uniqueness is checked by the caller before a write.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    id: str
    name: str
    category: str = ""
    description: str = ""
    img: str = ""
    thumbnail: str = ""
    prices: dict[str, int | float] = Field(default_factory=dict)
    product_bundle_ids: dict[str, str] = Field(default_factory=dict)
    features: list[str] = Field(default_factory=list)
    availability: Literal["in_stock", "out_of_stock", "coming_soon"] | None = None
    type: Literal["injection", "oral_drops", "oral_pills"] | None = None
    popular: bool | None = None
    quiz: str | None = None
    order: int | float | None = None

    def to_literal(self) -> dict[str, Any]:
        """Plain dict for serialization: wire names, only fields actually set."""
        return self.model_dump(by_alias=True, exclude_unset=True)


# ---------------------------------------------------------------------------
# Branding
# ---------------------------------------------------------------------------


class BrandingColorSet(CamelModel):
    """The four brand colours managed inside the tailwind config."""

    background_color: str
    body_color: str
    accent_color1: str
    accent_color2: str


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------


class AssetMetadata(CamelModel):
    """Resolver output for one path. Both fields are None when unresolved."""

    url: str | None = None
    version_stamp: str | None = None


class AssetReference(CamelModel):
    """Read-only enrichment of a referenced path. Never persisted."""

    repo_path: str
    website_path: str
    version_stamp: str | None = None
    url: str | None = None


class ManagedAsset(CamelModel):
    """An asset slot the dashboard lets editors replace."""

    path: str
    label: str
    category: Literal["brand", "before-after", "client-logo"]
    website_src: str | None = None


# ---------------------------------------------------------------------------
# API envelope
# ---------------------------------------------------------------------------


class ApiError(BaseModel):
    """Error detail inside ApiResponse.error.

    code is an uppercase string like "CONFLICT", "PARSE_ERROR", "NOT_FOUND".
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str


class ApiResponse(BaseModel):
    """Universal response envelope — every API endpoint returns this shape."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    data: Any | None = None
    error: ApiError | None = None
