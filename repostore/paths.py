"""Path normalizer — repo-relative vs website-relative paths, servable URLs.

Two dialects address the same asset:
- website-relative: how the generated site references it (``/assets/x.png``)
- repo-relative: where it lives in the repository (``public/assets/x.png``)

Pure functions, no I/O. Tier 1 leaf: stdlib only.

Usage:
    from repostore.paths import to_repo_path, to_website_path

    to_repo_path("/assets/logo.svg")              # "public/assets/logo.svg"
    to_website_path("public/assets/logo.svg")     # "/assets/logo.svg"
"""

from __future__ import annotations

import time
from urllib.parse import quote

PUBLIC_ROOT = "public"

# Characters of the version stamp used as the cache-busting token.
_CACHE_TOKEN_LENGTH = 12


def ensure_leading_slash(path: str) -> str:
    """Returns path with exactly one leading slash ("" stays "")."""
    if not path:
        return ""
    return "/" + path.lstrip("/")


def to_repo_path(value: str) -> str:
    """Normalizes a path input to its repo-relative form.

    Inputs without a leading slash are already repo-relative and are
    returned unchanged (after trimming). A leading slash marks a
    website-relative path: it is stripped and the public root is
    prepended unless the remainder already starts with it.

    Idempotent: ``to_repo_path(to_repo_path(x)) == to_repo_path(x)``.
    """
    trimmed = (value or "").strip()
    if not trimmed:
        return ""
    if not trimmed.startswith("/"):
        return trimmed

    without_leading = trimmed.lstrip("/")
    if without_leading == PUBLIC_ROOT or without_leading.startswith(PUBLIC_ROOT + "/"):
        return without_leading
    return f"{PUBLIC_ROOT}/{without_leading}"


def website_src_to_repo_path(src: str) -> str:
    """Maps a website ``src`` attribute to a repo path.

    Unlike ``to_repo_path`` a missing leading slash does not mean
    "already repo-relative": ``assets/x.png`` in website content is still
    served from the public root.
    """
    trimmed = (src or "").strip()
    if not trimmed:
        return ""
    if trimmed.startswith(PUBLIC_ROOT + "/"):
        return trimmed
    return to_repo_path(ensure_leading_slash(trimmed))


def to_website_path(repo_path: str) -> str:
    """Strips the public root (if present) and ensures a single leading slash."""
    if not repo_path:
        return ""
    stripped = repo_path.lstrip("/")
    if stripped.startswith(PUBLIC_ROOT + "/"):
        stripped = stripped[len(PUBLIC_ROOT):]
    return ensure_leading_slash(stripped)


def encode_path(repo_path: str) -> str:
    """Percent-encodes each segment independently, dropping empty segments."""
    return "/".join(
        quote(segment, safe="") for segment in repo_path.split("/") if segment
    )


def cache_token(version_stamp: str | None) -> str:
    """Short stable slice of the stamp, or a millisecond timestamp when absent."""
    if version_stamp:
        return version_stamp[:_CACHE_TOKEN_LENGTH]
    return str(int(time.time() * 1000))


def build_servable_url(
    path: str,
    version_stamp: str | None,
    owner: str,
    repo: str,
    ref: str,
    raw_content_root: str = "https://raw.githubusercontent.com",
) -> str:
    """Builds the raw-content URL for a file, with a cache-busting query.

    Shape: ``<root>/<owner>/<repo>/<ref>/<encoded-path>?v=<token>``.
    Deterministic for a given (path, version_stamp) pair.

    Args:
        path: Repo- or website-relative path; normalized first.
        version_stamp: The file's current stamp, if known.
        owner: Repository owner.
        repo: Repository name.
        ref: Branch or other git ref.
        raw_content_root: Base URL of the raw-content endpoint.

    Returns:
        The URL, or "" when the path is empty.
    """
    repo_path = to_repo_path(path)
    if not repo_path:
        return ""
    encoded = encode_path(repo_path)
    root = raw_content_root.rstrip("/")
    return f"{root}/{owner}/{repo}/{ref}/{encoded}?v={cache_token(version_stamp)}"


def is_safe_path(path: str) -> bool:
    """Rejects empty paths and any path containing a parent-directory hop."""
    return bool(path and path.strip()) and ".." not in path
