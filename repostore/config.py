"""App configuration — environment variable loading with typed defaults.

Loads settings from .env file (via python-dotenv) and os.environ.
Real environment variables take precedence over .env file values.

The file layout of a target website repo (where the content JSON, the
products source file and the tailwind config live) is configured here.
Which repo to talk to is NOT: owner/repo/branch arrive with every request
and only fall back to CONTENT_REPO_* when the caller omits them.

Usage:
    from repostore.config import get_settings
    settings = get_settings()
    print(settings.products_file_path)  # "data/intake-form/products.ts"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from repostore.paths import to_repo_path

# Only load .env from the project root — don't traverse parent directories.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DOTENV_PATH = PROJECT_ROOT / ".env"

GATEWAY_BACKENDS = ("github", "memory")

_DEFAULT_BRAND_LOGO_PATH = "public/assets/images/brand/logo.svg"
_DEFAULT_BRAND_ALT_LOGO_PATH = "public/assets/images/brand/logo-alt.svg"


@dataclass(frozen=True)
class Settings:
    """Typed configuration for the repostore service.

    All fields have sensible defaults for local development.
    """

    # App
    app_env: str
    app_port: int
    log_level: str
    cors_origins: list[str]

    # Remote store
    gateway_backend: str
    github_token: str
    github_api_url: str
    raw_content_root: str

    # Default repo coordinates (request values win)
    default_owner: str
    default_repo: str
    default_branch: str

    # Target repo file layout
    content_file_path: str
    pages_file_path: str
    sections_file_path: str
    products_file_path: str
    tailwind_config_path: str
    brand_logo_path: str
    brand_alt_logo_path: str


def _resolve_backend(value: str) -> str:
    """Validates the GATEWAY_BACKEND value.

    Raises:
        ValueError: If the value is not a known backend.
    """
    backend = value.strip().lower()
    if backend in GATEWAY_BACKENDS:
        return backend
    valid = ", ".join(GATEWAY_BACKENDS)
    raise ValueError(
        f"Invalid value for GATEWAY_BACKEND: {value!r}. "
        f"Valid options: {valid}"
    )


def _split_csv(value: str) -> list[str]:
    """Splits a comma-separated string into a list of stripped, non-empty values."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _repo_path_env(env_var: str, default: str) -> str:
    """Reads a path env var and normalizes it to repo-relative form."""
    value = os.environ.get(env_var, "").strip()
    if not value:
        return default
    return to_repo_path(value)


def _load_settings() -> Settings:
    """Loads configuration from .env file and environment variables.

    Returns:
        A fully resolved Settings instance.
    """
    load_dotenv(_DOTENV_PATH)

    return Settings(
        # App
        app_env=os.environ.get("APP_ENV", "development"),
        app_port=int(os.environ.get("APP_PORT", "8000")),
        log_level=os.environ.get("LOG_LEVEL", "info"),
        cors_origins=_split_csv(
            os.environ.get("CORS_ORIGINS", "http://localhost:3000")
        ),
        # Remote store
        gateway_backend=_resolve_backend(
            os.environ.get("GATEWAY_BACKEND", "github")
        ),
        github_token=os.environ.get("GITHUB_TOKEN", ""),
        github_api_url=os.environ.get(
            "GITHUB_API_URL", "https://api.github.com"
        ).rstrip("/"),
        raw_content_root=os.environ.get(
            "RAW_CONTENT_ROOT", "https://raw.githubusercontent.com"
        ).rstrip("/"),
        # Default repo coordinates
        default_owner=os.environ.get("CONTENT_REPO_OWNER", ""),
        default_repo=os.environ.get("CONTENT_REPO_NAME", ""),
        default_branch=os.environ.get("CONTENT_REPO_BRANCH", "main"),
        # File layout
        content_file_path=os.environ.get("CONTENT_FILE_PATH", "data/websiteText.json"),
        pages_file_path=os.environ.get("PAGES_FILE_PATH", "data/pages.json"),
        sections_file_path=os.environ.get("SECTIONS_FILE_PATH", "data/sections.json"),
        products_file_path=os.environ.get(
            "CONTENT_PRODUCTS_FILE_PATH", "data/intake-form/products.ts"
        ),
        tailwind_config_path=os.environ.get("CONTENT_TAILWIND_PATH", "tailwind.config.js"),
        brand_logo_path=_repo_path_env(
            "CONTENT_BRAND_LOGO_PATH", _DEFAULT_BRAND_LOGO_PATH
        ),
        brand_alt_logo_path=_repo_path_env(
            "CONTENT_BRAND_ALT_LOGO_PATH", _DEFAULT_BRAND_ALT_LOGO_PATH
        ),
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Returns the cached Settings instance. Loads .env on first call."""
    global _settings
    if _settings is None:
        _settings = _load_settings()
    return _settings
