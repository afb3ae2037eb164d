"""Shared test fixtures — gateways, repo coordinates and source-file factories.

Factory-pattern fixtures that return callables accepting **overrides.

Fixtures:
    coords: RepoCoordinates for the test repo
    memory_gateway: Empty InMemoryFileGateway
    fake_github: In-process fake of the GitHub contents API
    github_gateway: GitHubFileGateway wired to fake_github via MockTransport
    make_product: Factory for ProductRecord instances
    products_source: Factory for products.ts source text
    tailwind_source: A tailwind config with all four colour tokens
"""

from typing import Any

import httpx
import pytest
import pytest_asyncio

from repostore.codecs.products import PRODUCTS_FILE_FOOTER, PRODUCTS_FILE_HEADER
from repostore.hooks.github import GitHubFileGateway
from repostore.hooks.memory import InMemoryFileGateway
from repostore.schemas import ProductRecord, RepoCoordinates
from repostore.tests.fakes import FakeGitHubContents


# ---------------------------------------------------------------------------
# Gateway fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def coords() -> RepoCoordinates:
    return RepoCoordinates(owner="acme", repo="website", ref="main")


@pytest.fixture
def memory_gateway() -> InMemoryFileGateway:
    return InMemoryFileGateway()


@pytest.fixture
def fake_github() -> FakeGitHubContents:
    return FakeGitHubContents()


@pytest_asyncio.fixture
async def github_gateway(fake_github):
    """GitHubFileGateway talking to fake_github in-process."""
    client = httpx.AsyncClient(
        base_url="https://api.github.test",
        transport=httpx.MockTransport(fake_github.handler),
    )
    gateway = GitHubFileGateway(client)
    yield gateway
    await gateway.aclose()


# ---------------------------------------------------------------------------
# Source factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_product():
    """Returns a factory for ProductRecord instances with unique-ish defaults."""

    def _make(**overrides) -> ProductRecord:
        defaults: dict[str, Any] = {
            "id": "semaglutide",
            "name": "Semaglutide",
            "category": "weight-loss",
            "img": "/assets/images/products/semaglutide.png",
            "prices": {"monthly": 199},
            "availability": "in_stock",
        }
        defaults.update(overrides)
        return ProductRecord.model_validate(defaults)

    return _make


@pytest.fixture
def products_source():
    """Returns a factory building a products.ts file around an array body."""

    def _make(array_body: str, header: str = PRODUCTS_FILE_HEADER, footer: str = PRODUCTS_FILE_FOOTER) -> str:
        return f"{header}\nexport const products: Product[] = {array_body};\n\n{footer}"

    return _make


TAILWIND_CONFIG = """\
/** @type {import('tailwindcss').Config} */
module.exports = {
  content: ['./app/**/*.{ts,tsx}'],
  theme: {
    extend: {
      colors: {
        backgroundColor: '#FAFAFA',
        bodyColor: "#111111",
        accentColor1: '#FF6B35',
        accentColor2: 'var(--color-accentColor2, #004E89)',
      },
    },
  },
  plugins: [],
};
"""


@pytest.fixture
def tailwind_source() -> str:
    return TAILWIND_CONFIG
