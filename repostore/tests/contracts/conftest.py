"""Fixtures for contract tests — one parameterized fixture per hook interface.

Each fixture yields a fresh implementation instance: the in-memory stub
("stub") and the GitHub gateway driven by an in-process fake of the
contents API ("github").

TEAM: To test another implementation against the contracts:
    1. Add your param string (e.g., "gitlab") to the params list.
    2. Add an elif branch that yields your implementation instance.
    3. Run: python -m pytest repostore/tests/contracts/ -v
    All tests should pass. If any fail, your implementation doesn't satisfy
    the contract — read the failing test's docstring for what's expected.

Uses @pytest_asyncio.fixture (not @pytest.fixture) for async fixture support
in strict mode.
"""

import httpx
import pytest_asyncio

from repostore.hooks.github import GitHubFileGateway
from repostore.hooks.memory import InMemoryFileGateway
from repostore.tests.fakes import FakeGitHubContents


@pytest_asyncio.fixture(params=["stub", "github"])
async def file_gateway(request):
    """Yields a FileGateway implementation."""
    if request.param == "stub":
        yield InMemoryFileGateway()
    elif request.param == "github":
        fake = FakeGitHubContents()
        client = httpx.AsyncClient(
            base_url="https://api.github.test",
            transport=httpx.MockTransport(fake.handler),
        )
        gateway = GitHubFileGateway(client)
        yield gateway
        await gateway.aclose()
