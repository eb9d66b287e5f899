"""Shared pytest fixtures for the Paillier test suite."""

import random

import pytest
from httpx import ASGITransport, AsyncClient

from paillier_he.crypto.keys import generate_key, key_from_primes
from paillier_he.keystore import KeyStore
from paillier_he.main import app, get_keystore


class ConstantSource:
    """Degenerate source: every draw returns the smallest value allowed."""

    def getrandbits(self, k):
        return 0

    def randrange(self, start, stop):
        return start


class FailingSource:
    def getrandbits(self, k):
        raise OSError("entropy pool unavailable")

    def randrange(self, start, stop):
        raise OSError("entropy pool unavailable")


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def rng():
    """Deterministic source so failures are reproducible."""
    return random.Random(20241019)


@pytest.fixture(scope="session")
def small_key():
    """n = 77: small enough to check every plaintext."""
    return key_from_primes(7, 11)


@pytest.fixture(scope="session")
def key_512():
    return generate_key(random.Random(512), 512)


@pytest.fixture()
def keystore():
    """Isolated key store wired into the app for the duration of a test."""
    store = KeyStore()
    app.dependency_overrides[get_keystore] = lambda: store
    yield store
    app.dependency_overrides.clear()


@pytest.fixture()
async def client(keystore):
    """Provide an async HTTP test client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture()
def constant_source():
    return ConstantSource()


@pytest.fixture()
def failing_source():
    return FailingSource()
