"""
Pytest configuration and fixtures for contractseal tests.
"""
import os
from datetime import UTC, datetime

# Settings are read at import time by the app module and the rate limiter.
os.environ.setdefault("AUTH_PROVIDER", "dev")
os.environ.setdefault("DOCUMENT_STORE", "memory")
os.environ.setdefault("RATE_LIMIT_WRITE", "1000/minute")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from contractseal.config import Settings
from contractseal.domain.contracts.codec import PayloadCodec
from contractseal.domain.contracts.models import ConfidentialPayload, PartyDetails
from contractseal.domain.contracts.services import ContractService
from contractseal.infrastructure.auth.dev import DevIdentityProvider
from contractseal.infrastructure.store.memory import InMemoryDocumentStore
from contractseal.shared.context import Principal

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Settable clock so expiry can be tested without sleeping."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def test_settings() -> Settings:
    """Settings for tests: dev auth, in-memory store."""
    return Settings(
        _env_file=None,
        app_env="development",
        auth_provider="dev",
        document_store="memory",
        share_base_url="https://contracts.example.com",
    )


@pytest.fixture
def sender() -> Principal:
    return Principal(id="uid1", email="a@x.com", email_verified=True)


@pytest.fixture
def receiver() -> Principal:
    return Principal(id="uid2", email="b@x.com", email_verified=True)


@pytest.fixture
def stranger() -> Principal:
    return Principal(id="uid3", email="c@x.com", email_verified=True)


@pytest.fixture
def payload() -> ConfidentialPayload:
    return ConfidentialPayload(
        content="Hi",
        sender=PartyDetails(email="a@x.com"),
        receiver=PartyDetails(email="b@x.com"),
    )


@pytest.fixture
def full_payload() -> ConfidentialPayload:
    """Payload with every party field filled, including non-ASCII text."""
    return ConfidentialPayload(
        content="<h1>Web Development Contract</h1><p>Hourly rate: £45 – payable monthly.</p>",
        sender=PartyDetails(
            full_name="Ada Sender",
            designation="Freelance Web and App Developer",
            company_name="Sender Ltd",
            phone="+44 20 7946 0000",
            email="a@x.com",
            address="1 Main Street, London",
        ),
        receiver=PartyDetails(
            full_name="Bruno Empfänger",
            designation="CTO",
            company_name="Receiver GmbH",
            phone="+49 30 12345678",
            email="b@x.com",
            address="Musterstraße 123, Berlin",
        ),
    )


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def codec() -> PayloadCodec:
    return PayloadCodec()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(store: InMemoryDocumentStore, codec: PayloadCodec, clock: FakeClock) -> ContractService:
    return ContractService(
        store,
        codec,
        collection="contracts",
        share_base_url="https://contracts.example.com/",
        clock=clock,
    )


@pytest.fixture
def app(store: InMemoryDocumentStore) -> FastAPI:
    """Test FastAPI application sharing the in-memory store fixture."""
    from contractseal.main import create_app

    application = create_app()
    application.state.document_store = store
    application.state.identity_provider = DevIdentityProvider()
    return application


@pytest.fixture
def client(app: FastAPI):
    """Sync test client with the app lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    """Build dev-provider auth headers for a principal."""

    def _headers(principal: Principal) -> dict[str, str]:
        return {"Authorization": f"Bearer {principal.id}|{principal.email}"}

    return _headers
