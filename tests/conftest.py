"""Shared test fixtures for the Betly client."""

from unittest.mock import MagicMock

import pytest
import requests

from betly.client import ApiClient
from betly.credits import CreditLedger
from betly.services import AIChatService, CreditsService, PredictionsService, TicketsService, TipsService
from betly.storage import KeyValueStore
from betly.ticket_builder import TicketBuilder


@pytest.fixture
def store(tmp_path):
    """Fresh on-disk key-value store for each test."""
    return KeyValueStore(tmp_path / "store.db")


@pytest.fixture
def http_session():
    """A real requests Session whose request() is mocked out."""
    session = requests.Session()
    session.request = MagicMock()
    return session


@pytest.fixture
def api_client(store, http_session):
    return ApiClient(store, base_url="https://api.test", timeout=5, session=http_session)


@pytest.fixture
def tickets_service():
    return MagicMock(spec=TicketsService)


@pytest.fixture
def credits_service():
    return MagicMock(spec=CreditsService)


@pytest.fixture
def predictions_service():
    return MagicMock(spec=PredictionsService)


@pytest.fixture
def tips_service():
    return MagicMock(spec=TipsService)


@pytest.fixture
def chat_service():
    return MagicMock(spec=AIChatService)


@pytest.fixture
def builder(store, tickets_service):
    return TicketBuilder(store, tickets_service, default_stake=10, min_stake=1)


@pytest.fixture
def ledger(credits_service, store):
    return CreditLedger(credits_service, store)
