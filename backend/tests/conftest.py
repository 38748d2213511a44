import os

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

# Seed the environment FIRST, before any application import: the settings
# object is built at import time and needs the required variables.
os.environ.setdefault("WHATSAPP_VERIFY_TOKEN", "test_verify_token")
os.environ.setdefault("WHATSAPP_ACCESS_TOKEN", "test_access_token")
os.environ.setdefault("WHATSAPP_PHONE_ID", "1234567890")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("AIRTABLE_API_KEY", "test_airtable_key")
os.environ.setdefault("AIRTABLE_BASE_ID", "appTEST")
os.environ.setdefault("AIRTABLE_TABLE", "Leads")

from realty_intake.main import app  # noqa: E402
from realty_intake.models.domain import NormalizedInput, SubmissionResult  # noqa: E402
from realty_intake.services.session_store import InMemorySessionStore  # noqa: E402
from realty_intake.workflows.engine import ConversationEngine  # noqa: E402

FIXED_TIMESTAMP = "2024-05-01T12:00:00.000Z"


class RecordingMessenger:
    """Collects outbound messages instead of calling WhatsApp."""

    def __init__(self):
        self.sent = []

    async def send_message(self, to_phone, message):
        self.sent.append({"kind": "text", "to": to_phone, "body": message})
        return "wamid.text"

    async def send_buttons(self, to_phone, message, choices):
        self.sent.append({"kind": "buttons", "to": to_phone, "body": message, "choices": list(choices)})
        return "wamid.buttons"

    def clear(self):
        self.sent.clear()


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def messenger():
    return RecordingMessenger()


@pytest.fixture
def submitter():
    mock = AsyncMock()
    mock.submit.return_value = SubmissionResult.success("recLEAD123")
    return mock


@pytest.fixture
def alerts():
    return AsyncMock()


@pytest.fixture
def fixed_timestamp():
    return FIXED_TIMESTAMP


@pytest.fixture
def engine(store, messenger, submitter, alerts, fixed_timestamp):
    return ConversationEngine(store, messenger, submitter, alerts=alerts, clock=lambda: fixed_timestamp)


@pytest.fixture
def say():
    """Builds normalized inputs: say("5551", "Hola") or say("5551", "Comprar", "BUY")."""
    def _say(actor_id, text, selection_id=None):
        return NormalizedInput(
            actor_id=actor_id,
            text=text,
            selection_id=selection_id,
            message_type="interactive" if selection_id else "text",
        )
    return _say


@pytest.fixture(scope="function")
def test_client(mocker):
    """
    Provides a TestClient for API integration tests.
    The lifespan runs, but the session sweeper and client shutdown are stubbed
    so the global HTTP clients survive between tests.
    """
    mocker.patch("realty_intake.utils.lifecycle.run_session_sweeper", new_callable=AsyncMock)
    mocker.patch("realty_intake.utils.lifecycle.whatsapp_service.close", new_callable=AsyncMock)
    mocker.patch("realty_intake.utils.lifecycle.lead_service.close", new_callable=AsyncMock)
    mocker.patch("realty_intake.utils.lifecycle.alerting_service.cleanup", new_callable=AsyncMock)

    with TestClient(app) as client:
        yield client
