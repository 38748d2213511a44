# backend/tests/unit/test_services.py
import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from realty_intake.config import strings
from realty_intake.config.settings import settings
from realty_intake.models.flow import Choice
from realty_intake.services.airtable_service import AirtableLeadService
from realty_intake.services.whatsapp_service import WhatsAppService
from realty_intake.utils.circuit_breaker import CircuitBreaker, CircuitOpenError, CircuitState


def whatsapp_ok():
    return AsyncMock(return_value=MagicMock(status_code=200, json=lambda: {"messages": [{"id": "wamid_123"}]}))


def sent_payload(mock_call):
    return mock_call.await_args.kwargs["json"]


# --- WhatsAppService Tests ---

@pytest.mark.asyncio
async def test_whatsapp_send_message_success(mocker):
    mock_call = whatsapp_ok()
    mocker.patch('realty_intake.services.whatsapp_service.WhatsAppService.resilient_api_call', mock_call)

    service = WhatsAppService(settings.whatsapp_access_token, settings.whatsapp_phone_id)
    wamid = await service.send_message("5551234567", "Hola")

    assert wamid == "wamid_123"
    payload = sent_payload(mock_call)
    assert payload["to"] == "+5551234567"
    assert payload["type"] == "text"
    assert payload["text"] == {"body": "Hola"}
    assert mock_call.await_args.args[1] == f"https://graph.facebook.com/v19.0/{settings.whatsapp_phone_id}/messages"


@pytest.mark.asyncio
async def test_whatsapp_up_to_three_choices_are_reply_buttons(mocker):
    mock_call = whatsapp_ok()
    mocker.patch('realty_intake.services.whatsapp_service.WhatsAppService.resilient_api_call', mock_call)

    service = WhatsAppService("token", "123")
    await service.send_buttons("5551", "¿Qué deseas hacer hoy?", [
        Choice(id="BUY", title="Comprar"), Choice(id="SELL", title="Vender"), Choice(id="RENT", title="Rentar"),
    ])

    interactive = sent_payload(mock_call)["interactive"]
    assert interactive["type"] == "button"
    assert interactive["body"] == {"text": "¿Qué deseas hacer hoy?"}
    assert interactive["action"]["buttons"][0] == {"type": "reply", "reply": {"id": "BUY", "title": "Comprar"}}
    assert len(interactive["action"]["buttons"]) == 3


@pytest.mark.asyncio
async def test_whatsapp_four_choices_become_a_list(mocker):
    mock_call = whatsapp_ok()
    mocker.patch('realty_intake.services.whatsapp_service.WhatsAppService.resilient_api_call', mock_call)

    service = WhatsAppService("token", "123")
    choices = [Choice(id=f"TYPE_{i}", title=f"Opción {i}") for i in range(4)]
    await service.send_buttons("5551", "¿Qué tipo de propiedad es?", choices)

    interactive = sent_payload(mock_call)["interactive"]
    assert interactive["type"] == "list"
    rows = interactive["action"]["sections"][0]["rows"]
    assert [row["id"] for row in rows] == ["TYPE_0", "TYPE_1", "TYPE_2", "TYPE_3"]


@pytest.mark.asyncio
async def test_whatsapp_send_failure_returns_none(mocker):
    mock_call = AsyncMock(return_value=MagicMock(status_code=400, json=lambda: {"error": {"message": "bad"}}))
    mocker.patch('realty_intake.services.whatsapp_service.WhatsAppService.resilient_api_call', mock_call)

    service = WhatsAppService("token", "123")
    assert await service.send_message("5551", "Hola") is None


@pytest.mark.asyncio
async def test_whatsapp_transport_error_is_not_raised(mocker):
    mocker.patch('realty_intake.services.whatsapp_service.WhatsAppService.resilient_api_call',
                 AsyncMock(side_effect=httpx.ConnectError("down")))

    service = WhatsAppService("token", "123")
    assert await service.send_message("5551", "Hola") is None


# --- AirtableLeadService Tests ---

@pytest.mark.asyncio
async def test_airtable_submit_success(mocker):
    service = AirtableLeadService("key", "appBASE", "Leads Inmobiliaria")
    response = httpx.Response(
        200, json={"records": [{"id": "recABC", "fields": {}}]},
        request=httpx.Request("POST", service.table_url),
    )
    mock_post = mocker.patch.object(service.http_client, "post", new_callable=AsyncMock, return_value=response)

    result = await service.submit({"Nombre": "Ana", "Flujo": "Comprar"})

    assert result.ok is True
    assert result.id == "recABC"
    mock_post.assert_awaited_once()
    assert mock_post.await_args.args[0] == "https://api.airtable.com/v0/appBASE/Leads%20Inmobiliaria"
    assert mock_post.await_args.kwargs["json"] == {"records": [{"fields": {"Nombre": "Ana", "Flujo": "Comprar"}}]}
    assert mock_post.await_args.kwargs["headers"]["Authorization"] == "Bearer key"


@pytest.mark.asyncio
async def test_airtable_remote_error_returns_payload(mocker):
    service = AirtableLeadService("key", "appBASE", "Leads")
    error_body = {"error": {"type": "UNKNOWN_FIELD_NAME", "message": "Unknown field name: \"Mascotas\""}}
    response = httpx.Response(422, json=error_body, request=httpx.Request("POST", service.table_url))
    mocker.patch.object(service.http_client, "post", new_callable=AsyncMock, return_value=response)

    result = await service.submit({"Mascotas": "No"})

    assert result.ok is False
    assert result.error == error_body


@pytest.mark.asyncio
async def test_airtable_network_error_returns_failure(mocker):
    service = AirtableLeadService("key", "appBASE", "Leads")
    mocker.patch.object(service.http_client, "post", new_callable=AsyncMock,
                        side_effect=httpx.ConnectError("connection refused"))

    result = await service.submit({"Nombre": "Ana"})

    assert result.ok is False
    assert result.error == "connection refused"


@pytest.mark.asyncio
@pytest.mark.parametrize("api_key, base_id", [(None, "appBASE"), ("key", None), ("", "")])
async def test_airtable_unconfigured_short_circuits(mocker, api_key, base_id):
    service = AirtableLeadService(api_key, base_id, "Leads")
    mock_post = mocker.patch.object(service.http_client, "post", new_callable=AsyncMock)

    result = await service.submit({"Nombre": "Ana"})

    assert result.ok is False
    assert result.error == strings.AIRTABLE_NOT_CONFIGURED
    mock_post.assert_not_awaited()


@pytest.mark.asyncio
async def test_airtable_open_circuit_returns_failure(mocker):
    service = AirtableLeadService("key", "appBASE", "Leads")
    service.circuit_breaker = CircuitBreaker("airtable", failure_threshold=1, timeout=60)
    mock_post = mocker.patch.object(service.http_client, "post", new_callable=AsyncMock,
                                    side_effect=httpx.ConnectError("down"))

    await service.submit({"Nombre": "Ana"})
    result = await service.submit({"Nombre": "Luis"})

    assert result.ok is False
    assert "Circuit breaker is OPEN" in result.error
    assert mock_post.await_count == 1


# --- CircuitBreaker Tests ---

@pytest.mark.asyncio
async def test_circuit_breaker_recovers_after_timeout():
    breaker = CircuitBreaker("test", failure_threshold=2, timeout=10, success_threshold=1)
    failing = AsyncMock(side_effect=RuntimeError("boom"))

    for _ in range(2):
        with pytest.raises(RuntimeError):
            await breaker.call(failing)
    assert breaker.state == CircuitState.OPEN

    with pytest.raises(CircuitOpenError):
        await breaker.call(AsyncMock(return_value="ok"))

    breaker.last_failure_time -= 11
    assert await breaker.call(AsyncMock(return_value="ok")) == "ok"
    assert breaker.state == CircuitState.CLOSED


# --- AlertingService Tests ---

@pytest.mark.asyncio
async def test_lead_failure_alert_posts_context(mocker):
    from realty_intake.utils.alerting import AlertingService

    service = AlertingService("https://alerts.example.com/hook")
    mock_post = mocker.patch.object(service.client, "post", new_callable=AsyncMock)

    await service.send_lead_failure_alert("5551", "BUY", {"error": "x"}, {"Nombre": "Ana"})

    body = mock_post.await_args.kwargs["json"]
    assert body["severity"] == "critical"
    assert body["context"]["actor_id"] == "5551"
    assert body["context"]["answers"] == {"Nombre": "Ana"}


@pytest.mark.asyncio
async def test_alerting_without_webhook_is_noop():
    from realty_intake.utils.alerting import AlertingService

    service = AlertingService(None)
    await service.send_lead_failure_alert("5551", "BUY", "err", {})
    assert service.client is None
