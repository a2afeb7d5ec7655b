import json

import httpx
import pytest
from pydantic import ValidationError

from gifttracker.client.api import ApiClient
from gifttracker.client.errors import ApiError, AuthorizationError, ClientValidationError, NetworkError
from gifttracker.services.monitoring import ErrorType, Monitor, handle_error, http_sink, measure_performance


###############################################################
# 1. Unit Tests for `gifttracker/models`
###############################################################
from gifttracker.models.contact import ContactCreate
from gifttracker.models.gift import GiftCreate
from gifttracker.models.user import UserUpdate


def test_gift_name_cannot_be_blank():
    with pytest.raises(ValidationError) as exc_info:
        GiftCreate(name="   ", type="given")
    assert "Gift name cannot be empty" in str(exc_info.value)


def test_gift_type_must_be_a_direction():
    with pytest.raises(ValidationError):
        GiftCreate(name="Book", type="borrowed")


def test_received_gift_drops_cost_and_given_gift_drops_thanked():
    received = GiftCreate(name="Scarf", type="received", cost=20, thanked=True)
    given = GiftCreate(name="Lamp", type="given", cost=35, thanked=True)
    assert (received.cost, received.thanked) == (None, True)
    assert (given.cost, given.thanked) == (35, False)


def test_contact_email_is_validated():
    with pytest.raises(ValidationError):
        ContactCreate(name="Alice", email="alice-at-example")
    assert ContactCreate(name=" Alice ").name == "Alice"


def test_user_theme_is_restricted():
    with pytest.raises(ValidationError):
        UserUpdate(preferences={"theme": "purple"})


###############################################################
# 2. Unit Tests for `gifttracker/services/monitoring.py`
###############################################################

def test_measure_performance_records_sync_calls():
    monitor = Monitor()
    wrapped = measure_performance(monitor, lambda x: x * 2, name="double")

    assert wrapped(21) == 42
    assert monitor.performance_metrics[0].name == "double"
    assert monitor.performance_metrics[0].duration_ms >= 0


@pytest.mark.asyncio
async def test_measure_performance_records_failures_and_reraises():
    monitor = Monitor()

    async def explode():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await measure_performance(monitor, explode)()
    assert monitor.performance_metrics[0].metadata["error"] == "boom"


@pytest.mark.asyncio
async def test_handle_error_logs_and_reraises():
    monitor = Monitor()

    async def fetch_gifts():
        raise ValueError("bad payload")

    with pytest.raises(ValueError):
        await handle_error(monitor, fetch_gifts, ErrorType.API)()

    entry = monitor.error_logs[0]
    assert entry.type == ErrorType.API
    assert entry.message == "bad payload"
    assert entry.metadata["method"] == "fetch_gifts"


def test_clear_logs_empties_both_lists():
    monitor = Monitor()
    monitor.log_error(ErrorType.UNKNOWN, "x")
    monitor.log_performance("y", 1.0)
    monitor.clear_logs()
    assert monitor.error_logs == [] and monitor.performance_metrics == []


def test_sink_receives_every_record():
    forwarded = []
    monitor = Monitor(sink=lambda log_type, data: forwarded.append((log_type, data)))

    monitor.log_error(ErrorType.STORAGE, "quota", user_id="u-1")
    monitor.log_performance("persist", 3.5)

    assert [log_type for log_type, _ in forwarded] == ["Errors", "Performance"]
    assert forwarded[0][1]["message"] == "quota"
    assert forwarded[0][1]["user_id"] == "u-1"
    assert forwarded[1][1]["duration_ms"] == 3.5


def test_failing_sink_does_not_break_logging():
    def broken_sink(log_type, data):
        raise ConnectionError("sink down")

    monitor = Monitor(sink=broken_sink)
    monitor.log_error(ErrorType.API, "boom")
    assert len(monitor.error_logs) == 1


def test_http_sink_posts_to_the_monitoring_endpoint():
    requests_seen = []

    def handler(request: httpx.Request):
        requests_seen.append((request.url.path, json.loads(request.content)))
        return httpx.Response(204)

    sink = http_sink("http://api.test/", client=httpx.Client(transport=httpx.MockTransport(handler)))
    Monitor(sink=sink).log_error(ErrorType.NETWORK, "offline")

    path, payload = requests_seen[0]
    assert path == "/monitoring"
    assert payload["logType"] == "Errors"
    assert payload["data"]["type"] == "NETWORK_ERROR"
    assert payload["data"]["message"] == "offline"


###############################################################
# 3. Unit Tests for `gifttracker/client/api.py`
###############################################################

def _client(handler, monitor=None) -> ApiClient:
    return ApiClient("http://api.test", token="token-123", monitor=monitor,
                     transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_request_sends_bearer_token_and_query():
    captured = {}

    def handler(request: httpx.Request):
        captured["auth"] = request.headers.get("Authorization")
        captured["params"] = dict(request.url.params)
        return httpx.Response(200, json=[])

    async with _client(handler) as api:
        assert await api.get_gifts(type="given") == []

    assert captured["auth"] == "Bearer token-123"
    assert captured["params"] == {"type": "given"}


@pytest.mark.asyncio
async def test_no_content_returns_none():
    async with _client(lambda request: httpx.Response(204)) as api:
        assert await api.delete_gift("g-1") is None


@pytest.mark.asyncio
async def test_unsupported_method_is_refused_locally():
    async with _client(lambda request: httpx.Response(200)) as api:
        with pytest.raises(ValueError):
            await api.request("/gifts", "PATCH")


@pytest.mark.asyncio
async def test_connection_failure_becomes_network_error():
    monitor = Monitor()

    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler, monitor) as api:
        with pytest.raises(NetworkError) as exc_info:
            await api.get_contacts()

    assert "check your connection" in str(exc_info.value)
    assert monitor.error_logs[0].type == ErrorType.NETWORK


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code, message", [
    (401, "Please login to continue"),
    (403, "You don't have permission to access this resource"),
])
async def test_auth_failures_become_authorization_errors(status_code, message):
    monitor = Monitor()
    handler = lambda request: httpx.Response(status_code, json={"message": "nope"})

    async with _client(handler, monitor) as api:
        with pytest.raises(AuthorizationError) as exc_info:
            await api.get_events()

    assert str(exc_info.value) == message
    assert exc_info.value.status_code == status_code
    assert monitor.error_logs[0].type == ErrorType.AUTH


@pytest.mark.asyncio
async def test_server_message_is_surfaced():
    handler = lambda request: httpx.Response(404, json={"message": "Gift not found"})

    async with _client(handler) as api:
        with pytest.raises(ApiError) as exc_info:
            await api.get_gift("g-404")

    assert str(exc_info.value) == "Gift not found"
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_unreadable_error_body_gets_a_generic_message():
    handler = lambda request: httpx.Response(500, text="upstream exploded")

    async with _client(handler) as api:
        with pytest.raises(ApiError) as exc_info:
            await api.get_notifications()

    assert str(exc_info.value) == "An unexpected error occurred"


@pytest.mark.asyncio
async def test_invalid_body_is_not_sent():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(201, json={})

    async with _client(handler) as api:
        with pytest.raises(ClientValidationError):
            await api.create_gift({"name": "", "type": "given"})

    assert calls == []


@pytest.mark.asyncio
async def test_upload_image_puts_bytes_to_the_signed_url():
    uploads = []

    def handler(request: httpx.Request):
        if request.url.path == "/images/upload-url":
            assert json.loads(request.content)["contentType"] == "image/png"
            return httpx.Response(200, json={
                "uploadUrl": "https://bucket.test/u-1/i-1?sig=abc",
                "imageUrl": "https://bucket.test/u-1/i-1",
                "imageId": "i-1",
            })
        uploads.append((request.method, request.url.host, request.content))
        return httpx.Response(200)

    async with _client(handler) as api:
        image_url = await api.upload_image(b"\x89PNG", "image/png")

    assert image_url == "https://bucket.test/u-1/i-1"
    assert uploads == [("PUT", "bucket.test", b"\x89PNG")]
