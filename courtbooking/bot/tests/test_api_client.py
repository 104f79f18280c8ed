from __future__ import annotations

import json
from datetime import date

import httpx
import pytest

from courtbooking.bot.services import api_client


@pytest.fixture
def transport(monkeypatch: pytest.MonkeyPatch):
    """Route the client through a MockTransport; ``responses`` is consumed in order."""

    state: dict = {"requests": [], "responses": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        return state["responses"].pop(0)

    def client() -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url="http://testserver/api", timeout=10.0
        )

    monkeypatch.setattr(api_client, "_client", client)
    return state


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch):
    delays: list[float] = []

    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    monkeypatch.setattr(api_client, "_sleep", fake_sleep)
    return delays


@pytest.mark.asyncio
async def test_public_reads_disable_caching(transport):
    transport["responses"].append(httpx.Response(200, json=[]))

    await api_client.check_availability(date(2025, 6, 1), "09:00", "11:00")

    request = transport["requests"][0]
    assert request.url.path == "/api/public/availability"
    assert request.url.params["date"] == "2025-06-01"
    assert request.url.params["start_time"] == "09:00"
    assert "_t" in request.url.params
    assert request.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
    assert request.headers["Pragma"] == "no-cache"
    assert "Authorization" not in request.headers


@pytest.mark.asyncio
async def test_authenticated_calls_send_bearer_token(transport):
    transport["responses"].append(httpx.Response(200, json={"booking": {"ma_pd": "PD1"}}))

    await api_client.create_booking({"slots": []}, token="jwt-token")

    request = transport["requests"][0]
    assert request.method == "POST"
    assert request.headers["Authorization"] == "Bearer jwt-token"
    assert json.loads(request.content) == {"slots": []}


@pytest.mark.asyncio
async def test_validation_error_details_are_kept(transport):
    transport["responses"].append(
        httpx.Response(
            400,
            json={"message": "Validation error", "details": ["slots: List should have at least 1 item"]},
        )
    )

    with pytest.raises(api_client.ApiError) as excinfo:
        await api_client.calculate_price({"slots": []})

    assert excinfo.value.status == 400
    assert excinfo.value.details == ["slots: List should have at least 1 item"]
    assert "List should have" in excinfo.value.message


@pytest.mark.asyncio
async def test_detail_message_is_used(transport):
    transport["responses"].append(httpx.Response(404, json={"detail": "Không tìm thấy phiếu đặt"}))

    with pytest.raises(api_client.ApiError) as excinfo:
        await api_client.get_booking("PD404")

    assert excinfo.value.status == 404
    assert excinfo.value.message == "Không tìm thấy phiếu đặt"


@pytest.mark.asyncio
async def test_non_json_error_gets_fallback_message(transport):
    transport["responses"].append(httpx.Response(500, text="boom"))

    with pytest.raises(api_client.ApiError) as excinfo:
        await api_client.fetch_services()

    assert excinfo.value.message == api_client.SERVER_ERROR_MESSAGE


@pytest.mark.asyncio
async def test_unauthorized_is_logged_not_retried(transport, sleeps, caplog):
    transport["responses"].append(httpx.Response(401, json={"detail": "Not authenticated"}))

    with caplog.at_level("WARNING"), pytest.raises(api_client.ApiError) as excinfo:
        await api_client.fetch_my_bookings("expired")

    assert excinfo.value.status == 401
    assert len(transport["requests"]) == 1
    assert sleeps == []
    assert "Unauthorized API response" in caplog.text


@pytest.mark.asyncio
async def test_rate_limited_list_retries_with_backoff(transport, sleeps):
    transport["responses"].extend(
        [
            httpx.Response(429, json={"message": "Too many requests"}),
            httpx.Response(429, json={"message": "Too many requests"}),
            httpx.Response(200, json=[{"ma_pd": "PD1"}]),
        ]
    )

    bookings = await api_client.fetch_my_bookings("jwt")

    assert bookings == [{"ma_pd": "PD1"}]
    assert sleeps == [2.0, 4.0]
    assert len(transport["requests"]) == 3


@pytest.mark.asyncio
async def test_rate_limit_gives_up_after_two_retries(transport, sleeps):
    transport["responses"].extend(
        [httpx.Response(429, json={"message": "Too many requests"}) for _ in range(3)]
    )

    with pytest.raises(api_client.ApiError) as excinfo:
        await api_client.fetch_bookings("jwt", status="pending")

    assert excinfo.value.status == 429
    assert sleeps == [2.0, 4.0]
    assert transport["requests"][0].url.params["status"] == "pending"


@pytest.mark.asyncio
async def test_other_calls_are_not_retried_on_429(transport, sleeps):
    transport["responses"].append(httpx.Response(429, json={"message": "Too many requests"}))

    with pytest.raises(api_client.ApiError):
        await api_client.fetch_services()

    assert sleeps == []


@pytest.mark.asyncio
async def test_network_failure_becomes_api_error(monkeypatch: pytest.MonkeyPatch):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    monkeypatch.setattr(
        api_client,
        "_client",
        lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://testserver/api"),
    )

    with pytest.raises(api_client.ApiError) as excinfo:
        await api_client.login("user", "secret")

    assert excinfo.value.status == 0
    assert excinfo.value.message == api_client.NETWORK_ERROR_MESSAGE
