"""Tests for the platform HTTP client."""
import asyncio
from unittest.mock import AsyncMock

import pytest

from havasi_bot.models import SortDirection
from havasi_bot.services.api import ApiClient, ApiResponse, handle_api_error
from havasi_bot.services.errors import (
    ApiClientError,
    ApiServerError,
    AuthenticationExpiredError,
)
from conftest import estate_payload, user_payload


class TestHandleApiError:
    def test_json_message_is_used(self):
        res = ApiResponse(404, b'{"message": "Listing not found"}')
        with pytest.raises(ApiClientError) as exc_info:
            handle_api_error(res, "Failed")
        assert exc_info.value.message == "Client Error (404): Listing not found"
        assert exc_info.value.status == 404

    def test_json_error_field_is_used(self):
        res = ApiResponse(400, b'{"error": "Bad filter"}')
        with pytest.raises(ApiClientError, match=r"Client Error \(400\): Bad filter"):
            handle_api_error(res, "Failed")

    def test_json_without_message_falls_back_to_default(self):
        res = ApiResponse(503, b'{"code": 17}')
        with pytest.raises(ApiServerError) as exc_info:
            handle_api_error(res, "Failed to fetch user")
        assert exc_info.value.message == "Server Error (503): Failed to fetch user"

    def test_plain_text_body_is_used(self):
        res = ApiResponse(502, b"Bad Gateway")
        with pytest.raises(ApiServerError, match="Bad Gateway"):
            handle_api_error(res, "Failed")

    def test_empty_body_falls_back_to_default(self):
        res = ApiResponse(500, b"")
        with pytest.raises(ApiServerError) as exc_info:
            handle_api_error(res, "Failed to add notification")
        assert exc_info.value.message == "Server Error (500): Failed to add notification"


class TestApiClient:
    @pytest.mark.asyncio
    async def test_sends_bearer_token(self, api, platform, tokens):
        await tokens.set_token("tok-1")
        platform.on("GET", "/api/users/me", body=user_payload())

        user = await api.get_current_user()

        assert user.id == "u1"
        assert user.username == "jana"
        assert platform.requests[0].headers["Authorization"] == "Bearer tok-1"

    @pytest.mark.asyncio
    async def test_401_clears_storage_and_fires_expiry(self, api, platform, tokens, users):
        await tokens.set_token("stale")
        await users.set_user_id("u1")
        handler = AsyncMock()
        api.set_expiry_handler(handler)
        platform.on("GET", "/api/users/u1/notifications", status=401)

        with pytest.raises(AuthenticationExpiredError):
            await api.get_user_notifications("u1")

        handler.assert_awaited_once()
        assert tokens.get_token() is None
        assert users.get_user_id() is None

    @pytest.mark.asyncio
    async def test_401_for_replaced_token_keeps_new_token(self, api, platform, tokens, users):
        await tokens.set_token("old")
        handler = AsyncMock()
        api.set_expiry_handler(handler)
        platform.on("GET", "/api/users/u1/notifications", status=401, delay=0.05)

        request = asyncio.create_task(api.get_user_notifications("u1"))
        await asyncio.sleep(0.01)
        await tokens.set_token("new")
        await users.set_user_id("u2")

        with pytest.raises(AuthenticationExpiredError):
            await request

        handler.assert_not_awaited()
        assert tokens.get_token() == "new"
        assert users.get_user_id() == "u2"

    @pytest.mark.asyncio
    async def test_public_call_does_not_expire_session(self, api, platform, tokens):
        await tokens.set_token("tok-1")
        handler = AsyncMock()
        api.set_expiry_handler(handler)
        platform.on("GET", "/api/real-estates/re1", status=401, body={"message": "nope"})

        with pytest.raises(ApiClientError):
            await api.fetch_real_estate_by_id("re1")

        handler.assert_not_awaited()
        assert tokens.get_token() == "tok-1"
        assert "Authorization" not in platform.requests[0].headers

    def test_expiry_handler_registers_once(self, tokens, users):
        client = ApiClient("http://api", tokens, users)
        client.set_expiry_handler(AsyncMock())
        with pytest.raises(RuntimeError):
            client.set_expiry_handler(AsyncMock())

    @pytest.mark.asyncio
    async def test_fetch_real_estates_query(self, api, platform):
        platform.on("GET", "/api/real-estates", body=[estate_payload("a"), estate_payload("b")])

        estates = await api.fetch_real_estates(
            offset=20, limit=11, sort_direction=SortDirection.ASC,
            search="  ", transaction="RENT",
        )

        assert [e.id for e in estates] == ["a", "b"]
        query = platform.requests[0].query
        assert query["offset"] == "20"
        assert query["limit"] == "11"
        assert query["sortDirection"] == "ASC"
        assert query["transaction"] == "RENT"
        assert query["building"] == "APARTMENT"
        assert "search" not in query

    @pytest.mark.asyncio
    async def test_fetch_real_estates_search_sent_once_encoded(self, api, platform):
        platform.on("GET", "/api/real-estates", body=[])

        await api.fetch_real_estates(search="Praha 2")

        assert platform.requests[0].query["search"] == "Praha 2"

    @pytest.mark.asyncio
    async def test_fetch_real_estates_accepts_data_wrapper(self, api, platform):
        platform.on("GET", "/api/real-estates", body={"data": [estate_payload("x")]})

        estates = await api.fetch_real_estates()

        assert [e.id for e in estates] == ["x"]
        assert estates[0].locality.street_number == "12"

    @pytest.mark.asyncio
    async def test_fetch_real_estates_unknown_shape_is_empty(self, api, platform):
        platform.on("GET", "/api/real-estates", body={"items": [estate_payload("x")]})

        assert await api.fetch_real_estates() == []

    @pytest.mark.asyncio
    async def test_server_error_is_raised(self, api, platform):
        platform.on("GET", "/api/users/u1/notifications/sent", status=500, text="boom")

        with pytest.raises(ApiServerError, match=r"Server Error \(500\): boom"):
            await api.fetch_sent_notifications("u1", 20, 0)

    @pytest.mark.asyncio
    async def test_sent_notifications_paging(self, api, platform):
        platform.on(
            "GET",
            "/api/users/u1/notifications/sent",
            body=[{
                "notificationId": "n1",
                "userId": "u1",
                "type": "EMAIL",
                "sentAt": "2024-05-02T08:30:00Z",
                "realEstate": {"id": "re1", "name": "Byt", "url": "https://x", "price": 100},
            }],
        )

        items = await api.fetch_sent_notifications("u1", 20, 40)

        assert items[0].real_estate.name == "Byt"
        assert platform.requests[0].query == {"limit": "20", "offset": "40"}

    @pytest.mark.asyncio
    async def test_rule_mutations_hit_rule_paths(self, api, platform):
        platform.on("POST", "/api/users/u1/notifications/n1/enable")
        platform.on("POST", "/api/users/u1/notifications/n1/disable")
        platform.on("DELETE", "/api/users/u1/notifications/n1", status=204)

        await api.enable_notification("u1", "n1")
        await api.disable_notification("u1", "n1")
        await api.delete_notification("u1", "n1")

        assert [(r.method, r.path) for r in platform.requests] == [
            ("POST", "/api/users/u1/notifications/n1/enable"),
            ("POST", "/api/users/u1/notifications/n1/disable"),
            ("DELETE", "/api/users/u1/notifications/n1"),
        ]
