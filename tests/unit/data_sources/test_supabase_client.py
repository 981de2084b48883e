"""Unit tests for SupabaseClient (mocked HTTP session)."""

from unittest.mock import AsyncMock, patch

import pytest

from oncosaferx.data_sources.base_client import ClientConfig, DataSourceError, RetryConfig
from oncosaferx.data_sources.supabase import SupabaseClient

SESSION_PAYLOAD = {
    "access_token": "access-abc",
    "refresh_token": "refresh-xyz",
    "user": {"id": "user-123", "email": "dr@example.com"},
}


def _response(status: int, json_data=None, text: str = "") -> AsyncMock:
    resp = AsyncMock()
    resp.status = status
    resp.headers = {}
    resp.json = AsyncMock(return_value=json_data)
    resp.text = AsyncMock(return_value=text)
    return resp


@pytest.fixture
def client() -> SupabaseClient:
    return SupabaseClient(
        url="https://proj.supabase.co/",
        anon_key="anon-key",
        config=ClientConfig(retry=RetryConfig(max_retries=0)),
    )


def _mock_session(*responses) -> AsyncMock:
    session = AsyncMock()
    session.request = AsyncMock(side_effect=list(responses))
    return session


@pytest.mark.asyncio
class TestAuth:
    async def test_sign_in_stores_session_and_uses_token(self, client):
        session = _mock_session(_response(200, SESSION_PAYLOAD), _response(200, [{"id": "p1"}]))

        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            data = await client.sign_in_with_password("dr@example.com", "secret")
            rows = await client.select("patients")

        assert data["user"]["id"] == "user-123"
        assert client.access_token == "access-abc"
        assert client.refresh_token == "refresh-xyz"
        assert rows == [{"id": "p1"}]

        sign_in_call, select_call = session.request.call_args_list
        assert sign_in_call.args == ("POST", "https://proj.supabase.co/auth/v1/token")
        assert sign_in_call.kwargs["params"] == {"grant_type": "password"}
        assert sign_in_call.kwargs["json"] == {"email": "dr@example.com", "password": "secret"}
        assert sign_in_call.kwargs["headers"]["Authorization"] == "Bearer anon-key"
        assert select_call.kwargs["headers"]["Authorization"] == "Bearer access-abc"
        assert select_call.kwargs["headers"]["apikey"] == "anon-key"

    async def test_sign_in_rejected_raises(self, client):
        session = _mock_session(_response(400, text='{"error":"invalid_grant"}'))

        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            with pytest.raises(DataSourceError, match="HTTP 400") as exc_info:
                await client.sign_in_with_password("dr@example.com", "wrong")

        assert exc_info.value.status_code == 400
        assert client.access_token is None

    async def test_sign_up_without_session_keeps_anon(self, client):
        payload = {"id": "user-9", "email": "new@example.com"}
        session = _mock_session(_response(200, payload))

        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            data = await client.sign_up("new@example.com", "pw", {"role": "nurse"})

        assert data == payload
        assert client.access_token is None
        body = session.request.call_args.kwargs["json"]
        assert body["data"] == {"role": "nurse"}

    async def test_sign_out_clears_tokens_even_on_failure(self, client):
        client.access_token = "access-abc"
        client.refresh_token = "refresh-xyz"
        session = _mock_session(_response(401, text="expired"))

        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            with pytest.raises(DataSourceError):
                await client.sign_out()

        assert client.access_token is None
        assert client.refresh_token is None

    async def test_sign_out_without_session_is_noop(self, client):
        session = _mock_session()
        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            await client.sign_out()
        session.request.assert_not_called()

    async def test_get_user_without_session_returns_none(self, client):
        assert await client.get_user() is None


@pytest.mark.asyncio
class TestRest:
    async def test_select_builds_equality_filters(self, client):
        session = _mock_session(_response(200, [{"id": "user-123", "role": "nurse"}]))

        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            rows = await client.select("users", {"id": "user-123"}, columns="id,role")

        assert rows == [{"id": "user-123", "role": "nurse"}]
        call = session.request.call_args
        assert call.args == ("GET", "https://proj.supabase.co/rest/v1/users")
        assert call.kwargs["params"] == {"select": "id,role", "id": "eq.user-123"}

    async def test_select_non_list_response_raises(self, client):
        session = _mock_session(_response(200, {"message": "odd"}))

        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            with pytest.raises(DataSourceError, match="Unexpected response"):
                await client.select("users")

    async def test_update_sends_patch_with_minimal_return(self, client):
        session = _mock_session(_response(204))

        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            await client.update("users", {"last_login": "2024-01-01T00:00:00Z"}, {"id": "u1"})

        call = session.request.call_args
        assert call.args[0] == "PATCH"
        assert call.kwargs["params"] == {"id": "eq.u1"}
        assert call.kwargs["headers"]["Prefer"] == "return=minimal"
