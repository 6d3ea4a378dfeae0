"""Tests for Supabase token verification."""

import httpx
import pytest

from app.errors import Unauthorized
from app.services.identity_provider import SupabaseIdentityProvider


def _provider(handler) -> SupabaseIdentityProvider:
    return SupabaseIdentityProvider(
        supabase_url="https://test-project.supabase.co/",
        service_key="service-key",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestVerify:
    """Tests for SupabaseIdentityProvider.verify."""

    async def test_valid_token_returns_user(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "user-123", "email": "a@example.com"})

        user = await _provider(handler).verify("good-token")

        assert user.id == "user-123"
        assert user.email == "a@example.com"
        request = seen[0]
        assert str(request.url) == "https://test-project.supabase.co/auth/v1/user"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["Authorization"] == "Bearer good-token"

    async def test_rejected_token(self):
        provider = _provider(lambda r: httpx.Response(401, json={"msg": "invalid JWT"}))
        with pytest.raises(Unauthorized, match="Invalid token"):
            await provider.verify("expired-token")

    async def test_response_without_user_id(self):
        provider = _provider(lambda r: httpx.Response(200, json={"email": "a@example.com"}))
        with pytest.raises(Unauthorized, match="Invalid token"):
            await provider.verify("token")

    async def test_provider_error_fails_closed(self):
        provider = _provider(lambda r: httpx.Response(500, text="boom"))
        with pytest.raises(Unauthorized, match="Authentication failed"):
            await provider.verify("token")

    async def test_provider_unreachable_fails_closed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(Unauthorized, match="Authentication failed"):
            await _provider(handler).verify("token")

    async def test_non_json_body(self):
        provider = _provider(lambda r: httpx.Response(200, text="<html>"))
        with pytest.raises(Unauthorized):
            await provider.verify("token")
