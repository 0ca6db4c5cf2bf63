"""Unit tests for the verification service client."""

from unittest.mock import patch

import httpx
import pytest

from checkout_authorization.clients.verification_client import (
    VerificationGatewayClient,
    VerifyResult,
)
from checkout_authorization.models.exceptions import InvalidEmail, RateLimited, ServiceError


@pytest.fixture
def client():
    """Create a verification client for testing."""
    return VerificationGatewayClient(
        base_url="http://localhost:3000/api/",
        auth_token="test-auth-token",
        timeout_seconds=5.0,
    )


def json_response(status_code: int, body) -> httpx.Response:
    return httpx.Response(status_code, json=body)


class TestRequestCode:
    """Tests for POST /verification/send."""

    @pytest.mark.asyncio
    async def test_request_code_success(self, client):
        response = json_response(200, {"success": True, "verificationId": "email-app-1-1700000000", "expiresIn": 900})

        with patch.object(client.http_client, "post", return_value=response):
            verification_id = await client.request_code("a@b.com", "app-1")

            assert verification_id == "email-app-1-1700000000"

            client.http_client.post.assert_called_once()
            call_args = client.http_client.post.call_args
            assert call_args[0][0] == "http://localhost:3000/api/verification/send"
            assert call_args[1]["json"] == {"email": "a@b.com", "subjectId": "app-1"}
            headers = call_args[1]["headers"]
            assert headers["Content-Type"] == "application/json"
            assert headers["Authorization"] == "Bearer test-auth-token"
            assert "X-Request-ID" in headers

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 422])
    async def test_request_code_invalid_email(self, client, status_code):
        response = json_response(status_code, {"error": "Invalid email format"})

        with patch.object(client.http_client, "post", return_value=response):
            with pytest.raises(InvalidEmail):
                await client.request_code("a@b.com", "app-1")

    @pytest.mark.asyncio
    async def test_request_code_rate_limited(self, client):
        with patch.object(client.http_client, "post", return_value=json_response(429, {})):
            with pytest.raises(RateLimited):
                await client.request_code("a@b.com", "app-1")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [404, 500, 503])
    async def test_request_code_service_error(self, client, status_code):
        response = json_response(status_code, {"error": "Internal server error"})

        with patch.object(client.http_client, "post", return_value=response):
            with pytest.raises(ServiceError, match=str(status_code)):
                await client.request_code("a@b.com", "app-1")

    @pytest.mark.asyncio
    async def test_request_code_malformed_body(self, client):
        response = httpx.Response(200, content=b"<html>oops</html>")

        with patch.object(client.http_client, "post", return_value=response):
            with pytest.raises(ServiceError, match="Malformed"):
                await client.request_code("a@b.com", "app-1")

    @pytest.mark.asyncio
    async def test_request_code_missing_verification_id(self, client):
        with patch.object(client.http_client, "post", return_value=json_response(200, {"success": True})):
            with pytest.raises(ServiceError):
                await client.request_code("a@b.com", "app-1")

    @pytest.mark.asyncio
    async def test_request_code_timeout(self, client):
        with patch.object(
            client.http_client, "post", side_effect=httpx.TimeoutException("Request timeout")
        ):
            with pytest.raises(ServiceError, match="timeout"):
                await client.request_code("a@b.com", "app-1")

    @pytest.mark.asyncio
    async def test_request_code_connection_error(self, client):
        with patch.object(
            client.http_client, "post", side_effect=httpx.ConnectError("Connection refused")
        ):
            with pytest.raises(ServiceError, match="request error"):
                await client.request_code("a@b.com", "app-1")


class TestVerifyCode:
    """Tests for POST /verification/check."""

    @pytest.mark.asyncio
    async def test_verify_code_ok(self, client):
        with patch.object(client.http_client, "post", return_value=json_response(200, {"ok": True})):
            result = await client.verify_code("ver_1", "123456")

            assert result == VerifyResult.OK
            call_args = client.http_client.post.call_args
            assert call_args[0][0] == "http://localhost:3000/api/verification/check"
            assert call_args[1]["json"] == {"verificationId": "ver_1", "code": "123456"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reason,expected",
        [
            ("CODE_MISMATCH", VerifyResult.CODE_MISMATCH),
            ("code_expired", VerifyResult.CODE_EXPIRED),
            ("verification-not-found", VerifyResult.VERIFICATION_NOT_FOUND),
            ("something_new", VerifyResult.VERIFICATION_NOT_FOUND),
            ("ok", VerifyResult.VERIFICATION_NOT_FOUND),
        ],
    )
    async def test_verify_code_reasons(self, client, reason, expected):
        response = json_response(200, {"ok": False, "reason": reason})

        with patch.object(client.http_client, "post", return_value=response):
            assert await client.verify_code("ver_1", "123456") == expected

    @pytest.mark.asyncio
    async def test_verify_code_not_ok_without_reason(self, client):
        with patch.object(client.http_client, "post", return_value=json_response(200, {"ok": False})):
            assert await client.verify_code("ver_1", "123456") == VerifyResult.CODE_MISMATCH

    @pytest.mark.asyncio
    async def test_verify_code_bad_request_is_mismatch(self, client):
        response = json_response(400, {"error": "Invalid verification code"})

        with patch.object(client.http_client, "post", return_value=response):
            assert await client.verify_code("ver_1", "123456") == VerifyResult.CODE_MISMATCH

    @pytest.mark.asyncio
    async def test_verify_code_bad_request_never_ok(self, client):
        response = json_response(400, {"ok": True})

        with patch.object(client.http_client, "post", return_value=response):
            assert await client.verify_code("ver_1", "123456") != VerifyResult.OK

    @pytest.mark.asyncio
    async def test_verify_code_not_found(self, client):
        response = json_response(404, {"error": "Verification not found or expired"})

        with patch.object(client.http_client, "post", return_value=response):
            assert await client.verify_code("ver_1", "123456") == VerifyResult.VERIFICATION_NOT_FOUND

    @pytest.mark.asyncio
    async def test_verify_code_too_many_attempts(self, client):
        with patch.object(client.http_client, "post", return_value=json_response(429, {})):
            assert await client.verify_code("ver_1", "123456") == VerifyResult.CODE_EXPIRED

    @pytest.mark.asyncio
    async def test_verify_code_server_error(self, client):
        with patch.object(client.http_client, "post", return_value=json_response(502, {})):
            with pytest.raises(ServiceError):
                await client.verify_code("ver_1", "123456")

    @pytest.mark.asyncio
    async def test_verify_code_timeout(self, client):
        with patch.object(client.http_client, "post", side_effect=httpx.ReadTimeout("slow")):
            with pytest.raises(ServiceError):
                await client.verify_code("ver_1", "123456")

    @pytest.mark.asyncio
    async def test_code_is_not_logged(self, client, capsys):
        with patch.object(client.http_client, "post", return_value=json_response(200, {"ok": True})):
            await client.verify_code("ver_1", "987654")

        assert "987654" not in capsys.readouterr().out


class TestClientLifecycle:

    @pytest.mark.asyncio
    async def test_context_manager_closes_pool(self):
        async with VerificationGatewayClient(base_url="http://localhost:3000/api") as client:
            pass

        assert client.http_client.is_closed

    def test_no_auth_header_without_token(self):
        client = VerificationGatewayClient(base_url="http://localhost:3000/api")

        headers = client._headers("corr-1")

        assert "Authorization" not in headers
        assert headers["X-Request-ID"] == "corr-1"
