"""Tests for the HTTP client and its error mapping."""

import pytest
import requests

from betly.errors import (
    ApiError,
    ErrorCode,
    InsufficientCreditsError,
    NetworkError,
    RequestTimeout,
    ServerError,
    TierRequiredError,
    UnauthorizedError,
    is_retryable,
    user_action,
)
from betly.storage import StorageKeys

from factories import make_response


class TestRequests:
    def test_get_decodes_json(self, api_client, http_session):
        http_session.request.return_value = make_response(200, {"total": 4})

        assert api_client.get("/api/credits/balance") == {"total": 4}

        args, kwargs = http_session.request.call_args
        assert args == ("GET", "https://api.test/api/credits/balance")
        assert kwargs["timeout"] == 5

    def test_post_sends_json_body(self, api_client, http_session):
        http_session.request.return_value = make_response(200, {"ok": True})

        api_client.post("/api/credits/spend", json={"contentType": "tip", "contentId": "7"})

        assert http_session.request.call_args.kwargs["json"] == {"contentType": "tip", "contentId": "7"}

    def test_empty_body_returns_none(self, api_client, http_session):
        http_session.request.return_value = make_response(204)
        assert api_client.delete("/api/tickets/1") is None

    def test_malformed_body(self, api_client, http_session):
        http_session.request.return_value = make_response(200, raw=b"<html>")

        with pytest.raises(ApiError) as exc_info:
            api_client.get("/api/tickets")

        assert exc_info.value.code is ErrorCode.UNKNOWN_ERROR

    def test_app_version_headers(self, api_client, http_session):
        assert http_session.headers["X-App-Version"]
        assert http_session.headers["X-Build-Number"]


class TestAuthToken:
    def test_bearer_header_when_logged_in(self, api_client, http_session):
        api_client.set_auth_token("abc123")
        http_session.request.return_value = make_response(200, [])

        api_client.get("/api/tickets")

        assert http_session.request.call_args.kwargs["headers"]["Authorization"] == "Bearer abc123"

    def test_no_header_when_logged_out(self, api_client, http_session):
        http_session.request.return_value = make_response(200, [])

        api_client.get("/api/tickets")

        assert "Authorization" not in http_session.request.call_args.kwargs["headers"]

    def test_token_helpers(self, api_client):
        assert not api_client.is_authenticated()
        api_client.set_auth_token("abc")
        assert api_client.get_auth_token() == "abc"
        api_client.clear_auth_token()
        assert not api_client.is_authenticated()

    def test_401_clears_credentials(self, api_client, http_session, store):
        api_client.set_auth_token("expired")
        store.set_item(StorageKeys.USER_DATA, "{}")
        http_session.request.return_value = make_response(401, {"message": "Token expired"})

        with pytest.raises(UnauthorizedError) as exc_info:
            api_client.get("/api/tickets")

        assert exc_info.value.message == "Token expired"
        assert store.get_item(StorageKeys.AUTH_TOKEN) is None
        assert store.get_item(StorageKeys.USER_DATA) is None


class TestErrorMapping:
    def test_402_carries_required_and_available(self, api_client, http_session):
        http_session.request.return_value = make_response(
            402, {"code": "INSUFFICIENT_CREDITS", "required": 5, "available": 2}
        )

        with pytest.raises(InsufficientCreditsError) as exc_info:
            api_client.post("/api/credits/spend")

        error = exc_info.value
        assert error.code is ErrorCode.INSUFFICIENT_CREDITS
        assert (error.required, error.available) == (5, 2)
        assert error.status == 402

    def test_403_expert_required(self, api_client, http_session):
        http_session.request.return_value = make_response(403, {"code": "EXPERT_REQUIRED"})

        with pytest.raises(TierRequiredError) as exc_info:
            api_client.post("/api/ai-chat/convert-credits")

        assert exc_info.value.code is ErrorCode.EXPERT_REQUIRED

    def test_403_other(self, api_client, http_session):
        http_session.request.return_value = make_response(403, {"message": "Nope"})

        with pytest.raises(ApiError) as exc_info:
            api_client.get("/api/tickets")

        assert exc_info.value.code is ErrorCode.FORBIDDEN
        assert exc_info.value.message == "Nope"

    @pytest.mark.parametrize("status,code", [
        (400, ErrorCode.BAD_REQUEST),
        (404, ErrorCode.NOT_FOUND),
        (409, ErrorCode.CONFLICT),
        (422, ErrorCode.VALIDATION_ERROR),
        (429, ErrorCode.RATE_LIMIT),
        (418, ErrorCode.UNKNOWN_ERROR),
    ])
    def test_status_codes(self, api_client, http_session, status, code):
        http_session.request.return_value = make_response(status, {})

        with pytest.raises(ApiError) as exc_info:
            api_client.get("/api/tickets")

        assert exc_info.value.code is code
        assert exc_info.value.status == status

    @pytest.mark.parametrize("status", [500, 502, 503, 504])
    def test_server_errors(self, api_client, http_session, status):
        http_session.request.return_value = make_response(status, raw=b"Bad gateway")

        with pytest.raises(ServerError) as exc_info:
            api_client.get("/api/tickets")

        assert exc_info.value.message == "Server error"

    def test_422_field_errors(self, api_client, http_session):
        http_session.request.return_value = make_response(
            422, {"message": "Invalid stake", "errors": {"stake": ["must be positive"]}}
        )

        with pytest.raises(ApiError) as exc_info:
            api_client.post("/api/tickets", json={})

        assert exc_info.value.errors == {"stake": ["must be positive"]}

    def test_timeout(self, api_client, http_session):
        http_session.request.side_effect = requests.exceptions.Timeout()

        with pytest.raises(RequestTimeout) as exc_info:
            api_client.get("/api/tickets")

        assert exc_info.value.code is ErrorCode.TIMEOUT

    def test_connection_error(self, api_client, http_session):
        http_session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(NetworkError) as exc_info:
            api_client.get("/api/tickets")

        assert exc_info.value.code is ErrorCode.NETWORK_ERROR


class TestUserAction:
    def test_actions(self):
        assert user_action(InsufficientCreditsError(required=5, available=2)) == "top_up"
        assert user_action(TierRequiredError()) == "upgrade"
        assert user_action(UnauthorizedError()) == "login"
        assert user_action(NetworkError()) == "retry"
        assert user_action(ApiError(ErrorCode.NOT_FOUND, "Not found", status=404)) is None

    def test_retryable(self):
        assert is_retryable(RequestTimeout())
        assert is_retryable(ServerError())
        assert not is_retryable(InsufficientCreditsError())
