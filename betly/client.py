"""
HTTP client for the Betly remote API.

This module wraps a requests Session with auth and app-version headers and
translates every failure into the typed errors in betly.errors. It performs
no business logic - only transport, auth token handling and error mapping.
"""

import logging
from typing import Any, Optional

import requests
from requests.exceptions import RequestException, Timeout, ConnectionError

from betly.config import Config
from betly.errors import (
    ApiError,
    ErrorCode,
    InsufficientCreditsError,
    NetworkError,
    RequestTimeout,
    ServerError,
    TierRequiredError,
    UnauthorizedError,
)
from betly.storage import KeyValueStore, StorageKeys

# Configure module logger
logger = logging.getLogger(__name__)

_SERVER_ERROR_STATUSES = {500, 502, 503, 504}

# status -> (code, default message)
_STATUS_CODES = {
    400: (ErrorCode.BAD_REQUEST, "Bad request"),
    403: (ErrorCode.FORBIDDEN, "Forbidden"),
    404: (ErrorCode.NOT_FOUND, "Not found"),
    409: (ErrorCode.CONFLICT, "Conflict"),
    422: (ErrorCode.VALIDATION_ERROR, "Validation failed"),
    429: (ErrorCode.RATE_LIMIT, "Too many requests"),
}


class ApiClient:
    """
    Thin JSON client for the remote API.

    A single request timeout is configured once; there is no per-call
    cancellation. A 401 response clears the stored credentials before the
    UnauthorizedError is raised.
    """

    def __init__(
        self,
        store: KeyValueStore,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            store: Key-value store holding the auth token
            base_url: API root. If None, uses Config.API_BASE_URL
            timeout: Request timeout in seconds. If None, uses Config.API_TIMEOUT
            session: requests Session to use (injectable for tests)
        """
        self.store = store
        self.base_url = (base_url or Config.API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else Config.API_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-App-Version": Config.APP_VERSION,
            "X-Build-Number": Config.BUILD_NUMBER,
        })

    # Token management

    def set_auth_token(self, token: str) -> bool:
        return self.store.set_item(StorageKeys.AUTH_TOKEN, token)

    def get_auth_token(self) -> Optional[str]:
        return self.store.get_item(StorageKeys.AUTH_TOKEN)

    def clear_auth_token(self) -> bool:
        return self.store.delete_item(StorageKeys.AUTH_TOKEN)

    def is_authenticated(self) -> bool:
        return bool(self.get_auth_token())

    def _clear_credentials(self) -> None:
        self.store.delete_item(StorageKeys.AUTH_TOKEN)
        self.store.delete_item(StorageKeys.USER_DATA)

    # Verbs

    def get(self, path: str, params: Optional[dict] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Optional[Any] = None) -> Any:
        return self.request("POST", path, json=json)

    def put(self, path: str, json: Optional[Any] = None) -> Any:
        return self.request("PUT", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def request(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
        params: Optional[dict] = None,
    ) -> Any:
        """
        Send a request and decode the JSON response.

        Args:
            method: HTTP method
            path: Path relative to the API root (see betly.endpoints)
            json: JSON body, if any
            params: Query parameters, if any

        Returns:
            Decoded JSON body, or None for an empty body

        Raises:
            ApiError: On any transport or HTTP failure (see _error_from_response)
        """
        url = f"{self.base_url}{path}"
        headers = {}
        token = self.get_auth_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method,
                url,
                json=json,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )

        except Timeout:
            logger.error(f"{method} {path} timed out after {self.timeout}s")
            raise RequestTimeout()

        except ConnectionError as e:
            logger.error(f"Connection error on {method} {path}: {e}")
            raise NetworkError()

        except RequestException as e:
            logger.error(f"Request failed on {method} {path}: {e}")
            raise NetworkError()

        if not response.ok:
            error = self._error_from_response(response)
            logger.warning(f"{method} {path} failed: {error.code.value} ({response.status_code})")
            raise error

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Failed to parse JSON response from {method} {path}: {e}")
            raise ApiError(ErrorCode.UNKNOWN_ERROR, "Malformed response", status=response.status_code)

    def _error_from_response(self, response: requests.Response) -> ApiError:
        """Translate a non-2xx response into a typed error."""
        status = response.status_code
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            data = {}

        message = data.get("message")

        if status == 401:
            self._clear_credentials()
            return UnauthorizedError(message or "Unauthorized", status=status)

        if status == 402:
            return InsufficientCreditsError(
                message or "Insufficient credits",
                status=status,
                required=data.get("required"),
                available=data.get("available"),
            )

        if status == 403 and data.get("code") == ErrorCode.EXPERT_REQUIRED.value:
            return TierRequiredError(message or "Expert subscription required", status=status)

        if status in _SERVER_ERROR_STATUSES:
            return ServerError(message or "Server error", status=status)

        code, default_message = _STATUS_CODES.get(status, (ErrorCode.UNKNOWN_ERROR, "Request failed"))
        return ApiError(
            code,
            message or default_message,
            status=status,
            errors=data.get("errors") if status in (400, 422) else None,
        )
