"""Low-level HTTP client for the Webex REST and SCIM APIs.

Every call returns an ``ApiResult`` instead of raising, so callers switch on
``result.ok`` / ``result.error_kind`` rather than catching one exception type
per HTTP status family.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://webexapis.com"
REQUEST_TIMEOUT = 30

# Error kinds carried by a failed ApiResult
CLIENT_REJECTED = "client_rejected"
SERVER_ERROR = "server_error"
CONNECTIVITY = "connectivity"
DECODE = "decode"


@dataclass
class ApiResult:
    """Outcome of one provider call.

    Attributes:
        status: Status reported to our caller (provider status on success,
            400/500/503/500 depending on ``error_kind`` on failure)
        data: Decoded JSON body (empty dict when there is none)
        message: Human-readable failure reason, empty on success
        error_kind: One of the module-level error kinds, None on success
        provider_status: Raw HTTP status returned by Webex, if any
    """
    status: int
    data: Any = None
    message: str = ""
    error_kind: Optional[str] = None
    provider_status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    @classmethod
    def failure(cls, kind: str, message: str, provider_status: Optional[int] = None) -> "ApiResult":
        status = {
            CLIENT_REJECTED: 400,
            SERVER_ERROR: 500,
            CONNECTIVITY: 503,
            DECODE: 500,
        }[kind]
        return cls(status=status, data={}, message=message, error_kind=kind, provider_status=provider_status)


class WebexClient:
    """HTTP client bound to one access token.

    Usage:
        client = WebexClient(token, base_url="https://webexapis.com")
        result = client.get("/v1/licenses", params={"orgId": org_id}, action="retrieving licenses")
        if result.ok:
            items = result.data.get("items", [])
    """

    def __init__(self, access_token: str, base_url: Optional[str] = None, timeout: float = REQUEST_TIMEOUT):
        """Initialize the client.

        Args:
            access_token: OAuth bearer token of the logged-in administrator
            base_url: API root (defaults to https://webexapis.com)
            timeout: Per-call timeout in seconds
        """
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._token = access_token

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        action: str = "calling the Webex API",
    ) -> ApiResult:
        """Execute one HTTP call and classify its outcome.

        Args:
            method: HTTP verb
            path: Path below the base URL (e.g. "/v1/licenses")
            params: Query parameters
            json: JSON payload
            action: Short description used in failure messages
                (e.g. "retrieving locations")

        Returns:
            ApiResult with either decoded data or a classified failure
        """
        url = f"{self.base_url}{path}"
        try:
            resp = requests.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(),
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json() if resp.content else {}
        except requests.exceptions.HTTPError as exc:
            return self._http_failure(exc, action)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as exc:
            logger.warning("Webex unreachable while %s: %s", action, exc)
            return ApiResult.failure(
                CONNECTIVITY,
                f"Error accessing Webex API when {action}: {exc}",
            )
        except (ValueError, requests.exceptions.RequestException) as exc:
            # ValueError covers JSON decoding of a 2xx body
            logger.error("Unexpected failure while %s: %s", action, exc)
            return ApiResult.failure(
                DECODE,
                f"Error {action} due to logical error in server program: {exc}",
            )

        return ApiResult(status=resp.status_code, data=data, provider_status=resp.status_code)

    def _http_failure(self, exc: requests.exceptions.HTTPError, action: str) -> ApiResult:
        resp = exc.response
        status_code = resp.status_code if resp is not None else 500
        body = resp.text if resp is not None else str(exc)
        if 400 <= status_code < 500:
            logger.info("Webex rejected request while %s (HTTP %s)", action, status_code)
            return ApiResult.failure(
                CLIENT_REJECTED,
                f"Webex API returned a 4xx error for {action}: {body}",
                provider_status=status_code,
            )
        logger.warning("Webex server error while %s (HTTP %s)", action, status_code)
        return ApiResult.failure(
            SERVER_ERROR,
            f"Webex API returned a 5xx error for {action}: {body}",
            provider_status=status_code,
        )

    def get(self, path: str, params: Optional[Dict[str, Any]] = None, action: str = "calling the Webex API") -> ApiResult:
        return self.request("GET", path, params=params, action=action)

    def post(self, path: str, json: Optional[Dict[str, Any]] = None, action: str = "calling the Webex API") -> ApiResult:
        return self.request("POST", path, json=json, action=action)

    def patch(self, path: str, json: Optional[Dict[str, Any]] = None, action: str = "calling the Webex API") -> ApiResult:
        return self.request("PATCH", path, json=json, action=action)
