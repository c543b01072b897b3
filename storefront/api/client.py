"""
HTTP client for the storefront REST backend.

Wraps a requests.Session so every call shares one connection pool and one set
of default headers. The Authorization header set here is process-wide: every
request made through this client after set_auth_token() carries it.

Responses must follow the single documented envelope: a JSON object, with
failures described by a "message" field. Anything else on a 2xx answer is a
MalformedResponse.
"""

import logging
from typing import Any, Dict, Optional

import requests

from storefront.errors import MalformedResponse, NetworkFailure, Unauthorized

logger = logging.getLogger(__name__)

AUTH_HEADER = "Authorization"


class ApiClient:
    """Thin JSON client for the storefront API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        http: Optional[requests.Session] = None
    ):
        """
        Initialize ApiClient.

        Args:
            base_url: API root, e.g. http://localhost:5000/api
            timeout: Default per-request timeout in seconds
            http: Session to use (tests pass a stub)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = http if http is not None else requests.Session()
        self._http.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })

    # --- Credentials ---

    @property
    def auth_header(self) -> Optional[str]:
        return self._http.headers.get(AUTH_HEADER)

    def set_auth_token(self, token: str) -> None:
        self._http.headers[AUTH_HEADER] = f"Bearer {token}"

    def clear_auth_token(self) -> None:
        self._http.headers.pop(AUTH_HEADER, None)

    # --- Requests ---

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Send a request and decode the JSON envelope.

        Returns:
            The decoded response body

        Raises:
            Unauthorized: on HTTP 401
            NetworkFailure: on transport errors and other non-2xx answers
            MalformedResponse: on a 2xx answer that is not a JSON object
        """
        url = self.url_for(path)
        try:
            response = self._http.request(
                method.upper(),
                url,
                json=json,
                timeout=timeout or self.timeout,
                **kwargs
            )
        except requests.RequestException as e:
            logger.warning(f"{method.upper()} {url} failed: {e}")
            raise NetworkFailure(str(e) or NetworkFailure.default_message) from e

        status = response.status_code
        if not 200 <= status < 300:
            message = self._error_message(response)
            logger.info(f"{method.upper()} {url} -> {status}: {message}")
            if status == 401:
                raise Unauthorized(message, status=status)
            raise NetworkFailure(message, status=status)

        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponse(status=status) from e

        if not isinstance(body, dict):
            raise MalformedResponse(status=status)
        return body

    def get(self, path: str, **kwargs) -> Dict[str, Any]:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, json: Optional[Dict[str, Any]] = None, **kwargs) -> Dict[str, Any]:
        return self.request("POST", path, json=json, **kwargs)

    def close(self) -> None:
        self._http.close()

    @staticmethod
    def _error_message(response) -> str:
        """Prefer the backend's message field, fall back to the HTTP status text."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"]:
            return body["message"]
        reason = getattr(response, "reason", None) or "Request failed"
        return f"{response.status_code} {reason}"
