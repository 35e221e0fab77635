import logging
from typing import Callable, Optional

import requests

from config import settings

logger = logging.getLogger(__name__)

STATUS_LOG_MESSAGES = {
    401: "Unauthorized access",
    403: "Forbidden access",
    404: "Resource not found",
}


class ApiError(Exception):
    """A failed call to the remote API.

    ``message`` is the server's ``message`` field when it sent one, otherwise the
    transport error text.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class ApiClient:
    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        token_provider: Callable[[], Optional[str]] = None,
        on_unauthorized: Callable[[], None] = None,
        session: requests.Session = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.API_TIMEOUT
        self.token_provider = token_provider
        self.on_unauthorized = on_unauthorized
        self.session = session or requests.Session()

    def _headers(self, multipart: bool):
        headers = {}
        # requests sets the multipart boundary itself
        if not multipart:
            headers["Content-Type"] = "application/json"
        token = self.token_provider() if self.token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(self, method: str, path: str, params=None, json=None, data=None, files=None):
        url = f"{self.base_url}{path}"
        multipart = files is not None or data is not None
        log_level = logging.INFO if settings.API_LOG_REQUESTS else logging.DEBUG
        logger.log(log_level, f"[API Request] {method} {path} {json if json is not None else data}")

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                data=data,
                files=files,
                headers=self._headers(multipart),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"[API Error] No response received: {method} {path}: {e}")
            raise ApiError(str(e)) from e

        if response.status_code >= 400:
            self._handle_error(response)

        logger.log(log_level, f"[API Response] {path} {response.status_code}")
        return response

    def _handle_error(self, response):
        try:
            payload = response.json()
        except ValueError:
            payload = None

        status = response.status_code
        if status >= 500:
            logger.error(f"[API Error] {status}: Server error. Please try again later.")
        else:
            logger.error(f"[API Error] {status}: {STATUS_LOG_MESSAGES.get(status, payload)}")

        if status == 401 and self.on_unauthorized:
            self.on_unauthorized()

        message = None
        if isinstance(payload, dict):
            message = payload.get("message")
        raise ApiError(message or f"Request failed with status code {status}", status, payload)

    def _json(self, response):
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ApiError("Invalid JSON in API response", response.status_code) from e

    def get(self, path: str, params=None):
        return self._json(self.request("GET", path, params=params))

    def get_raw(self, path: str, params=None) -> bytes:
        return self.request("GET", path, params=params).content

    def post(self, path: str, json=None, data=None, files=None):
        return self._json(self.request("POST", path, json=json, data=data, files=files))

    def put(self, path: str, json=None, data=None, files=None):
        return self._json(self.request("PUT", path, json=json, data=data, files=files))

    def patch(self, path: str, json=None):
        return self._json(self.request("PATCH", path, json=json))

    def delete(self, path: str):
        return self._json(self.request("DELETE", path))
