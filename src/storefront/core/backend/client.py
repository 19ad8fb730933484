from __future__ import annotations

import logging
from time import perf_counter
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util import Retry

from storefront.core.backend.config import BackendConfig
from storefront.core.backend.exceptions import BackendRequestError, BackendUnavailableError

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = (502, 503, 504)
_ALLOWED_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})

JsonPayload = dict[str, Any] | list[Any]


class StorefrontClient:
    """Thin HTTP client that encapsulates the storefront backend's REST semantics."""

    def __init__(self, config: BackendConfig) -> None:
        self.config = config
        self.base_url = config.base_url
        self.session = requests.Session()
        adapter = HTTPAdapter(max_retries=_build_retry_strategy(config))
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def get(self, path: str, params: dict[str, Any] | None = None) -> JsonPayload:
        return self.request("GET", path, query_params=params)

    def post(self, path: str, params: dict[str, Any] | None = None) -> JsonPayload:
        return self.request("POST", path, json_body=params)

    def put(self, path: str, params: dict[str, Any] | None = None) -> JsonPayload:
        return self.request("PUT", path, json_body=params)

    def patch(self, path: str, params: dict[str, Any] | None = None) -> JsonPayload:
        return self.request("PATCH", path, json_body=params)

    def delete(self, path: str, params: dict[str, Any] | None = None) -> JsonPayload:
        return self.request("DELETE", path, query_params=params)

    def request(
        self,
        method: str,
        path: str,
        json_body: dict[str, Any] | None = None,
        query_params: dict[str, Any] | None = None,
    ) -> JsonPayload:
        """Issue an HTTP request and raise with contextual details when the backend rejects it."""
        url = f"{self.base_url}{path}"
        start = perf_counter()
        try:
            response = self.session.request(
                method=method,
                url=url,
                json=json_body,
                params=query_params,
                timeout=self.config.request_timeout_seconds,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            logger.warning(
                "storefront_backend_unreachable",
                extra={"method": method, "path": path, "error": str(exc)},
            )
            raise BackendUnavailableError(f"{method} {path} failed: {exc}") from exc

        elapsed_ms = round((perf_counter() - start) * 1000, 2)
        try:
            response.raise_for_status()
        except requests.HTTPError as error:
            logger.warning(
                "storefront_backend_error",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "elapsed_ms": elapsed_ms,
                },
            )
            details = response.text.strip()
            message = f"{error} - {details}" if details else str(error)
            raise BackendRequestError(message, status=response.status_code) from error

        logger.debug(
            "storefront_backend_request",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "elapsed_ms": elapsed_ms,
            },
        )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise BackendRequestError(f"{method} {path} returned invalid JSON", status=response.status_code) from exc


def _build_retry_strategy(config: BackendConfig) -> Retry:
    return Retry(
        total=config.max_retries,
        status_forcelist=_RETRYABLE_STATUS_CODES,
        allowed_methods=_ALLOWED_METHODS,
        backoff_factor=config.backoff_factor,
        raise_on_status=False,
    )
