import asyncio
from abc import ABC, abstractmethod
from http import HTTPStatus
from typing import Any

import httpx

from geolocator.config import LocatorConfig
from geolocator.errors import (
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    ResponseDecodeError,
    UnexpectedStatusError,
)
from geolocator.logger import logger
from geolocator.models.common import LocateResponse
from geolocator.models.request_models import LocateRequest


class BaseLocator(ABC):
    """Abstract base for all geolocation service clients.

    Concrete implementations speak one wire dialect and map the service's
    answer into the normalized LocateResponse shape. A locator keeps no
    state between calls, so one instance may be shared by concurrent tasks.
    """

    def __init__(self, endpoint: str, config: LocatorConfig) -> None:
        self._endpoint = endpoint
        self._config = config

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def config(self) -> LocatorConfig:
        return self._config

    @abstractmethod
    async def locate(self, request: LocateRequest) -> LocateResponse:
        """Send the observed signals to the service and return the resolved location."""
        raise NotImplementedError

    async def _post(self, **kwargs: Any) -> httpx.Response:
        """POST to the bound endpoint, bounding the whole exchange by the configured timeout.

        httpx times connect, write and each read separately; the overall deadline
        caps the whole call and surfaces as httpx.ReadTimeout. Transport failures
        are logged and re-raised as-is.
        """
        timeout = self._config.timeout_seconds
        try:
            return await asyncio.wait_for(self._send(timeout, **kwargs), timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.error(f"Geolocation service did not answer in time endpoint={self._safe_endpoint} timeout={timeout}")
            request = httpx.Request("POST", self._endpoint)
            raise httpx.ReadTimeout(f"No complete response within {timeout} seconds", request=request) from exc
        except httpx.HTTPError as exc:
            logger.error(f"Request to geolocation service failed endpoint={self._safe_endpoint} error={exc!r}")
            raise

    async def _send(self, timeout: float, **kwargs: Any) -> httpx.Response:
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.post(self._endpoint, **kwargs)

    @property
    def _safe_endpoint(self) -> str:
        """Endpoint without its query string, so API keys stay out of the logs."""
        return self._endpoint.split("?", 1)[0]

    def _handle_http_errors(self, status_code: int) -> None:
        """Map non-200 HTTP status codes to locator errors."""
        if status_code == HTTPStatus.OK:
            return

        logger.warning(f"Geolocation service rejected request endpoint={self._safe_endpoint} status={status_code}")

        if status_code == HTTPStatus.BAD_REQUEST:
            # Malformed payload or a bad API key.
            raise BadRequestError(HTTPStatus.BAD_REQUEST.phrase)
        if status_code == HTTPStatus.FORBIDDEN:
            # Daily quota exhausted.
            raise ForbiddenError(HTTPStatus.FORBIDDEN.phrase)
        if status_code == HTTPStatus.NOT_FOUND:
            # No location could be determined from the signals.
            raise NotFoundError(HTTPStatus.NOT_FOUND.phrase)

        raise UnexpectedStatusError(status_code)

    @staticmethod
    def _parse_json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as exc:
            raise ResponseDecodeError(f"Failed to decode geolocation response as JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ResponseDecodeError(f"Expected a JSON object from geolocation service, got {type(data).__name__}")
        return data
