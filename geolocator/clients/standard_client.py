import json

from pydantic import ValidationError

from geolocator.clients.base import BaseLocator
from geolocator.errors import ResponseDecodeError
from geolocator.logger import logger
from geolocator.models.common import LocateResponse
from geolocator.models.request_models import DEFAULT_RADIO_TYPE, Fallbacks, LocateRequest


class StandardLocator(BaseLocator):
    """Client for services speaking the standard geolocation dialect.

    Both the Mozilla Location Service and the Google Geolocation API accept
    this shape: https://developers.google.com/maps/documentation/geolocation/requests-geolocation
    The API key, if any, is already part of the bound endpoint URL.
    """

    async def locate(self, request: LocateRequest) -> LocateResponse:
        """POST the request as JSON and normalize the answer.

        The device IP address is never written to the body; when present it is
        forwarded in the X-Forwarded-For header instead.
        """
        ip_address = request.ip_address
        body = self._build_payload(request)

        headers = {
            "Content-Type": "application/json",
            "User-Agent": self._config.user_agent,
        }
        if ip_address:
            headers["X-Forwarded-For"] = ip_address

        logger.debug(
            "Sending standard geolocation request "
            f"endpoint={self._safe_endpoint} cells={len(request.cell_towers)} "
            f"wifi={len(request.wifi_access_points)} forwarded_ip={bool(ip_address)}"
        )
        response = await self._post(content=body, headers=headers)

        self._handle_http_errors(response.status_code)

        data = self._parse_json(response)
        return self._normalize_payload(data)

    def _build_payload(self, request: LocateRequest) -> bytes:
        """Serialize the request, applying the process-wide IP policy."""
        update: dict[str, object] = {"consider_ip": not self._config.ignore_ip_method}
        if self._config.ignore_ip_method:
            update["fallbacks"] = Fallbacks(lac=False, ip=False)
        if not request.radio_type:
            # Mozilla finds nothing when the radio type is missing.
            update["radio_type"] = DEFAULT_RADIO_TYPE

        prepared = request.model_copy(update=update)
        payload = prepared.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"ip_address"})
        return json.dumps(payload).encode("utf-8")

    @staticmethod
    def _normalize_payload(data: dict) -> LocateResponse:
        try:
            return LocateResponse.model_validate(data)
        except ValidationError as exc:
            raise ResponseDecodeError(f"Unexpected geolocation response shape: {exc}") from exc
