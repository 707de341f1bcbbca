import json
from ipaddress import IPv4Address, ip_address as parse_ip_address
from typing import Any

from pydantic import BaseModel, ValidationError

from geolocator.clients.base import BaseLocator
from geolocator.config import LocatorConfig
from geolocator.errors import ResponseDecodeError
from geolocator.logger import logger
from geolocator.models.common import LocateResponse, Location
from geolocator.models.request_models import LocateRequest

YANDEX_API_VERSION = "1.0"


class YandexPosition(BaseModel):
    latitude: float
    longitude: float
    precision: float
    altitude: float | None = None
    altitude_precision: float | None = None
    type: str | None = None


class YandexLocator(BaseLocator):
    """Client for the Yandex Locator API (http://api.lbs.yandex.net/geolocation).

    Yandex expects a form field named `json` holding its own request shape,
    with the API key carried in every request body:

        {
            "common": {"version": "1.0", "api_key": "..."},
            "gsm_cells": [{"countrycode": 250, "operatorid": 99, "cellid": 42332,
                           "lac": 36002, "signal_strength": -80, "age": 5555}],
            "wifi_networks": [{"mac": "00-1C-F0-E4-BB-F5", "signal_strength": -88, "age": 0}],
            "ip": {"address_v4": "178.247.233.32"}
        }

    and answers with {"position": {"latitude", "longitude", "precision", ...}}.
    Unlike the standard dialect, the device IP is part of the native body.
    """

    def __init__(self, endpoint: str, api_key: str, config: LocatorConfig) -> None:
        super().__init__(endpoint, config)
        self._api_key = api_key

    @property
    def api_key(self) -> str:
        return self._api_key

    async def locate(self, request: LocateRequest) -> LocateResponse:
        payload = self._build_payload(request)
        headers = {"User-Agent": self._config.user_agent}

        logger.debug(
            "Sending Yandex geolocation request "
            f"cells={len(payload.get('gsm_cells', []))} wifi={len(payload.get('wifi_networks', []))} "
            f"ip={'ip' in payload}"
        )
        response = await self._post(data={"json": json.dumps(payload)}, headers=headers)

        self._handle_http_errors(response.status_code)

        data = self._parse_json(response)
        self._handle_provider_error(data)

        return self._normalize_payload(data)

    def _build_payload(self, request: LocateRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "common": {"version": YANDEX_API_VERSION, "api_key": self._api_key},
        }

        if request.cell_towers:
            payload["gsm_cells"] = [
                _drop_none(
                    {
                        "countrycode": cell.mobile_country_code,
                        "operatorid": cell.mobile_network_code,
                        "cellid": cell.cell_id,
                        "lac": cell.location_area_code,
                        "signal_strength": cell.signal_strength,
                        "age": cell.age,
                    }
                )
                for cell in request.cell_towers
            ]

        if request.wifi_access_points:
            payload["wifi_networks"] = [
                _drop_none(
                    {
                        "mac": access_point.mac_address,
                        "signal_strength": access_point.signal_strength,
                        "age": access_point.age,
                    }
                )
                for access_point in request.wifi_access_points
            ]

        # Yandex only takes IPv4 addresses.
        if request.ip_address and not self._config.ignore_ip_method:
            if isinstance(parse_ip_address(request.ip_address), IPv4Address):
                payload["ip"] = {"address_v4": request.ip_address}

        return payload

    def _handle_provider_error(self, data: dict[str, Any]) -> None:
        """Yandex may report failures as {"error": {"code": 403, "message": "..."}} with HTTP 200."""
        error = data.get("error")
        if not error:
            return

        code = error.get("code") if isinstance(error, dict) else None
        try:
            status_code = int(code)
        except (TypeError, ValueError) as exc:
            raise ResponseDecodeError(f"Unrecognized Yandex error payload: {error}") from exc

        self._handle_http_errors(status_code)
        # A 200 code inside an error envelope is still a failure.
        raise ResponseDecodeError(f"Unrecognized Yandex error payload: {error}")

    @staticmethod
    def _normalize_payload(data: dict[str, Any]) -> LocateResponse:
        """Map Yandex's position block into the normalized shape."""
        try:
            position = YandexPosition.model_validate(data.get("position"))
            return LocateResponse(
                location=Location(lat=position.latitude, lng=position.longitude),
                accuracy=position.precision,
            )
        except ValidationError as exc:
            raise ResponseDecodeError(f"Unexpected Yandex response shape: {exc}") from exc


def _drop_none(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}
