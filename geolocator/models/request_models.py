from enum import Enum
from ipaddress import ip_address as parse_ip_address

from pydantic import Field, field_validator

from geolocator.models.common import CamelModel

DEFAULT_RADIO_TYPE = "gsm"


class Provider(str, Enum):
    """Geolocation services exposed by the relay API."""

    mozilla = "mozilla"
    google = "google"
    yandex = "yandex"


class CellTower(CamelModel):
    """A cell tower observed by the device."""

    mobile_country_code: int
    mobile_network_code: int
    location_area_code: int
    cell_id: int
    signal_strength: int | None = None
    age: int | None = None
    radio_type: str | None = None
    timing_advance: int | None = None
    psc: int | None = None


class WifiAccessPoint(CamelModel):
    """A Wi-Fi access point observed by the device."""

    mac_address: str
    signal_strength: int | None = None
    age: int | None = None
    channel: int | None = None
    frequency: int | None = None
    signal_to_noise_ratio: int | None = None
    ssid: str | None = None


class Fallbacks(CamelModel):
    """Which coarse fallbacks the service may use when signals do not resolve."""

    lac: bool = Field(default=True, alias="lacf")
    ip: bool = Field(default=True, alias="ipf")


class LocateRequest(CamelModel):
    """Signals observed by a device, sent to a geolocation service.

    `ip_address` is excluded from serialization: standard-dialect services
    receive it as an X-Forwarded-For header, never in the body.
    """

    radio_type: str | None = Field(default=None, examples=["gsm", "wcdma", "lte"])
    cell_towers: list[CellTower] = Field(default_factory=list)
    wifi_access_points: list[WifiAccessPoint] = Field(default_factory=list)
    ip_address: str | None = Field(
        default=None,
        exclude=True,
        description="Device IPv4 or IPv6 address, forwarded out-of-band.",
        examples=["8.8.8.8"],
    )
    consider_ip: bool = True
    fallbacks: Fallbacks | None = None

    @field_validator("ip_address", mode="before")
    @classmethod
    def _validate_ip_address(cls, value: str | None) -> str | None:
        """Blank becomes None; anything else must be a valid IPv4 or IPv6 literal."""
        if value is None:
            return None

        value_str = str(value).strip()
        if not value_str:
            return None

        try:
            parse_ip_address(value_str)
        except ValueError as exc:
            raise ValueError("ipAddress must be a valid IPv4 or IPv6 address") from exc

        return value_str
