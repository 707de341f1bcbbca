import os

import httpx

from geolocator.clients.base import BaseLocator
from geolocator.clients.standard_client import StandardLocator
from geolocator.clients.yandex_client import YandexLocator
from geolocator.config import LocatorConfig, get_default_config
from geolocator.errors import InvalidEndpointError
from geolocator.models.request_models import Provider

MOZILLA_URL = "https://location.services.mozilla.com/v1/geolocate"
GOOGLE_URL = "https://www.googleapis.com/geolocation/v1/geolocate"
YANDEX_URL = "http://api.lbs.yandex.net/geolocation"


def new(endpoint: str, api_key: str = "", config: LocatorConfig | None = None) -> BaseLocator:
    """Build a locator for the given service endpoint.

    - The Yandex endpoint gets a YandexLocator, which sends the key per request.
    - Any other endpoint speaks the standard dialect; a non-empty key is added
      to the URL as the `key` query parameter.

    The config (or the process-wide default when omitted) is frozen into the
    returned client. No network I/O happens here.
    """
    if config is None:
        config = get_default_config()

    if endpoint == YANDEX_URL:
        return YandexLocator(endpoint, api_key, config)

    try:
        url = httpx.URL(endpoint)
    except httpx.InvalidURL as exc:
        raise InvalidEndpointError(f"Invalid geolocation service URL {endpoint!r}: {exc}") from exc

    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidEndpointError(f"Geolocation service URL must be an absolute http(s) URL, got {endpoint!r}")

    if api_key:
        url = url.copy_add_param("key", api_key)

    return StandardLocator(str(url), config)


class LocatorProviderFactory:
    """Factory for the locators served by the relay API.

    Given a Provider enum, returns a locator bound to that provider's endpoint,
    using the API key from the provider's GEOLOCATOR_<NAME>_API_KEY variable.
    """

    ENDPOINTS_MAP: dict[Provider, str] = {
        Provider.mozilla: MOZILLA_URL,
        Provider.google: GOOGLE_URL,
        Provider.yandex: YANDEX_URL,
    }

    def __init__(self, config: LocatorConfig | None = None) -> None:
        self._config = config

    def __call__(self, provider: Provider) -> BaseLocator:
        api_key = os.getenv(f"GEOLOCATOR_{provider.name.upper()}_API_KEY", "")
        return new(self.ENDPOINTS_MAP[provider], api_key, self._config)
