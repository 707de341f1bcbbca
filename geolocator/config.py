import os

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = "GeoTrack/1.0"

_TRUTHY = {"1", "true", "yes", "on"}


class LocatorConfig(BaseModel):
    """Tunables shared by every locator.

    A locator copies the config it was built with, so replacing the
    process-wide default later does not affect clients that already exist.
    """

    model_config = ConfigDict(frozen=True)

    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    ignore_ip_method: bool = False
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls) -> "LocatorConfig":
        """Build a config from GEOLOCATOR_* environment variables, keeping defaults for unset ones."""
        values: dict[str, object] = {}

        timeout = os.getenv("GEOLOCATOR_REQUEST_TIMEOUT")
        if timeout:
            values["timeout_seconds"] = timeout

        ignore_ip = os.getenv("GEOLOCATOR_IGNORE_IP_METHOD")
        if ignore_ip:
            values["ignore_ip_method"] = ignore_ip.strip().lower() in _TRUTHY

        user_agent = os.getenv("GEOLOCATOR_USER_AGENT")
        if user_agent:
            values["user_agent"] = user_agent

        return cls.model_validate(values)


_default_config = LocatorConfig()


def get_default_config() -> LocatorConfig:
    """Return the process-wide config used when the factory is not given one."""
    return _default_config


def set_default_config(config: LocatorConfig) -> None:
    """Replace the process-wide default. Expected to be called once at startup."""
    global _default_config
    _default_config = config
