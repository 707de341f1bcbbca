from ipaddress import ip_address as parse_ip_address
from typing import Annotated

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError

from geolocator.config import LocatorConfig
from geolocator.errors import BadRequestError, ForbiddenError, LocatorError, NotFoundError
from geolocator.exception_handlers import (
    request_validation_exception_handler,
    unhandled_exception_handler,
)
from geolocator.factory import LocatorProviderFactory
from geolocator.logger import configure_logging, logger
from geolocator.models.common import LocateResponse
from geolocator.models.request_models import LocateRequest, Provider
from geolocator.models.response_models import GeolocateResponse, HealthResponse

app = FastAPI(
    title="Geolocation Relay Service",
    version="0.1.0",
    description="Resolves cell tower and Wi-Fi observations to coordinates via Mozilla, Google or Yandex.",
)
configure_logging()
logger.info("Started Geolocation Relay Service")


def get_locator_provider_factory() -> LocatorProviderFactory:
    """Dependency to provide a LocatorProviderFactory configured from GEOLOCATOR_* variables."""
    return LocatorProviderFactory(LocatorConfig.from_env())


app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


def _caller_ip(request: Request) -> str | None:
    """First X-Forwarded-For entry, else the peer address, when it is a valid IP."""
    x_forwarded_for = request.headers.get("x-forwarded-for")
    candidate = x_forwarded_for.split(",")[0].strip() if x_forwarded_for else None
    if not candidate and request.client:
        candidate = request.client.host
    if not candidate:
        return None
    try:
        parse_ip_address(candidate)
    except ValueError:
        return None
    return candidate


def _upstream_error(status_code: int, code: str, exc: Exception, provider: Provider) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "code": code,
            "message": str(exc) or exc.__class__.__name__,
            "provider": provider,
        },
    )


@app.get(
    "/health",
    tags=["health"],
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def health() -> HealthResponse:
    """Basic health check endpoint."""
    return HealthResponse(status="ok")


@app.post(
    "/v1/geolocate",
    response_model=GeolocateResponse,
    status_code=status.HTTP_200_OK,
    tags=["geolocation"],
    summary="Resolve observed cell towers and Wi-Fi access points to a location.",
)
async def geolocate(
    request: Request,
    body: LocateRequest,
    provider_factory: Annotated[LocatorProviderFactory, Depends(get_locator_provider_factory)],
    provider: Provider = Provider.mozilla,
) -> GeolocateResponse:
    """Forward the observations to the selected provider and relay its answer.

    - If the body carries no `ipAddress`, the caller's address (X-Forwarded-For
      or the peer address) is forwarded instead, when it is a valid IP.
    - `provider` selects the upstream service; Mozilla is the default.
    """
    if body.ip_address is None:
        caller_ip = _caller_ip(request)
        if caller_ip:
            body = body.model_copy(update={"ip_address": caller_ip})

    locator = provider_factory(provider)
    logger.info(
        "Performing geolocation lookup "
        f"path={request.url.path} method={request.method} provider={provider.value} "
        f"cells={len(body.cell_towers)} wifi={len(body.wifi_access_points)}"
    )

    try:
        result: LocateResponse = await locator.locate(body)
    except BadRequestError as exc:
        logger.error(f"Provider rejected the request provider={provider.value} error={exc}")
        raise _upstream_error(status.HTTP_400_BAD_REQUEST, "bad_request", exc, provider) from exc
    except ForbiddenError as exc:
        logger.error(f"Provider quota exhausted provider={provider.value} error={exc}")
        raise _upstream_error(status.HTTP_403_FORBIDDEN, "forbidden", exc, provider) from exc
    except NotFoundError as exc:
        logger.info(f"Provider could not determine a location provider={provider.value}")
        raise _upstream_error(status.HTTP_404_NOT_FOUND, "location_not_found", exc, provider) from exc
    except httpx.TimeoutException as exc:
        logger.error(f"Provider timed out provider={provider.value} error={exc!r}")
        raise _upstream_error(status.HTTP_504_GATEWAY_TIMEOUT, "upstream_timeout", exc, provider) from exc
    except (LocatorError, httpx.HTTPError) as exc:
        logger.exception(f"Upstream geolocation error provider={provider.value} error={exc!r}")
        raise _upstream_error(status.HTTP_502_BAD_GATEWAY, "upstream_error", exc, provider) from exc

    return GeolocateResponse(
        provider=provider,
        latitude=result.location.lat,
        longitude=result.location.lng,
        accuracy=result.accuracy,
        fallback=result.fallback,
    )
