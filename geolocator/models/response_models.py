from pydantic import BaseModel

from geolocator.models.request_models import Provider


class HealthResponse(BaseModel):
    """Response model for the health check endpoint."""

    status: str


class GeolocateResponse(BaseModel):
    """Response model for the relay geolocation endpoint."""

    provider: Provider
    latitude: float
    longitude: float
    accuracy: float
    fallback: str | None = None
