from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for models exchanged with standard-dialect services.

    Fields are declared in snake_case and (de)serialized with the camelCase
    names used by the Mozilla and Google geolocation APIs.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Location(BaseModel):
    lat: float
    lng: float


class LocateResponse(CamelModel):
    """Normalized geolocation result, independent of the provider that produced it.

    The shape matches the standard-dialect response body:
    {"location": {"lat": ..., "lng": ...}, "accuracy": ..., "fallback": ...}
    """

    location: Location
    accuracy: float = Field(ge=0, description="Accuracy radius in meters.")
    # Set by Mozilla when the result came from a fallback ("lacf" or "ipf").
    fallback: str | None = None
