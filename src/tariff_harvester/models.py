"""Request bodies accepted by the JSON API."""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class DiscoverRequest(BaseModel):
    main_url: str = Field(alias="mainUrl", min_length=1)


class CorsExecuteRequest(BaseModel):
    main_url: str = Field(alias="mainUrl", min_length=1)
    api_url: str = Field(alias="apiUrl", min_length=1)
    journey_url: str | None = Field(default=None, alias="journeyUrl")

    @field_validator("journey_url")
    @classmethod
    def blank_journey_is_none(cls, value: str | None) -> str | None:
        return value or None


class FetchTariffsRequest(BaseModel):
    device_id: str = Field(alias="deviceId", min_length=1)
    capacity: str | None = None
    cookies: dict[str, Any] = Field(default_factory=dict)

    @field_validator("capacity", mode="before")
    @classmethod
    def capacity_as_text(cls, value):
        return None if value is None else str(value)
