"""
Plant data models for the Catalog Service.
"""

from typing import List, Optional
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class Plant(BaseModel):
    """A catalog entry as published in the plant documents."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    plant_id: str = Field(..., alias="plantId", description="Unique plant identifier")
    name: str = Field(..., description="Display name")
    description: str = Field("", description="HTML description")
    grow_zone_number: int = Field(-1, alias="growZoneNumber", description="Grow zone number")
    watering_interval: int = Field(7, alias="wateringInterval", description="Days between waterings")
    image_url: str = Field("", alias="imageUrl", description="Image location")


@dataclass(frozen=True)
class GrowZone:
    """Grow zone filter."""
    number: int


NO_GROW_ZONE = GrowZone(-1)


def grow_zone_from_query(number: Optional[int]) -> GrowZone:
    """Map an optional query parameter onto a grow zone."""
    if number is None:
        return NO_GROW_ZONE
    return GrowZone(number)


class PlantListResponse(BaseModel):
    """Response model for a catalog snapshot."""
    grow_zone: Optional[int] = Field(None, description="Applied grow zone filter")
    total: int = Field(..., description="Number of plants")
    plants: List[Plant] = Field(default_factory=list, description="Plants in display order")


class RefreshResponse(BaseModel):
    """Response model for a catalog refresh."""
    grow_zone: Optional[int] = Field(None, description="Refreshed grow zone")
    refreshed: bool = Field(..., description="Whether a network refresh ran")
