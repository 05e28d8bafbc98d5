# backend/agrismart/schemas/growth.py

from datetime import date
from typing import Literal, Optional
from pydantic import ConfigDict, field_validator

from .base import CamelModel

GrowthCrop = Literal["tomato", "rice"]


class GrowthStage(CamelModel):
    model_config = ConfigDict(frozen=True)

    name: str
    days: int            # cumulative day threshold
    description: str


class GrowthPlanRequest(CamelModel):
    crop: GrowthCrop = "tomato"
    planting_date: Optional[date] = None

    @field_validator("crop", mode="before")
    @classmethod
    def _normalize_crop(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("planting_date", mode="before")
    @classmethod
    def _blank_date_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class GrowthStatus(CamelModel):
    crop: GrowthCrop
    planting_date: Optional[date] = None
    current_day: int = 0
    current_stage: Optional[GrowthStage] = None
    progress_percent: float = 0.0


class WeatherReading(CamelModel):
    temperature: float = 25.0   # °C
    humidity: float = 60.0      # %
