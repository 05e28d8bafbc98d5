# backend/agrismart/schemas/soil.py

from typing import Literal, Optional
from pydantic import ConfigDict, Field, field_validator

from .base import CamelModel

SoilType = Literal["loamy", "clay", "sandy", "silt", "peaty", "chalky"]


class SoilSample(CamelModel):
    model_config = ConfigDict(frozen=True)

    temperature: float = Field(allow_inf_nan=False)   # °C
    humidity: float = Field(allow_inf_nan=False)      # %
    moisture: float = Field(allow_inf_nan=False)      # %
    nitrogen: float = Field(allow_inf_nan=False)      # ppm
    phosphorus: float = Field(allow_inf_nan=False)    # ppm
    potassium: float = Field(allow_inf_nan=False)     # ppm
    soil_type: SoilType

    @field_validator("soil_type", mode="before")
    @classmethod
    def _normalize_soil_type(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class RecommendationResult(CamelModel):
    model_config = ConfigDict(frozen=True)

    recommendation: str
    npk_ratio: str
    application_rate: str
    additional_notes: str


class AnalysisResponse(RecommendationResult):
    id: Optional[str] = None
