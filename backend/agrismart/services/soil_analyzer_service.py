# backend/agrismart/services/soil_analyzer_service.py

"""
Soil Analyzer Service
---------------------

Rule-based fertilizer recommendation from a single soil reading.

Rules are evaluated in priority order and the first nutrient below its
threshold wins:
  - nitrogen   < 50 ppm  -> 20-10-10
  - phosphorus < 30 ppm  -> 10-20-10
  - potassium  < 100 ppm -> 10-10-20
  - otherwise            -> 10-10-10 (balanced)

Soil type then adjusts the application rate and appends a note
(sandy / clay only).

Inputs go through parse_soil_sample() first: anything that is not a finite
number is rejected instead of silently falling through a comparison.
"""

import asyncio
from typing import Any, Dict, List, Mapping

from pydantic import ValidationError

from agrismart.schemas.soil import SoilSample, RecommendationResult


class SoilSampleError(ValueError):
    """Raised when a soil reading has missing or non-numeric fields."""

    def __init__(self, fields: List[str]):
        self.fields = fields
        super().__init__(f"Invalid or missing soil sample fields: {', '.join(fields)}")


DEFAULT_APPLICATION_RATE = "200-300 kg/hectare"

# (nutrient, threshold ppm, recommendation, npk ratio, note)
_NUTRIENT_RULES = [
    (
        "nitrogen", 50.0,
        "Nitrogen-rich fertilizer recommended", "20-10-10",
        "Low nitrogen levels detected. Consider organic nitrogen sources.",
    ),
    (
        "phosphorus", 30.0,
        "Phosphorus-enhanced fertilizer", "10-20-10",
        "Phosphorus deficiency may affect root development.",
    ),
    (
        "potassium", 100.0,
        "Potassium-rich fertilizer", "10-10-20",
        "Potassium boost needed for fruit and grain development.",
    ),
]

_BALANCED = (
    "Balanced NPK fertilizer", "10-10-10",
    "Apply during early growing season.",
)

# soil type -> (application rate, extra note)
_SOIL_ADJUSTMENTS: Dict[str, tuple] = {
    "sandy": ("150-250 kg/hectare", " Sandy soil requires more frequent applications."),
    "clay": ("250-350 kg/hectare", " Clay soil retains nutrients well."),
}


def parse_soil_sample(raw: Mapping[str, Any]) -> SoilSample:
    """
    Explicit parse step for form input (numbers may arrive as text).
    Raises SoilSampleError listing every offending field.
    """
    try:
        return SoilSample.model_validate(dict(raw))
    except ValidationError as exc:
        fields = []
        for err in exc.errors():
            name = str(err["loc"][0]) if err["loc"] else "body"
            if name not in fields:
                fields.append(name)
        raise SoilSampleError(fields) from exc


def generate_recommendation(sample: SoilSample) -> RecommendationResult:
    recommendation, npk_ratio, notes = _BALANCED
    for nutrient, threshold, rec, ratio, note in _NUTRIENT_RULES:
        if getattr(sample, nutrient) < threshold:
            recommendation, npk_ratio, notes = rec, ratio, note
            break

    application_rate = DEFAULT_APPLICATION_RATE
    adjustment = _SOIL_ADJUSTMENTS.get(sample.soil_type)
    if adjustment:
        application_rate, extra = adjustment
        notes += extra

    return RecommendationResult(
        recommendation=recommendation,
        npk_ratio=npk_ratio,
        application_rate=application_rate,
        additional_notes=notes,
    )


async def analyze(sample: SoilSample, delay: float = 0.0) -> RecommendationResult:
    """generate_recommendation() behind an optional cosmetic delay (cancellable)."""
    if delay > 0:
        await asyncio.sleep(delay)
    return generate_recommendation(sample)
