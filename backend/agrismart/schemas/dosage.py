# backend/agrismart/schemas/dosage.py

from typing import List, Literal, Optional
from pydantic import Field

from .base import CamelModel

CropType = Literal["rice", "wheat", "corn"]

# keeps amount * price well inside float range
MAX_FIELD_SIZE_ACRES = 100_000


class DosageInputs(CamelModel):
    """Raw calculator inputs; may be incomplete while the user is still typing."""
    nitrogen: float = Field(0.0, ge=0, allow_inf_nan=False)     # ppm
    phosphorus: float = Field(0.0, ge=0, allow_inf_nan=False)   # ppm
    potassium: float = Field(0.0, ge=0, allow_inf_nan=False)    # ppm
    crop_type: Optional[CropType] = None
    field_size_acres: float = Field(1.0, le=MAX_FIELD_SIZE_ACRES, allow_inf_nan=False)


class DosageRequest(DosageInputs):
    crop_type: CropType
    field_size_acres: float = Field(gt=0, le=MAX_FIELD_SIZE_ACRES, allow_inf_nan=False)


class DosageLine(CamelModel):
    fertilizer: str
    amount_kg: int
    cost: int


class DosagePlan(CamelModel):
    crop_type: Optional[CropType] = None
    field_size_acres: float
    lines: List[DosageLine] = []
    total_cost: int = 0
    message: Optional[str] = None
