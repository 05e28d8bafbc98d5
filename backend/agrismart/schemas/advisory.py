# backend/agrismart/schemas/advisory.py

from typing import Any, Dict, Literal, Optional

from .base import CamelModel

Season = Literal["Kharif", "Rabi", "Zaid", "Year-round"]


class AdvisoryRequest(CamelModel):
    soil_type: str
    crop_type: str
    season: Season
    location: Optional[str] = None
    nutrients: Optional[str] = None

    def input_data(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class AdvisoryResponse(CamelModel):
    success: bool = True
    recommendation: str
    input_data: Dict[str, Any]
    id: Optional[str] = None
