# backend/agrismart/services/advisory_relay_service.py

"""
Advisory Relay Service
----------------------

Forwards a crop / soil / season selection to an OpenRouter-compatible
chat-completion endpoint and returns the generated advice as plain text.

 - validate_advisory_request(): required field + season checks
 - build_prompt(): fixed prompt template ("Not specified" for missing optionals)
 - clean_recommendation(): strips **bold** markers and ``` fences
 - AdvisoryRelay.recommend(): one single-turn chat request, no retries

Errors:
 - AdvisoryValidationError -> caller mistake (400)
 - UpstreamError           -> provider answered non-2xx (status passed through)
 - RelayFailure            -> transport error / unusable provider payload
"""

import re
import textwrap
from typing import Any, Dict, List, Mapping, Optional

import httpx
from pydantic import ValidationError

from agrismart.core.logger import logger
from agrismart.schemas.advisory import AdvisoryRequest

SYSTEM_INSTRUCTION = (
    "You are an expert agricultural advisor specializing in fertilizer "
    "recommendations and soil management."
)

NOT_SPECIFIED = "Not specified"

REQUIRED_FIELDS = ("soilType", "cropType", "season")

SEASONS = ("Kharif", "Rabi", "Zaid", "Year-round")

_PROMPT_TEMPLATE = textwrap.dedent("""\
    As an agricultural expert, provide fertilizer recommendations for the following conditions:
    Soil Type: {soil_type}
    Crop Type: {crop_type}
    Season: {season}
    Location: {location}
    Current Nutrient Levels: {nutrients}

    Please provide:
    1. Specific fertilizer recommendations with NPK ratios
    2. Application timing and frequency
    3. Dosage recommendations per acre/hectare
    4. Any additional soil management tips

    Format the response in a clear, structured manner suitable for farmers.
""")

_BOLD_RE = re.compile(r"\*\*(.*?)\*\*", re.DOTALL)
_FENCE_LINE_RE = re.compile(r"^[ \t]*```[^\n]*\n?", re.MULTILINE)


class AdvisoryError(Exception):
    pass


class AdvisoryValidationError(AdvisoryError):
    def __init__(self, message: str, fields: Optional[List[str]] = None):
        self.fields = fields or []
        super().__init__(message)


class UpstreamError(AdvisoryError):
    def __init__(self, message: str, status_code: int):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class RelayFailure(AdvisoryError):
    pass


# ---------------------------------------------------------------------
# Request handling
# ---------------------------------------------------------------------
def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _normalize_season(value: str) -> str:
    for season in SEASONS:
        if season.lower() == value.strip().lower():
            return season
    raise AdvisoryValidationError(
        f"Invalid season: {value}. Expected one of: {', '.join(SEASONS)}", ["season"]
    )


def validate_advisory_request(payload: Mapping[str, Any]) -> AdvisoryRequest:
    missing = [name for name in REQUIRED_FIELDS if _blank(payload.get(name))]
    if missing:
        raise AdvisoryValidationError(f"Missing required fields: {', '.join(missing)}", missing)

    data = dict(payload)
    data["season"] = _normalize_season(str(data["season"]))
    for optional in ("location", "nutrients"):
        if _blank(data.get(optional)):
            data[optional] = None

    try:
        return AdvisoryRequest.model_validate(data)
    except ValidationError as exc:
        fields = [str(err["loc"][0]) for err in exc.errors() if err["loc"]]
        raise AdvisoryValidationError(f"Invalid fields: {', '.join(fields)}", fields) from exc


def build_prompt(request: AdvisoryRequest) -> str:
    return _PROMPT_TEMPLATE.format(
        soil_type=request.soil_type,
        crop_type=request.crop_type,
        season=request.season,
        location=request.location or NOT_SPECIFIED,
        nutrients=request.nutrients or NOT_SPECIFIED,
    )


def clean_recommendation(text: str) -> str:
    cleaned = _BOLD_RE.sub(r"\1", text or "")
    cleaned = cleaned.replace("**", "")
    # whole fence lines first (drops the language tag), then fences glued to text
    cleaned = _FENCE_LINE_RE.sub("", cleaned)
    cleaned = cleaned.replace("```", "")
    return cleaned.strip()


# ---------------------------------------------------------------------
# Upstream client
# ---------------------------------------------------------------------
class AdvisoryRelay:
    def __init__(
        self,
        api_key: Optional[str],
        url: str,
        model: str,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.url = url
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings, client: Optional[httpx.AsyncClient] = None) -> "AdvisoryRelay":
        return cls(
            api_key=settings.OPENROUTER_API_KEY,
            url=settings.OPENROUTER_URL,
            model=settings.OPENROUTER_MODEL,
            max_tokens=settings.OPENROUTER_MAX_TOKENS,
            temperature=settings.OPENROUTER_TEMPERATURE,
            timeout=settings.OPENROUTER_TIMEOUT_SECONDS,
            client=client,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_INSTRUCTION},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self._client is not None:
            return await self._client.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, json=payload, headers=headers)

    async def recommend(self, request: AdvisoryRequest) -> str:
        if not self.configured:
            raise RelayFailure("OPENROUTER_API_KEY is not configured")

        payload = self.build_payload(build_prompt(request))
        try:
            response = await self._post(payload)
        except httpx.HTTPError as exc:
            raise RelayFailure(f"Upstream request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.is_success:
            message = "API call failed"
            if isinstance(data, dict) and isinstance(data.get("error"), dict):
                message = data["error"].get("message") or message
            logger.info(
                "Upstream advisory call rejected",
                extra={"status_code": response.status_code},
            )
            raise UpstreamError(message, response.status_code)

        try:
            raw = data["choices"][0]["message"].get("content") or ""
        except (TypeError, KeyError, IndexError) as exc:
            raise RelayFailure("Malformed response from upstream provider") from exc

        return clean_recommendation(raw)
