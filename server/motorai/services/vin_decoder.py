"""VIN validation and decoding using the NHTSA vPIC API."""

import enum
import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

import httpx
from motorai.config import settings
from motorai.services.redis_client import cache_vin_decode, get_cached_vin_decode

logger = logging.getLogger(__name__)

# Alphanumeric excluding I, O, Q. The check digit is not verified.
VIN_REGEX = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")

# NHTSA "Variable" name -> result attribute
FIELD_MAPPING = {
    "Make": "make",
    "Model": "model",
    "Model Year": "year",
    "Engine Model": "engine_model",
    "Fuel Type - Primary": "fuel_type",
    "Drive Type": "drive_type",
    "Vehicle Type": "vehicle_type",
    "Body Class": "body_class",
}


class VinDecodeError(str, enum.Enum):
    """Why a decode did not succeed."""

    INVALID_FORMAT = "invalid_format"
    LOOKUP_FAILED = "lookup_failed"
    NO_DATA = "no_data"


@dataclass
class VinDecodeResult:
    """Decoded vehicle attributes. Any attribute may be None (unknown)."""

    vin: str
    success: bool
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    engine_model: Optional[str] = None
    fuel_type: Optional[str] = None
    drive_type: Optional[str] = None
    vehicle_type: Optional[str] = None
    body_class: Optional[str] = None
    error: Optional[VinDecodeError] = None
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["error"] = self.error.value if self.error else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VinDecodeResult":
        data = dict(data)
        if data.get("error"):
            data["error"] = VinDecodeError(data["error"])
        return cls(**data)


def normalize_vin(vin: str) -> str:
    """Uppercase and trim a candidate VIN."""
    return (vin or "").upper().strip()


def is_valid_vin(vin: str) -> bool:
    """Check VIN format: exactly 17 characters, no I, O or Q."""
    return bool(VIN_REGEX.match(normalize_vin(vin)))


def _failure(vin: str, error: VinDecodeError, message: str) -> VinDecodeResult:
    return VinDecodeResult(vin=vin, success=False, error=error, error_message=message)


def _parse_year(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_nhtsa_results(vin: str, results: List[Dict[str, Any]]) -> VinDecodeResult:
    """
    Build a decode result from the NHTSA ``Results`` list.

    Response format: {"Results": [{"Variable": "Make", "Value": "HONDA"}, ...]}

    Error codes "0" (clean decode) and partial-data codes are accepted as
    long as make, model or year came back.
    """
    values: Dict[str, str] = {}
    for result in results:
        variable = result.get("Variable")
        value = result.get("Value")
        if variable and value not in (None, ""):
            values[variable] = str(value).strip()

    error_code = values.get("Error Code")
    error_text = values.get("Error Text")
    has_data = any(values.get(name) for name in ("Make", "Model", "Model Year"))

    if not has_data and error_code and error_code != "0":
        return _failure(
            vin,
            VinDecodeError.NO_DATA,
            error_text or f"VIN decode failed with error code {error_code}",
        )

    decoded: Dict[str, Any] = {}
    for variable, attribute in FIELD_MAPPING.items():
        decoded[attribute] = values.get(variable) or None
    decoded["year"] = _parse_year(decoded["year"])

    return VinDecodeResult(vin=vin, success=True, **decoded)


async def decode_vin(vin: str, client: Optional[httpx.AsyncClient] = None) -> VinDecodeResult:
    """
    Decode a VIN using the NHTSA API with caching.

    Args:
        vin: Candidate VIN (case and surrounding whitespace are ignored)
        client: Optional HTTP client (a short-lived one is created otherwise)

    Returns:
        VinDecodeResult. Never raises: format problems, transport errors and
        empty provider responses are reported through ``error``.

    Note:
        Successful results are cached in Redis for VIN_CACHE_TTL seconds
        since VIN data doesn't change.
    """
    clean_vin = normalize_vin(vin)

    if len(clean_vin) != 17 or not VIN_REGEX.match(clean_vin):
        logger.warning(f"Invalid VIN format: {clean_vin!r}")
        return _failure(
            clean_vin,
            VinDecodeError.INVALID_FORMAT,
            "Invalid VIN format. VIN must be 17 characters "
            "(letters and numbers, excluding I, O, Q)",
        )

    cached = await get_cached_vin_decode(clean_vin)
    if cached:
        return VinDecodeResult.from_dict(cached)

    logger.info(f"VIN cache miss: {clean_vin}, calling NHTSA API")
    url = f"{settings.NHTSA_API_URL}/vehicles/DecodeVin/{clean_vin}"

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.NHTSA_TIMEOUT) as owned_client:
                response = await owned_client.get(url, params={"format": "json"})
        else:
            response = await client.get(url, params={"format": "json"})
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        logger.error(f"NHTSA API returned status {e.response.status_code} for {clean_vin}")
        return _failure(
            clean_vin,
            VinDecodeError.LOOKUP_FAILED,
            f"Failed to decode VIN: NHTSA API returned status {e.response.status_code}",
        )
    except httpx.HTTPError as e:
        logger.error(f"NHTSA API request failed for {clean_vin}: {e}")
        return _failure(clean_vin, VinDecodeError.LOOKUP_FAILED, f"Failed to decode VIN: {e}")
    except ValueError as e:
        logger.error(f"NHTSA API returned an unreadable body for {clean_vin}: {e}")
        return _failure(
            clean_vin, VinDecodeError.LOOKUP_FAILED, "Failed to decode VIN: invalid response"
        )

    result = parse_nhtsa_results(clean_vin, data.get("Results") or [])

    if result.success:
        logger.info(
            f"VIN decoded: {clean_vin} -> {result.year} {result.make} {result.model}"
        )
        await cache_vin_decode(clean_vin, result.to_dict())
    else:
        logger.warning(f"VIN decode returned no data for {clean_vin}: {result.error_message}")

    return result
