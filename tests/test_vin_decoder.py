"""Tests for VIN validation and NHTSA decoding."""

import httpx
import pytest
from motorai.services import vin_decoder
from motorai.services.vin_decoder import (
    VinDecodeError,
    VinDecodeResult,
    decode_vin,
    is_valid_vin,
    parse_nhtsa_results,
)

VIN = "1HGCV1F34JA000001"

ACCORD_RESULTS = [
    {"Variable": "Make", "Value": "HONDA"},
    {"Variable": "Model", "Value": "Accord"},
    {"Variable": "Model Year", "Value": "2018"},
    {"Variable": "Engine Model", "Value": "L15BE"},
    {"Variable": "Fuel Type - Primary", "Value": "Gasoline"},
    {"Variable": "Drive Type", "Value": "FWD/Front-Wheel Drive"},
    {"Variable": "Vehicle Type", "Value": "PASSENGER CAR"},
    {"Variable": "Body Class", "Value": "Sedan/Saloon"},
    {"Variable": "Error Code", "Value": "0"},
    {"Variable": "Error Text", "Value": "0 - VIN decoded clean."},
]


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestVinFormat:
    @pytest.mark.parametrize(
        "vin",
        [VIN, VIN.lower(), f"  {VIN}  ", "5YJ3E1EA7KF317000"],
    )
    def test_valid_vins(self, vin):
        assert is_valid_vin(vin)

    @pytest.mark.parametrize(
        "vin",
        ["", "1HGCV1F34JA00000", "1HGCV1F34JA0000012", "1HGCV1F34JA00000I", "1HGCV1F3OJA000001"],
    )
    def test_invalid_vins(self, vin):
        assert not is_valid_vin(vin)

    @pytest.mark.asyncio
    async def test_invalid_format_makes_no_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"Results": ACCORD_RESULTS})

        async with mock_client(handler) as client:
            result = await decode_vin("ABC123", client=client)

        assert not result.success
        assert result.error == VinDecodeError.INVALID_FORMAT
        assert calls == []


class TestParseResults:
    def test_maps_nhtsa_variables(self):
        result = parse_nhtsa_results(VIN, ACCORD_RESULTS)

        assert result.success
        assert result.make == "HONDA"
        assert result.model == "Accord"
        assert result.year == 2018
        assert result.engine_model == "L15BE"
        assert result.fuel_type == "Gasoline"
        assert result.body_class == "Sedan/Saloon"

    def test_missing_fields_are_unknown(self):
        result = parse_nhtsa_results(
            VIN,
            [
                {"Variable": "Make", "Value": "TESLA"},
                {"Variable": "Model Year", "Value": ""},
                {"Variable": "Body Class", "Value": None},
                {"Variable": "Error Code", "Value": "0"},
            ],
        )

        assert result.success
        assert result.make == "TESLA"
        assert result.year is None
        assert result.body_class is None
        assert result.fuel_type is None

    def test_non_numeric_year(self):
        result = parse_nhtsa_results(
            VIN,
            [{"Variable": "Make", "Value": "FORD"}, {"Variable": "Model Year", "Value": "n/a"}],
        )

        assert result.success
        assert result.year is None

    def test_no_data_with_error_code(self):
        result = parse_nhtsa_results(
            VIN,
            [
                {"Variable": "Error Code", "Value": "8"},
                {"Variable": "Error Text", "Value": "8 - No detailed data available currently"},
            ],
        )

        assert not result.success
        assert result.error == VinDecodeError.NO_DATA
        assert "No detailed data" in result.error_message

    def test_partial_decode_with_error_code_is_accepted(self):
        results = [row for row in ACCORD_RESULTS if row["Variable"] != "Error Code"]
        results.append({"Variable": "Error Code", "Value": "1"})

        result = parse_nhtsa_results(VIN, results)

        assert result.success
        assert result.model == "Accord"

    def test_dict_round_trip_keeps_error_enum(self):
        original = VinDecodeResult(
            vin=VIN, success=False, error=VinDecodeError.NO_DATA, error_message="nothing"
        )

        restored = VinDecodeResult.from_dict(original.to_dict())

        assert restored == original


class TestDecodeVin:
    @pytest.mark.asyncio
    async def test_successful_decode(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"Results": ACCORD_RESULTS})

        async with mock_client(handler) as client:
            result = await decode_vin(VIN.lower(), client=client)

        assert result.success
        assert result.vin == VIN
        assert result.make == "HONDA"
        assert len(requests) == 1
        assert requests[0].url.path.endswith(f"/vehicles/DecodeVin/{VIN}")
        assert requests[0].url.params["format"] == "json"

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        async with mock_client(lambda request: httpx.Response(503)) as client:
            result = await decode_vin(VIN, client=client)

        assert not result.success
        assert result.error == VinDecodeError.LOOKUP_FAILED
        assert "503" in result.error_message

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_client(handler) as client:
            result = await decode_vin(VIN, client=client)

        assert not result.success
        assert result.error == VinDecodeError.LOOKUP_FAILED

    @pytest.mark.asyncio
    async def test_unreadable_body(self):
        async with mock_client(lambda request: httpx.Response(200, text="<html>")) as client:
            result = await decode_vin(VIN, client=client)

        assert not result.success
        assert result.error == VinDecodeError.LOOKUP_FAILED

    @pytest.mark.asyncio
    async def test_empty_results_are_unknown_not_errors(self):
        async with mock_client(lambda request: httpx.Response(200, json={"Results": []})) as client:
            result = await decode_vin(VIN, client=client)

        assert result.success
        assert result.make is None
        assert result.year is None

    @pytest.mark.asyncio
    async def test_cache_hit_skips_request(self, monkeypatch):
        cached = VinDecodeResult(vin=VIN, success=True, make="HONDA", year=2018).to_dict()

        async def fake_get_cached(vin):
            return cached

        monkeypatch.setattr(vin_decoder, "get_cached_vin_decode", fake_get_cached)

        def handler(request):
            raise AssertionError("NHTSA should not be called on a cache hit")

        async with mock_client(handler) as client:
            result = await decode_vin(VIN, client=client)

        assert result.success
        assert result.make == "HONDA"

    @pytest.mark.asyncio
    async def test_only_successful_decodes_are_cached(self, monkeypatch):
        cached = []

        async def fake_cache(vin, payload, ttl=None):
            cached.append(vin)
            return True

        monkeypatch.setattr(vin_decoder, "cache_vin_decode", fake_cache)

        async with mock_client(
            lambda request: httpx.Response(200, json={"Results": ACCORD_RESULTS})
        ) as client:
            await decode_vin(VIN, client=client)
        async with mock_client(lambda request: httpx.Response(500)) as client:
            await decode_vin("5YJ3E1EA7KF317000", client=client)

        assert cached == [VIN]
