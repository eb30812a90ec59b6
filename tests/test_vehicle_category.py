"""Tests for vehicle category classification."""

import pytest
from motorai.services.vehicle_category import VehicleCategory, determine_vehicle_category


@pytest.mark.parametrize(
    "body_class,vehicle_type,fuel_type,expected",
    [
        ("Sedan/Saloon", "PASSENGER CAR", "Electric", VehicleCategory.ELECTRIC),
        ("Sedan/Saloon", "PASSENGER CAR", "Hybrid Electric", VehicleCategory.HYBRID),
        ("Pickup", "TRUCK", "Plug-in Hybrid", VehicleCategory.HYBRID),
        ("Pickup", "TRUCK", "Gasoline", VehicleCategory.TRUCK),
        ("Cab Chassis", "Truck", "Diesel", VehicleCategory.TRUCK),
        (
            "Sport Utility Vehicle (SUV)/Multi-Purpose Vehicle (MPV)",
            "MULTIPURPOSE PASSENGER VEHICLE (MPV)",
            "Gasoline",
            VehicleCategory.SUV,
        ),
        ("Minivan", "MULTIPURPOSE PASSENGER VEHICLE (MPV)", "Gasoline", VehicleCategory.SUV),
        ("Cargo Van", "BUS", "Gasoline", VehicleCategory.VAN),
        ("Convertible/Cabriolet", "PASSENGER CAR", "Gasoline", VehicleCategory.SPORTS),
        ("Coupe", "PASSENGER CAR", "Gasoline", VehicleCategory.SPORTS),
        ("Roadster", None, None, VehicleCategory.SPORTS),
        ("Sedan/Saloon", "PASSENGER CAR", "Gasoline", VehicleCategory.SEDAN),
        ("Hatchback/Liftback/Notchback", "PASSENGER CAR", "Gasoline", VehicleCategory.SEDAN),
        ("Wagon", None, "Flexible Fuel Vehicle (FFV)", VehicleCategory.SEDAN),
        (None, "PASSENGER CAR", None, VehicleCategory.SEDAN),
        ("Motorcycle - Standard", "MOTORCYCLE", "Gasoline", VehicleCategory.UNKNOWN),
        (None, None, None, VehicleCategory.UNKNOWN),
        ("", "", "", VehicleCategory.UNKNOWN),
    ],
)
def test_determine_vehicle_category(body_class, vehicle_type, fuel_type, expected):
    assert determine_vehicle_category(body_class, vehicle_type, fuel_type) == expected


def test_fuel_beats_body_class():
    """An electric pickup is electric, not a truck."""
    assert determine_vehicle_category("Pickup", "TRUCK", "Electric") == VehicleCategory.ELECTRIC


def test_matching_is_case_insensitive():
    assert determine_vehicle_category("PICKUP", "truck", "gasoline") == VehicleCategory.TRUCK
    assert determine_vehicle_category("sedan", None, "ELECTRIC") == VehicleCategory.ELECTRIC


def test_category_values_are_strings():
    assert VehicleCategory("suv") is VehicleCategory.SUV
    assert VehicleCategory.SEDAN == "sedan"
