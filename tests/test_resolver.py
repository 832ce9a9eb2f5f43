"""Tests for location string parsing and resolution."""

from __future__ import annotations

import logging

import pytest

from geotopo.gazetteer import Gazetteer
from geotopo.models import Device, EquipmentInfo
from geotopo.resolver import NOT_FOUND, LocationResolver, parse_location


@pytest.mark.parametrize(
    "text,city,country",
    [
        ("Boston, MA, USA", "Boston", "USA"),
        ("London, UK", "London", "UK"),
        ("Paris,", "Paris", None),
        ("NYC-DC-01", "NYC", None),
        ("DC-Rack-Paris", "Paris", None),
        ("Tokyo-DC-01", "Tokyo", None),
        ("SW-01-Osaka", "Osaka", None),
        ("DC1-London", "London", None),
        ("Rack12-Paris", "Paris", None),
        ("Server01-Berlin", "Berlin", None),
        ("Node3-Tokyo", "Tokyo", None),
        ("Frankfurt", "Frankfurt", None),
        ("  São Paulo  ", "São Paulo", None),
        ("", "", None),
    ],
)
def test_parse_location(text: str, city: str, country: str | None) -> None:
    assert parse_location(text) == (city, country)


def test_parse_location_falls_back_to_first_segment() -> None:
    # Every segment is technical or too short
    assert parse_location("DC-01-SW").city == "DC"


def test_technical_tokens_match_whole_words() -> None:
    # "Dataville" contains "data" but is not a technical word
    assert parse_location("Rack-Dataville").city == "Dataville"
    assert parse_location("Main Data Center-Rome").city == "Rome"


def test_country_qualified_lookup_prefers_named_country(resolver: LocationResolver) -> None:
    usa = resolver.resolve("Boston, MA, USA")
    uk = resolver.resolve("Boston, UK")

    assert usa.found and uk.found
    assert usa.latitude == pytest.approx(42.3601)
    assert uk.latitude == pytest.approx(52.9789)


def test_country_alias_by_full_name(resolver: LocationResolver) -> None:
    record = resolver.find("Boston, Lincolnshire, England")
    assert record is not None
    assert record.country == "United Kingdom"


def test_iso_code_country(resolver: LocationResolver) -> None:
    record = resolver.find("Frankfurt, DE")
    assert record is not None
    assert record.iso3 == "DEU"


def test_unknown_country_falls_back_to_simple_lookup(resolver: LocationResolver) -> None:
    record = resolver.find("Boston, Narnia")
    assert record is not None
    # Simple index prefers the larger admin capital
    assert record.admin_name == "Massachusetts"


def test_hyphenated_site_code(resolver: LocationResolver) -> None:
    resolution = resolver.resolve("Tokyo-DC-01")
    assert resolution.found
    assert (resolution.latitude, resolution.longitude) == pytest.approx(
        (35.6762, 139.6503)
    )


def test_not_found(resolver: LocationResolver) -> None:
    assert resolver.resolve("Atlantis") == NOT_FOUND
    assert resolver.resolve("") == NOT_FOUND
    assert resolver.find("NYC-DC-01") is None


def test_empty_gazetteer_never_resolves() -> None:
    resolver = LocationResolver(Gazetteer.empty())
    assert resolver.resolve("Paris, France") == NOT_FOUND


def test_refresh_device_updates_coordinates(resolver: LocationResolver) -> None:
    device = Device("d1", EquipmentInfo(location="Paris, France"))

    assert resolver.refresh_device(device) is True
    assert device.equipment.latitude == pytest.approx(48.8566)
    assert device.equipment.longitude == pytest.approx(2.3522)


def test_refresh_device_miss_keeps_coordinates(
    resolver: LocationResolver, caplog: pytest.LogCaptureFixture
) -> None:
    device = Device("d2", EquipmentInfo(location="Atlantis", latitude=1.5, longitude=2.5))

    with caplog.at_level(logging.INFO, logger="geotopo"):
        assert resolver.refresh_device(device) is False

    assert device.equipment.coordinates == (1.5, 2.5)
    assert "Could not find coordinates for d2" in caplog.text


def test_refresh_device_without_equipment(resolver: LocationResolver) -> None:
    assert resolver.refresh_device(Device("d3")) is False
    assert resolver.refresh_device(Device("d4", EquipmentInfo(location="  "))) is False
