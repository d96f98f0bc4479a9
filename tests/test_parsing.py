import pytest

from nearby_help.http import ProviderError
from nearby_help.models import LatLng
from nearby_help.places_client import build_places_params, parse_places_response
from nearby_help.routes_client import format_coordinates, parse_route_geometry, parse_source_row

from conftest import feature


def test_parse_places_defaults_and_ids():
    response = {
        "features": [
            feature("Central Police", 52.23, 21.01, place_id="abc", address_line1="1 Main St"),
            feature(None, 52.24, 21.02, osm_type="n", osm_id=123, formatted="2 Side St, Town"),
            feature(None, 52.25, 21.03, osm_id=456),
            feature("Nameless Id", 52.26, 21.04),
        ]
    }

    parsed = parse_places_response(response, "police")

    assert [c.id for c in parsed[:3]] == ["abc", "n:123", "p:456"]
    assert parsed[0].name == "Central Police"
    assert parsed[0].address == "1 Main St"
    assert parsed[1].name == "Police Station"
    assert parsed[1].address == "2 Side St, Town"
    assert parsed[2].address is None
    assert parsed[3].id.startswith("h:")
    assert parsed[0].location == LatLng(52.23, 21.01)
    assert parsed[0].eta_sec is None


def test_parse_places_fallback_id_is_stable_across_calls():
    response = {"features": [feature(None, 10.0, 20.0)]}
    first = parse_places_response(response, "hospital")[0]
    second = parse_places_response(response, "hospital")[0]
    assert first.name == "Hospital"
    assert first.id == second.id


def test_parse_places_skips_features_without_coordinates():
    response = {
        "features": [
            {"properties": {"place_id": "x", "name": "No geometry"}},
            {"properties": {"place_id": "y"}, "geometry": {"type": "Point", "coordinates": []}},
            feature("Fire 1", 1.0, 2.0, place_id="z"),
        ]
    }
    parsed = parse_places_response(response, "fire_station")
    assert [c.id for c in parsed] == ["z"]


def test_parse_places_empty_response():
    assert parse_places_response({}, "police") == []


def test_parse_places_unknown_type_raises():
    with pytest.raises(ValueError):
        parse_places_response({"features": []}, "pharmacy")


def test_build_places_params():
    params = build_places_params(LatLng(52.2, 21.0), "hospital", 10000, 50, "key")
    assert params == {
        "categories": "healthcare.hospital",
        "filter": "circle:21.0,52.2,10000",
        "bias": "proximity:21.0,52.2",
        "limit": 50,
        "apiKey": "key",
    }


def test_format_coordinates_is_lon_lat():
    assert format_coordinates([LatLng(1.5, 2.5), LatLng(-3.0, 4.0)]) == "2.5,1.5;4.0,-3.0"


def test_parse_source_row_skips_origin_and_non_finite():
    data = {
        "durations": [[0, 120, None, float("inf"), 60]],
        "distances": [[0, 1000, 2000, None]],
    }
    row = parse_source_row(data, 4)
    assert row["durations"] == [120.0, None, None, 60.0]
    assert row["distances"] == [1000.0, 2000.0, None, None]


def test_parse_source_row_missing_durations():
    assert parse_source_row({"code": "Ok"}, 3) is None
    assert parse_source_row({"durations": []}, 3) is None


def test_parse_route_geometry():
    geometry = {"type": "LineString", "coordinates": [[0, 0], [1, 1]]}
    assert parse_route_geometry({"routes": [{"geometry": geometry}, {"geometry": None}]}) == geometry
    assert parse_route_geometry({"routes": []}) is None
    assert parse_route_geometry({"routes": [{"distance": 10}]}) is None


def test_parse_places_skips_malformed_features():
    response = {
        "features": [
            None,
            "oops",
            {"properties": None, "geometry": {"type": "Point", "coordinates": [21.0]}},
            {"properties": {"place_id": "s"}, "geometry": {"type": "Point", "coordinates": ["x", "y"]}},
            {"properties": {"place_id": "n"}, "geometry": "nowhere"},
            feature("Fire 1", 1.0, 2.0, place_id="ok"),
        ]
    }
    parsed = parse_places_response(response, "fire_station")
    assert [c.id for c in parsed] == ["ok"]


def test_parse_places_features_not_a_list():
    with pytest.raises(ProviderError):
        parse_places_response({"features": {"type": "Feature"}}, "police")


def test_parse_route_geometry_without_usable_coordinates():
    assert parse_route_geometry({"routes": [None]}) is None
    assert parse_route_geometry({"routes": "none"}) is None
    assert parse_route_geometry({"routes": [{"geometry": {"type": "LineString", "coordinates": [[1]]}}]}) is None
