import pytest

from nearby_help.http import ProviderError
from nearby_help.models import Candidate, LatLng
from nearby_help.ranking import format_distance, format_duration, rank_candidates
from nearby_help.routes_client import RoutesClient

from conftest import FakeResponse, table_payload

ORIGIN = LatLng(52.2297, 21.0122)


def candidates(n):
    return [Candidate(id=f"c{i}", name=f"Station {i}", location=LatLng(round(52.2 + i * 0.01, 4), 21.0)) for i in range(n)]


def test_rank_orders_by_duration(make_http):
    http = make_http(lambda url, params: table_payload([120, 45, 300]))
    ranked = rank_candidates(RoutesClient(http), ORIGIN, candidates(3), "driving")

    assert [c.id for c in ranked] == ["c1", "c0", "c2"]
    assert [c.eta_sec for c in ranked] == [45, 120, 300]
    assert ranked[0].distance_m == 450
    assert ranked[0].eta_text == "1 min"
    assert ranked[0].distance_text == "450 m"


def test_rank_drops_non_finite_durations_regardless_of_distance(make_http):
    payload = table_payload([100, None, float("nan"), 50], distances=[1000, 10, 20, 500])
    http = make_http(lambda url, params: payload)
    items = candidates(4)

    ranked = rank_candidates(RoutesClient(http), ORIGIN, items, "driving")

    assert [c.id for c in ranked] == ["c3", "c0"]
    assert items[1].eta_sec is None
    assert items[1].distance_m == 10


def test_rank_ties_keep_input_order(make_http):
    http = make_http(lambda url, params: table_payload([60, 30, 60, 30]))
    ranked = rank_candidates(RoutesClient(http), ORIGIN, candidates(4), "walking")
    assert [c.id for c in ranked] == ["c1", "c3", "c0", "c2"]


def test_rank_empty_input_makes_no_request(make_http):
    http = make_http(lambda url, params: pytest.fail("no request expected"))
    assert rank_candidates(RoutesClient(http), ORIGIN, [], "driving") == []
    assert http.session.calls == []


def test_rank_single_request_with_origin_as_source(make_http):
    http = make_http(lambda url, params: table_payload([10, 20]))
    rank_candidates(RoutesClient(http), ORIGIN, candidates(2), "walking")

    assert len(http.session.calls) == 1
    call = http.session.calls[0]
    assert call["url"] == "https://osrm.test/table/v1/foot/21.0122,52.2297;21.0,52.2;21.0,52.21"
    assert call["params"] == {"sources": "0", "annotations": "duration,distance"}


def test_rank_missing_durations_row_yields_empty(make_http):
    http = make_http(lambda url, params: {"code": "Ok"})
    assert rank_candidates(RoutesClient(http), ORIGIN, candidates(2), "driving") == []


def test_rank_non_success_status_raises(make_http):
    http = make_http(lambda url, params: FakeResponse({"message": "Too many coordinates"}, status_code=400))
    with pytest.raises(ProviderError) as excinfo:
        rank_candidates(RoutesClient(http), ORIGIN, candidates(2), "driving")
    assert excinfo.value.status == 400
    assert excinfo.value.provider == "osrm-table"


def test_rank_osrm_error_code_raises(make_http):
    http = make_http(lambda url, params: {"code": "InvalidQuery", "message": "bad"})
    with pytest.raises(ProviderError):
        rank_candidates(RoutesClient(http), ORIGIN, candidates(1), "driving")


def test_rank_unknown_mode_raises_before_request(make_http):
    http = make_http(lambda url, params: table_payload([1]))
    with pytest.raises(ValueError):
        rank_candidates(RoutesClient(http), ORIGIN, candidates(1), "cycling")
    assert http.session.calls == []


def test_format_duration():
    assert format_duration(29) == "0 min"
    assert format_duration(30) == "1 min"
    assert format_duration(59 * 60) == "59 min"
    assert format_duration(3600) == "1h 0m"
    assert format_duration(3600 + 25 * 60) == "1h 25m"


def test_format_distance():
    assert format_distance(999.4) == "999 m"
    assert format_distance(1000) == "1.0 km"
    assert format_distance(12345) == "12.3 km"
