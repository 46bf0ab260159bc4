from datetime import date, time

import pytest

from garage_sales.errors import InsufficientStopsError
from garage_sales.geo import distance_km
from garage_sales.itinerary import format_clock, leg_minutes, schedule
from garage_sales.schemas import Coordinates, RouteStop

START = Coordinates(latitude=0, longitude=0)


def line_route():
    return [
        RouteStop(id="a", latitude=0, longitude=0, sale_date=date(2025, 6, 15), start_time=time(8, 0)),
        RouteStop(id="b", latitude=0, longitude=0.01),
        RouteStop(id="c", latitude=0, longitude=0.02),
    ]


def test_timed_plan():
    itinerary = schedule(line_route(), time(9, 0), dwell_minutes=30, speed_minutes_per_km=3.0)
    waypoints = itinerary.waypoints

    assert [w.order for w in waypoints] == [1, 2, 3]
    assert [w.sale_id for w in waypoints] == ["a", "b", "c"]
    assert waypoints[0].distance_from_previous_km == 0
    assert waypoints[0].duration_from_previous_minutes == 0
    assert [w.duration_from_previous_minutes for w in waypoints[1:]] == [4, 4]
    assert [w.estimated_arrival_time for w in waypoints] == ["09:00", "09:34", "10:08"]
    assert itinerary.total_duration_minutes == 8 + 3 * 30
    assert itinerary.sale_ids == ["a", "b", "c"]
    assert itinerary.sale_date == date(2025, 6, 15)
    assert itinerary.end_location == waypoints[-1].coordinates


def test_totals_add_up():
    itinerary = schedule(line_route(), time(9, 0))
    legs = [w.distance_from_previous_km for w in itinerary.waypoints]
    assert itinerary.total_distance_km == pytest.approx(sum(legs))
    assert itinerary.total_distance_km == pytest.approx(
        distance_km(line_route()[0], line_route()[2]), rel=1e-6
    )
    arrivals = [w.arrival_minute for w in itinerary.waypoints]
    assert arrivals == sorted(arrivals)


def test_start_clock_defaults_to_first_stop_opening():
    itinerary = schedule(line_route())
    assert itinerary.waypoints[0].estimated_arrival_time == "08:00"


def test_start_location_is_kept():
    itinerary = schedule(line_route(), time(9, 0), start=Coordinates(latitude=1, longitude=1))
    assert itinerary.start_location == Coordinates(latitude=1, longitude=1)


def test_rounds_leg_time_up():
    assert leg_minutes(0.01, 3.0) == 1
    assert leg_minutes(2.0, 3.0) == 6
    assert leg_minutes(0.0, 3.0) == 0


def test_clock_wraps_past_midnight():
    assert format_clock(23 * 60 + 59) == "23:59"
    assert format_clock(24 * 60 + 5) == "00:05"


def test_json_output_rounds_distances():
    itinerary = schedule(line_route(), time(9, 0))
    data = itinerary.model_dump(mode="json")
    assert data["total_distance_km"] == round(itinerary.total_distance_km, 2)
    assert data["waypoints"][1]["distance_from_previous_km"] == round(
        itinerary.waypoints[1].distance_from_previous_km, 2
    )


@pytest.mark.parametrize("route", [[], line_route()[:1]])
def test_short_routes_are_rejected(route):
    with pytest.raises(InsufficientStopsError):
        schedule(route, time(9, 0))
