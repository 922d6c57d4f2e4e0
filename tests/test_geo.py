"""Tests for great-circle helpers."""

import math

import pytest

from airwar.util.geo import (
    GeoPoint,
    bearing,
    destination_point,
    great_circle_distance,
    intermediate_point,
    is_path_within_range,
    polygon_centroid,
    random_polygon_vertex,
    sample_great_circle_path,
)
from airwar.util.rng import DeterministicRNG

ONE_DEGREE_KM = 6371.0 * math.pi / 180.0


class TestDistance:
    def test_zero_distance(self):
        """Distance from a point to itself is zero."""
        assert great_circle_distance(10.0, 20.0, 10.0, 20.0) == 0.0

    def test_one_degree_on_equator(self):
        """One degree of longitude on the equator."""
        assert great_circle_distance(0.0, 0.0, 0.0, 1.0) == pytest.approx(ONE_DEGREE_KM)

    def test_symmetric(self):
        """Distance is symmetric."""
        d1 = great_circle_distance(48.85, 2.35, 52.52, 13.40)
        d2 = great_circle_distance(52.52, 13.40, 48.85, 2.35)
        assert d1 == pytest.approx(d2)

    def test_paris_berlin(self):
        """Known city-pair distance."""
        assert great_circle_distance(48.8566, 2.3522, 52.52, 13.405) == pytest.approx(878, abs=5)


class TestPath:
    def test_intermediate_midpoint_on_equator(self):
        """Midpoint on the equator lies halfway in longitude."""
        p = intermediate_point(0.0, 0.0, 0.0, 10.0, 0.5)
        assert p.lat == pytest.approx(0.0, abs=1e-9)
        assert p.lon == pytest.approx(5.0)

    def test_intermediate_of_identical_points(self):
        """Identical endpoints return the point itself."""
        assert intermediate_point(3.0, 4.0, 3.0, 4.0, 0.7) == GeoPoint(3.0, 4.0)

    def test_sample_count_and_endpoints(self):
        """n segments yield n + 1 points including both ends."""
        pts = sample_great_circle_path(0.0, 0.0, 0.0, 10.0, 20)
        assert len(pts) == 21
        assert pts[0].lon == pytest.approx(0.0, abs=1e-9)
        assert pts[-1].lon == pytest.approx(10.0)

    def test_path_within_range_uses_interior_points(self):
        """Range checks consider sampled points between the ends."""
        # (1, 5) is ~111 km from the path midpoint but ~560 km from both ends
        assert is_path_within_range(0.0, 0.0, 0.0, 10.0, 1.0, 5.0, 120.0)
        assert not is_path_within_range(0.0, 0.0, 0.0, 10.0, 1.0, 5.0, 100.0)


class TestBearing:
    def test_north(self):
        """Due north is 0 degrees."""
        assert bearing(0.0, 0.0, 1.0, 0.0) == pytest.approx(0.0)

    def test_east(self):
        """Due east is 90 degrees."""
        assert bearing(0.0, 0.0, 0.0, 1.0) == pytest.approx(90.0)

    def test_destination_point_inverts_distance(self):
        """Travelling one degree east lands one degree east."""
        p = destination_point(0.0, 0.0, 90.0, ONE_DEGREE_KM)
        assert p.lat == pytest.approx(0.0, abs=1e-9)
        assert p.lon == pytest.approx(1.0)


class TestPolygon:
    def test_centroid(self):
        """Centroid of a rectangle outline."""
        c = polygon_centroid([[0.0, 0.0], [2.0, 0.0], [2.0, 4.0], [0.0, 4.0]])
        assert (c.lat, c.lon) == (2.0, 1.0)

    def test_random_vertex_is_a_vertex_with_lat_lon_swapped(self):
        """Outline vertices are lon/lat pairs."""
        outline = [[10.0, 50.0], [11.0, 51.0]]
        p = random_polygon_vertex(outline, DeterministicRNG(1))
        assert (p.lon, p.lat) in {(10.0, 50.0), (11.0, 51.0)}

    def test_random_vertex_empty_outline(self):
        """An empty outline yields the origin."""
        assert random_polygon_vertex([], DeterministicRNG(1)) == GeoPoint(0.0, 0.0)
