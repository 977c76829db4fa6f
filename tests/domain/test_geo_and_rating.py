"""Tests for washpoint.domain.geo and washpoint.domain.rating"""
import pytest

from washpoint.core.exceptions import ValidationError
from washpoint.domain.geo import format_distance, haversine_meters
from washpoint.domain.rating import add_rating, remove_rating, validate_rating


class TestHaversine:
    def test_same_point(self):
        assert haversine_meters(10.7725, 106.698, 10.7725, 106.698) == 0

    def test_one_degree_of_latitude(self):
        assert haversine_meters(0, 0, 1, 0) == pytest.approx(111_195, rel=1e-3)

    def test_symmetric(self):
        a = haversine_meters(10.7725, 106.698, 10.803, 106.739)
        b = haversine_meters(10.803, 106.739, 10.7725, 106.698)
        assert a == pytest.approx(b)


class TestFormatDistance:
    @pytest.mark.parametrize("meters,text", [
        (0, "0 m"),
        (850.4, "850 m"),
        (999.4, "999 m"),
        (999.6, "1.0 km"),
        (1000, "1.0 km"),
        (1234, "1.2 km"),
        (15_060, "15.1 km"),
    ])
    def test_format(self, meters, text):
        assert format_distance(meters) == text


class TestRunningMean:
    def test_first_rating(self):
        assert add_rating(0.0, 0, 4) == (4.0, 1)

    def test_incremental_mean(self):
        assert add_rating(4.0, 1, 5) == (4.5, 2)
        avg, count = add_rating(4.5, 2, 3)
        assert count == 3
        assert avg == pytest.approx(4.0)

    def test_remove_reverses_add(self):
        avg, count = add_rating(4.0, 1, 5)
        assert remove_rating(avg, count, 5) == (4.0, 1)

    def test_remove_last(self):
        assert remove_rating(4.0, 1, 4) == (0.0, 0)

    @pytest.mark.parametrize("rating", [0, 6, -1])
    def test_out_of_range(self, rating):
        with pytest.raises(ValidationError):
            validate_rating(rating)
