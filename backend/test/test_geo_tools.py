import pytest

from domain import GeoTools


class TestParseLatLng:

    def test_parses_decimal_pair(self):
        assert GeoTools.parse_lat_lng("60.17, 24.94") == (60.17, 24.94)

    @pytest.mark.parametrize("value", ["60", "a,b", "1,2,3", "91,0", "0,181"])
    def test_rejects_malformed_or_out_of_range(self, value):
        with pytest.raises(ValueError):
            GeoTools.parse_lat_lng(value)

    @pytest.mark.parametrize("lat, lng", [
        (float("nan"), 24.0),
        (60.0, float("inf")),
        (95.0, 24.0),
        (60.0, -181.0),
    ])
    def test_check_rejects_non_finite_or_out_of_range(self, lat, lng):
        with pytest.raises(ValueError):
            GeoTools.check_lat_lng(lat, lng)


class TestRectangleBounds:

    def test_ring_is_closed_and_covers_both_corners(self):
        polygon = GeoTools.rectangle_bounds((10.0, 20.0), (0.0, 5.0))

        ring = polygon["coordinates"][0]
        assert polygon["type"] == "Polygon"
        assert ring[0] == ring[-1]
        assert len(ring) == 5
        assert [5.0, 0.0] in ring
        assert [20.0, 10.0] in ring

    def test_ring_is_counter_clockwise(self):
        ring = GeoTools.rectangle_bounds((10.0, 10.0), (0.0, 0.0))["coordinates"][0]

        # Shoelace sum is positive for counter-clockwise rings
        area = sum(x1 * y2 - x2 * y1 for (x1, y1), (x2, y2) in zip(ring, ring[1:]))
        assert area > 0


class TestDmsToDecimal:

    def test_north_east_is_positive(self):
        assert GeoTools.dms_to_decimal((60, 10, 12), "N") == pytest.approx(60.17)

    def test_south_west_is_negative(self):
        assert GeoTools.dms_to_decimal((24, 56, 24), "W") == pytest.approx(-24.94)


def test_point_uses_lng_lat_order():
    assert GeoTools.point(60.0, 24.0) == {"type": "Point", "coordinates": [24.0, 60.0]}
