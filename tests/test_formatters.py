"""Tests for display formatters."""

import pytest

import formatters


class TestRegistry:
    """Tests for the formatter registry."""

    def test_builtins_registered(self):
        for name in ("raw", "eto", "fl", "latitude", "longitude"):
            assert name in formatters.list_formatters()

    def test_unknown_formatter(self):
        assert formatters.get_formatter("nope") is None
        assert formatters.format_value("nope", "x") is None

    def test_register(self):
        @formatters.register("test_upper")
        def upper(value):
            return str(value).upper()

        assert formatters.format_value("test_upper", "abc") == "ABC"


class TestEto:
    """Tests for estimated time over formatting."""

    def test_with_seconds(self):
        assert formatters.format_eto("170301220429") == "2017-03-01 22:04:29"

    def test_without_seconds(self):
        assert formatters.format_eto("1703012204") == "2017-03-01 22:04"

    @pytest.mark.parametrize("value", ["", "ABC", "17030122042"])
    def test_unrecognized_kept(self, value):
        assert formatters.format_eto(value) == value


class TestFlightLevel:
    """Tests for flight level formatting."""

    def test_padded(self):
        assert formatters.format_value("fl", 14) == "FL014"
        assert formatters.format_value("fl", 390) == "FL390"

    def test_not_a_number(self):
        assert formatters.format_flight_level("x") == "x"


class TestCoordinates:
    """Tests for latitude and longitude formatting."""

    def test_latitude_with_seconds(self):
        assert formatters.format_latitude("491530N") == "49°15'30\"N"

    def test_latitude_without_seconds(self):
        assert formatters.format_latitude("4900S") == "49°00'00\"S"

    def test_longitude(self):
        assert formatters.format_longitude("0500000W") == "050°00'00\"W"

    def test_unrecognized_kept(self):
        assert formatters.format_latitude("GARBAGE") == "GARBAGE"
        assert formatters.format_longitude("490000N") == "490000N"
