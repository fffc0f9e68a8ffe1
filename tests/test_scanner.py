# tests/test_scanner.py
import pytest
from unittest.mock import patch
from conftest import make_page, wrap, BROKEN_PAGE
from solar_exporter.config import CONSUMPTION_MARKERS, GENERATION_MARKERS, Reading
from solar_exporter.errors import FieldMissing, NumberUnparseable
from solar_exporter.scanner import find_field, iter_lines, parse_reading, scan, to_milliwatts


class TestIterLines:
    """Tests for iter_lines function."""

    def test_lf_endings(self):
        assert list(iter_lines("a\nb")) == ["a", "b"]

    def test_crlf_endings(self):
        assert list(iter_lines("a\r\nb\r\n")) == ["a", "b", ""]


class TestFindField:
    """Tests for find_field function."""

    def test_value_at_line_start(self):
        """Test a field whose start marker opens the line."""
        body = wrap(GENERATION_MARKERS, "1.500")
        assert find_field(body, GENERATION_MARKERS) == "1.500"

    def test_value_inside_markup(self):
        """Test that text before the start marker is not part of the value."""
        body = f'<td class="num">{wrap(GENERATION_MARKERS, "2.25")}</td>kW'
        assert find_field(body, GENERATION_MARKERS) == "2.25"

    def test_missing_start_marker(self):
        assert find_field(BROKEN_PAGE, GENERATION_MARKERS) is None

    def test_end_marker_on_later_line(self):
        """Test that a field split across lines is treated as absent."""
        body = f"{GENERATION_MARKERS.start}1.500\n{GENERATION_MARKERS.end}"
        assert find_field(body, GENERATION_MARKERS) is None

    def test_end_marker_before_start_marker(self):
        """Test that an end marker preceding the start marker does not match."""
        body = f"{GENERATION_MARKERS.end}1.500{GENERATION_MARKERS.start}"
        assert find_field(body, GENERATION_MARKERS) is None

    def test_first_complete_line_wins(self):
        """Test that lines with only a start marker are skipped."""
        body = "\n".join(
            [
                f"{GENERATION_MARKERS.start}broken",
                wrap(GENERATION_MARKERS, "3.000"),
                wrap(GENERATION_MARKERS, "4.000"),
            ]
        )
        assert find_field(body, GENERATION_MARKERS) == "3.000"

    def test_empty_value(self):
        """Test that adjacent markers yield an empty string, not None."""
        assert find_field(wrap(GENERATION_MARKERS, ""), GENERATION_MARKERS) == ""


class TestScan:
    """Tests for scan function."""

    def test_both_fields_present(self):
        assert scan(make_page("1.500", "0.800")) == ("1.500", "0.800")

    def test_fields_on_same_line(self):
        """Test that both fields may share one line."""
        body = wrap(GENERATION_MARKERS, "1.1") + wrap(CONSUMPTION_MARKERS, "2.2")
        assert scan(body) == ("1.1", "2.2")

    def test_consumption_before_generation(self):
        """Test that field order in the page does not matter."""
        body = wrap(CONSUMPTION_MARKERS, "0.3") + "\n" + wrap(GENERATION_MARKERS, "0.7")
        assert scan(body) == ("0.7", "0.3")

    def test_generation_missing(self):
        assert scan(wrap(CONSUMPTION_MARKERS, "0.8")) is None

    def test_consumption_missing(self):
        assert scan(wrap(GENERATION_MARKERS, "1.5")) is None

    def test_empty_body(self):
        assert scan("") is None


class TestToMilliwatts:
    """Tests for to_milliwatts function."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1.500", 1500),
            ("0.800", 800),
            ("0", 0),
            ("12", 12000),
            ("1.2345", 1235),
            ("1.2344", 1234),
            ("-0.0005", -1),
            ("-1.2345", -1235),
            ("0.0004", 0),
            ("+2.5", 2500),
            (" 3.25 ", 3250),
            ("1e-3", 1),
            ("1.2344999999999999999999999999999", 1234),
            ("1.23450000000000000000000000000001", 1235),
            ("-2.00049999999999999999999999999999", -2000),
        ],
    )
    def test_conversion(self, raw, expected):
        assert to_milliwatts(raw) == expected

    @pytest.mark.parametrize("raw", ["", "abc", "1.2.3", "--", "1,5"])
    def test_invalid_numbers(self, raw):
        with pytest.raises(ValueError):
            to_milliwatts(raw)

    @pytest.mark.parametrize("raw", ["nan", "inf", "-Infinity"])
    def test_non_finite_numbers(self, raw):
        """Test that non-finite values are rejected."""
        with pytest.raises(ValueError, match="not a finite number"):
            to_milliwatts(raw)


class TestParseReading:
    """Tests for parse_reading function."""

    def test_valid_page(self):
        assert parse_reading(make_page("1.500", "0.800")) == Reading(
            generation=1500, consumption=800
        )

    def test_reading_is_frozen(self):
        reading = parse_reading(make_page())
        with pytest.raises(AttributeError):
            reading.generation = 0

    def test_missing_both_fields(self, caplog):
        """Test that a page without markers reports both fields and logs the body."""
        with pytest.raises(FieldMissing) as exc_info:
            parse_reading(BROKEN_PAGE)
        assert exc_info.value.fields == ("generation", "consumption")
        assert "generation and consumption is missing" in caplog.text
        assert "maintenance" in caplog.text

    def test_missing_consumption(self):
        with pytest.raises(FieldMissing) as exc_info:
            parse_reading(wrap(GENERATION_MARKERS, "1.5"))
        assert exc_info.value.fields == ("consumption",)

    def test_unparseable_generation(self, caplog):
        """Test that a bad generation value names the generation field."""
        with pytest.raises(NumberUnparseable) as exc_info:
            parse_reading(make_page(generation="---"))
        assert exc_info.value.field == "generation"
        assert exc_info.value.raw == "---"
        assert "Failed to parse generation as a float" in caplog.text

    def test_unparseable_consumption(self):
        with pytest.raises(NumberUnparseable) as exc_info:
            parse_reading(make_page(consumption=""))
        assert exc_info.value.field == "consumption"

    def test_reading_built_from_scan(self):
        """Test that parse_reading takes its raw values from scan."""
        with patch("solar_exporter.scanner.scan", wraps=scan) as scan_spy:
            parse_reading(make_page("1.500", "0.800"))
        scan_spy.assert_called_once()
