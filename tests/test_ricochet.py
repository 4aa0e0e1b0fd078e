"""Tests for the Ricochet CSV extractor."""

from datetime import date, datetime

import pytest
from callgaps.errors import MissingColumns, NoCallsFound
from callgaps.models import Direction, SourceFormat
from callgaps.ricochet import RicochetExtractor, classify_call_type

HEADER = "Date,Full name,User,From,To,Call Duration In Seconds,Call Type"


def _csv(*lines: str, header: str = HEADER) -> bytes:
    return ("\r\n".join([header, *lines]) + "\r\n").encode("utf-8")


class TestExtraction:
    def test_basic_rows(self):
        data = _csv(
            "2025-03-10 09:00:00,Jane Doe,Alice,5550001,5550002,120,Outbound",
            '2025-03-10 10:00:00,"Smith, John",Bob,5550003,5550004,45,Inbound-Q',
        )
        extraction = RicochetExtractor().extract(data)

        assert extraction.source_format is SourceFormat.RICOCHET
        assert len(extraction.calls) == 2
        alice, bob = extraction.calls
        assert alice.agent_name == "Alice"
        assert alice.call_start == datetime(2025, 3, 10, 9, 0)
        assert alice.duration_seconds == 120
        assert alice.direction is Direction.OUTBOUND
        assert alice.contact_name == "Jane Doe"
        assert alice.contact_phone == "5550002"  # To, for outbound
        assert alice.result == ""

        assert bob.contact_name == "Smith, John"
        assert bob.direction is Direction.INBOUND
        assert bob.contact_phone == "5550003"  # From, for inbound

    def test_blank_user_is_unknown(self):
        data = _csv("2025-03-10 09:00:00,Jane,,1,2,10,Outbound")
        assert RicochetExtractor().extract(data).calls[0].agent_name == "Unknown"

    def test_bad_duration_is_zero(self):
        data = _csv("2025-03-10 09:00:00,Jane,Alice,1,2,n/a,Outbound")
        assert RicochetExtractor().extract(data).calls[0].duration_seconds == 0

    def test_bom_stripped_from_header(self):
        data = b"\xef\xbb\xbf" + _csv("2025-03-10 09:00:00,Jane,Alice,1,2,10,Outbound")
        assert len(RicochetExtractor().extract(data).calls) == 1

    def test_available_dates_newest_first(self):
        data = _csv(
            "2025-03-08 09:00:00,A,Alice,1,2,10,Outbound",
            "2025-03-10 09:00:00,A,Alice,1,2,10,Outbound",
            "2025-03-09 09:00:00,A,Alice,1,2,10,Outbound",
        )
        assert RicochetExtractor().extract(data).available_dates == [
            date(2025, 3, 10),
            date(2025, 3, 9),
            date(2025, 3, 8),
        ]


class TestRejectedRows:
    def test_short_row(self):
        data = _csv("2025-03-10 09:00:00,Jane,Alice")
        extraction = RicochetExtractor().extract(data)
        assert extraction.calls == []
        assert extraction.rejected[0].reason == "short_row"
        assert extraction.rejected[0].row_number == 2

    def test_invalid_date(self):
        data = _csv("someday,Jane,Alice,1,2,10,Outbound")
        extraction = RicochetExtractor().extract(data)
        assert extraction.calls == []
        assert extraction.rejected[0].reason == "invalid_date"
        assert extraction.rejected[0].values["User"] == "Alice"

    def test_clock_time_is_not_a_date(self):
        data = _csv("10:30,Jane,Alice,1,2,10,Outbound")
        extraction = RicochetExtractor().extract(data)
        assert extraction.calls == []
        assert extraction.available_dates == []
        assert extraction.rejected[0].reason == "invalid_date"

    def test_missing_date(self):
        data = _csv(",Jane,Alice,1,2,10,Outbound")
        assert RicochetExtractor().extract(data).rejected[0].reason == "missing_date"

    def test_blank_lines_ignored(self):
        data = _csv("", "2025-03-10 09:00:00,Jane,Alice,1,2,10,Outbound", "")
        extraction = RicochetExtractor().extract(data)
        assert len(extraction.calls) == 1
        assert extraction.rejected == []


class TestColumns:
    def test_missing_required(self):
        data = _csv("x,y", header="Full name,From")
        with pytest.raises(MissingColumns, match="'Date', 'User'") as exc_info:
            RicochetExtractor().extract(data)
        assert exc_info.value.columns == ["Date", "User"]

    def test_optional_columns_absent(self):
        data = _csv("2025-03-10 09:00:00,Alice", header="Date,User")
        call = RicochetExtractor().extract(data).calls[0]
        assert call.duration_seconds == 0
        assert call.direction is Direction.OUTBOUND
        assert call.contact_name == ""
        assert call.contact_phone == ""

    def test_empty_file(self):
        with pytest.raises(NoCallsFound):
            RicochetExtractor().extract(b"")


class TestCallType:
    @pytest.mark.parametrize("value", ["Inbound-Q", "INBOUND", "Live-Q Sales", "IVR transfer"])
    def test_inbound(self, value):
        assert classify_call_type(value) is Direction.INBOUND

    @pytest.mark.parametrize("value", ["", "Outbound", "Manual Dial", "Power Dialer"])
    def test_outbound(self, value):
        assert classify_call_type(value) is Direction.OUTBOUND


class TestScanDates:
    def test_scan_skips_bad_dates(self):
        data = _csv(
            "2025-03-10 09:00:00,A,Alice,1,2,10,Outbound",
            "garbage,A,Alice,1,2,10,Outbound",
            "2025-03-11 09:00:00,A",
        )
        assert RicochetExtractor().scan_dates(data) == [date(2025, 3, 11), date(2025, 3, 10)]

    def test_scan_without_date_column(self):
        assert RicochetExtractor().scan_dates(_csv("a,b", header="User,To")) == []
