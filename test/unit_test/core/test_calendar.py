"""Unit tests for the calendar helpers behind the bookings views."""

from datetime import date, datetime
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from serviceos.core import calendar
from serviceos.core.database.entities.bookings import BookingStatus

AMSTERDAM = ZoneInfo("Europe/Amsterdam")


def _booking(starts_at: datetime, status: BookingStatus = BookingStatus.CONFIRMED, **fields) -> SimpleNamespace:
    return SimpleNamespace(starts_at=starts_at, status=status, **fields)


class TestMonthGrid:
    def test_month_starting_on_monday_has_no_blanks(self):
        cells = calendar.month_grid(2021, 2)

        assert cells[0] == date(2021, 2, 1)
        assert len(cells) == 28

    def test_month_starting_on_sunday_has_six_blanks(self):
        cells = calendar.month_grid(2025, 6)

        assert cells[:6] == [None] * 6
        assert cells[6] == date(2025, 6, 1)
        assert cells[-1] == date(2025, 6, 30)

    def test_leap_february(self):
        cells = [cell for cell in calendar.month_grid(2024, 2) if cell]

        assert cells[-1] == date(2024, 2, 29)


def test_month_range_covers_last_second():
    start, end = calendar.month_range(2024, 2)

    assert start == datetime(2024, 2, 1, 0, 0, 0)
    assert end == datetime(2024, 2, 29, 23, 59, 59)


def test_month_range_in_zone_is_returned_as_utc():
    start, end = calendar.month_range(2024, 5, AMSTERDAM)

    assert start == datetime(2024, 4, 30, 22, 0, 0)
    assert end == datetime(2024, 5, 31, 21, 59, 59)


def test_zone_for_unknown_name_is_utc():
    assert calendar.zone_for("Europe/Amsterdam") == AMSTERDAM
    assert calendar.zone_for("Mars/Olympus") == calendar.UTC
    assert calendar.zone_for(None) == calendar.UTC


def test_to_local_and_back():
    utc = datetime(2024, 1, 15, 23, 30)

    local = calendar.to_local(utc, AMSTERDAM)

    assert local == datetime(2024, 1, 16, 0, 30)
    assert calendar.to_utc(local, AMSTERDAM) == utc


@pytest.mark.parametrize(
    "year,month,delta,expected",
    [
        (2024, 1, -1, (2023, 12)),
        (2024, 12, 1, (2025, 1)),
        (2024, 5, 0, (2024, 5)),
        (2024, 3, 14, (2025, 5)),
    ],
)
def test_shift_month(year, month, delta, expected):
    assert calendar.shift_month(year, month, delta) == expected


def test_is_same_day_mixes_dates_and_datetimes():
    assert calendar.is_same_day(datetime(2024, 5, 1, 23, 59), date(2024, 5, 1))
    assert not calendar.is_same_day(datetime(2024, 5, 2, 0, 0), date(2024, 5, 1))


def test_bucket_by_day_sorts_days_and_bookings():
    late = _booking(datetime(2024, 5, 2, 15))
    early = _booking(datetime(2024, 5, 2, 9))
    first_day = _booking(datetime(2024, 5, 1, 12))

    buckets = calendar.bucket_by_day([late, first_day, early])

    assert list(buckets) == [date(2024, 5, 1), date(2024, 5, 2)]
    assert buckets[date(2024, 5, 2)] == [early, late]


def test_bucket_by_day_uses_local_day():
    after_midnight = _booking(datetime(2024, 5, 6, 22, 30))

    assert list(calendar.bucket_by_day([after_midnight])) == [date(2024, 5, 6)]
    assert list(calendar.bucket_by_day([after_midnight], AMSTERDAM)) == [date(2024, 5, 7)]


class TestVisibleOnDay:
    day = date(2024, 5, 1)

    def test_hides_cancelled_and_no_show_by_default(self):
        bookings = [
            _booking(datetime(2024, 5, 1, 10), BookingStatus.CONFIRMED),
            _booking(datetime(2024, 5, 1, 11), BookingStatus.CANCELLED),
            _booking(datetime(2024, 5, 1, 12), BookingStatus.NO_SHOW),
            _booking(datetime(2024, 5, 2, 10), BookingStatus.CONFIRMED),
        ]

        visible = calendar.visible_on_day(bookings, self.day)

        assert [b.status for b in visible] == [BookingStatus.CONFIRMED]

    def test_explicit_status_filter_shows_only_that_status(self):
        bookings = [
            _booking(datetime(2024, 5, 1, 10), BookingStatus.CONFIRMED),
            _booking(datetime(2024, 5, 1, 11), BookingStatus.CANCELLED),
        ]

        visible = calendar.visible_on_day(bookings, self.day, BookingStatus.CANCELLED)

        assert [b.status for b in visible] == [BookingStatus.CANCELLED]

    def test_day_is_local_to_zone(self):
        late_evening = _booking(datetime(2024, 4, 30, 22, 15))

        assert calendar.visible_on_day([late_evening], self.day) == []
        assert calendar.visible_on_day([late_evening], self.day, zone=AMSTERDAM) == [late_evening]


class TestMatchesSearch:
    booking = _booking(
        datetime(2024, 5, 1, 10),
        title="Portrait session",
        guest_name=None,
        client=SimpleNamespace(name="Jane Doe", company="Doe & Co"),
        booking_type=SimpleNamespace(name="Family shoot"),
    )

    @pytest.mark.parametrize("term", [None, "", "portrait", "JANE", "doe &", "family"])
    def test_matches(self, term):
        assert calendar.matches_search(self.booking, term)

    def test_no_match(self):
        assert not calendar.matches_search(self.booking, "wedding")
