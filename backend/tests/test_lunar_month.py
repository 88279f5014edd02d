from datetime import date

import pytest

from companion.utils.dates import add_days, lunar_parts, to_arabic_numeral
from companion.utils.lunar_month import (
    MAX_PROBES,
    build_lunar_month_days,
    find_lunar_month_start,
    lunar_month_view,
    next_lunar_month,
    previous_lunar_month,
)


def test_ramadan_month_from_fake_calendar(fake_calendar):
    days = build_lunar_month_days("2025-03-15", fake_calendar)
    assert days[0] == "2025-03-01"
    assert days[-1] == "2025-03-29"
    assert len(days) == 29


@pytest.mark.parametrize("anchor", ["2024-11-20", "2025-01-30", "2025-03-29", "2025-03-30", "2025-06-01", "2025-12-31"])
def test_month_is_contiguous_and_uniform(fake_calendar, anchor):
    days = build_lunar_month_days(anchor, fake_calendar)
    assert len(days) in (29, 30)
    assert anchor in days
    for current, following in zip(days, days[1:]):
        assert add_days(current, 1) == following
    first = lunar_parts(days[0], fake_calendar)
    assert first.day == 1
    for ymd in days:
        parts = lunar_parts(ymd, fake_calendar)
        assert (parts.month, parts.year) == (first.month, first.year)


def test_month_start_is_independent_of_anchor(fake_calendar):
    days = build_lunar_month_days("2025-04-10", fake_calendar)
    starts = {find_lunar_month_start(ymd, fake_calendar) for ymd in days}
    assert starts == {days[0]}


def test_month_start_on_first_day_is_itself(fake_calendar):
    assert find_lunar_month_start("2025-03-01", fake_calendar) == "2025-03-01"


def test_month_start_gives_up_after_bounded_probes():
    def never_first(value):
        return 15, 9, 1446

    anchor = "2025-03-15"
    assert find_lunar_month_start(anchor, never_first) == add_days(anchor, -(MAX_PROBES - 1))


def test_month_build_is_bounded_when_month_never_changes():
    def stuck(value):
        return (1, 9, 1446) if value.day == 1 else (2, 9, 1446)

    days = build_lunar_month_days("2025-03-01", stuck)
    assert len(days) == MAX_PROBES


def test_neighbouring_months(fake_calendar):
    previous = previous_lunar_month("2025-03-15", fake_calendar)
    following = next_lunar_month("2025-03-15", fake_calendar)

    assert previous[0] == "2025-01-30"
    assert previous[-1] == "2025-02-28"
    assert lunar_parts(previous[0], fake_calendar)[1:] == (8, 1446)

    assert following[0] == "2025-03-30"
    assert len(following) == 30
    assert lunar_parts(following[0], fake_calendar)[1:] == (10, 1446)


def test_navigation_across_year_boundary(fake_calendar):
    days = build_lunar_month_days("2025-03-15", fake_calendar)
    for _ in range(4):
        days = next_lunar_month(days[0], fake_calendar)
    parts = lunar_parts(days[0], fake_calendar)
    assert (parts.month, parts.year) == (1, 1447)
    back = previous_lunar_month(days[0], fake_calendar)
    assert lunar_parts(back[0], fake_calendar)[1:] == (12, 1446)


def test_real_authority_ramadan_1446():
    days = build_lunar_month_days("2025-03-15")
    assert days[0] == "2025-03-01"
    assert len(days) in (29, 30)
    assert all(lunar_parts(ymd)[1:] == (9, 1446) for ymd in days)


def test_month_view(fake_calendar):
    view = lunar_month_view("2025-03-15", fake_calendar)
    assert view["lunar_month"] == 9
    assert view["lunar_year"] == 1446
    assert len(view["days"]) == 29
    first = view["days"][0]
    assert first["date"] == "2025-03-01"
    assert first["lunar_day"] == 1
    assert first["gregorian_day"] == "١"
    # 2025-03-01 is a Saturday: last column of a Sunday-first grid
    assert first["weekday"] == 6
    assert view["previous_anchor"] == "2025-02-28"
    assert view["next_anchor"] == "2025-03-30"


def test_month_walks_stop_at_last_representable_day():
    # Outside the Umm al-Qura tables every day reads as lunar day 1
    days = build_lunar_month_days("9999-12-31")
    assert days[-1] == "9999-12-31"
    assert next_lunar_month("9999-12-31") == days
    assert lunar_month_view("9999-12-31")["next_anchor"] is None


def test_month_walks_stop_at_first_representable_day():
    def never_first(value):
        return 15, 9, 1446

    assert find_lunar_month_start("0001-01-05", never_first) == "0001-01-01"
    days = build_lunar_month_days("0001-01-01")
    assert days[0] == "0001-01-01"
    assert previous_lunar_month("0001-01-01") == days
    assert lunar_month_view("0001-01-01")["previous_anchor"] is None


def test_month_view_labels_follow_injected_authority(make_calendar):
    shifted = make_calendar(epoch=date(2025, 3, 2))
    view = lunar_month_view("2025-03-15", shifted)
    assert view["days"][0]["date"] == "2025-03-02"
    assert view["days"][0]["hijri_day"] == "١"
    assert all(cell["hijri_day"] == to_arabic_numeral(cell["lunar_day"]) for cell in view["days"])
    assert view["title"].startswith("رمضان")
