import pytest

from workeasy.services.work_hours import (
    HoursWindow,
    paid_minutes,
    parse_minutes,
    summarize_work_hours,
    to_hours,
)


def shift(user_id, day, start, end, unpaid=0, name=None):
    return {
        "user_id": user_id,
        "date": day,
        "start_time": start,
        "end_time": end,
        "work_items": {"unpaid_break_min": unpaid},
        "store_users": {"name": name} if name is not None else None,
    }


class TestPaidMinutes:
    def test_parse_minutes(self):
        assert parse_minutes("09:30") == 570
        assert parse_minutes("09:30:59") == 570
        assert parse_minutes("bad") == 0
        assert parse_minutes(None) == 0

    def test_unpaid_break_deducted(self):
        assert paid_minutes(shift("u", "2024-05-06", "09:00", "18:00", 60)) == 480

    def test_overnight_shift(self):
        assert paid_minutes(shift("u", "2024-05-06", "22:00", "06:00")) == 480

    def test_equal_times_span_full_day(self):
        assert paid_minutes(shift("u", "2024-05-06", "09:00", "09:00")) == 1440

    def test_never_negative(self):
        assert paid_minutes(shift("u", "2024-05-06", "09:00", "09:30", 45)) == 0

    def test_embed_as_list(self):
        row = shift("u", "2024-05-06", "09:00", "10:00")
        row["work_items"] = [{"unpaid_break_min": 30}]
        assert paid_minutes(row) == 30


class TestRounding:
    @pytest.mark.parametrize(
        ("minutes", "hours"),
        [(0, 0.0), (60, 1.0), (87, 1.5), (81, 1.4), (100, 1.7), (3, 0.1)],
    )
    def test_half_up_to_one_decimal(self, minutes, hours):
        assert to_hours(minutes) == hours


class TestSummary:
    def test_week_and_month_windows(self):
        rows = [
            shift("a", "2024-05-06", "09:00", "17:00", 60, name="Ann"),
            shift("b", "2024-05-07", "10:00", "14:00", name="Bo"),
            shift("a", "2024-05-20", "09:00", "13:00", name="Ann"),
        ]
        result = summarize_work_hours(
            rows,
            HoursWindow("2024-05-06", "2024-05-12"),
            HoursWindow("2024-05-01", "2024-05-31"),
        )

        assert result["summary"] == {"weeklyTotalHours": 11.0, "monthlyTotalHours": 15.0}
        assert result["weeklyByUser"] == [
            {"userId": "a", "userName": "Ann", "hours": 7.0},
            {"userId": "b", "userName": "Bo", "hours": 4.0},
        ]
        assert result["monthlyByUser"][0] == {"userId": "a", "userName": "Ann", "hours": 11.0}
        assert result["period"]["weekFrom"] == "2024-05-06"

    def test_ties_sorted_by_name_and_missing_name_uses_id(self):
        rows = [
            shift("z", "2024-05-06", "09:00", "10:00", name="Zed"),
            shift("y", "2024-05-06", "09:00", "10:00", name=""),
        ]
        window = HoursWindow("2024-05-06", "2024-05-06")
        result = summarize_work_hours(rows, window, window)
        assert [u["userName"] for u in result["weeklyByUser"]] == ["Zed", "y"]
