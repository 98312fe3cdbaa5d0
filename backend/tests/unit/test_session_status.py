"""
Unit Tests for session timing

The clock is passed in, so every case pins ``now``.
"""
from datetime import datetime, date, time
import pytest

from unidesk.services.session_status import (
    session_time_status, session_status, is_session_active, sort_sessions_by_date,
    UPCOMING, ACTIVE, COMPLETED,
)

NOW = datetime(2025, 3, 12, 10, 30)


class TestSessionTimeStatus:

    def test_yesterday_is_completed(self):
        """Even a session whose times straddle the current hour"""
        assert session_time_status(date(2025, 3, 11), time(0, 0), time(23, 59), NOW) == COMPLETED

    def test_tomorrow_is_upcoming(self):
        assert session_time_status(date(2025, 3, 13), time(0, 0), time(23, 59), NOW) == UPCOMING

    @pytest.mark.parametrize("start,end", [
        (time(10, 0), time(11, 0)),
        (time(10, 30), time(11, 0)),
        (time(9, 0), time(10, 30)),
    ])
    def test_today_within_window_is_active(self, start, end):
        """Both window edges count as running"""
        assert session_time_status(date(2025, 3, 12), start, end, NOW) == ACTIVE

    def test_today_after_end_is_completed(self):
        assert session_time_status(date(2025, 3, 12), time(8, 0), time(9, 0), NOW) == COMPLETED

    def test_today_before_start_is_upcoming(self):
        assert session_time_status(date(2025, 3, 12), time(14, 0), time(15, 0), NOW) == UPCOMING

    def test_accepts_strings(self):
        assert session_time_status("2025-03-12", "10:00", "11:00:00", NOW) == ACTIVE

    def test_session_dict_and_helpers(self):
        session = {"session_date": "2025-03-12", "start_time": "10:00", "end_time": "11:00"}
        assert session_status(session, NOW) == ACTIVE
        assert is_session_active(session, NOW)


class TestOrdering:

    def test_sort_newest_first(self):
        sessions = [
            {"id": 1, "session_date": "2025-03-10", "start_time": "09:00", "end_time": "10:00"},
            {"id": 2, "session_date": "2025-03-12", "start_time": "08:00", "end_time": "09:00"},
            {"id": 3, "session_date": "2025-03-12", "start_time": "14:00", "end_time": "15:00"},
        ]
        assert [s["id"] for s in sort_sessions_by_date(sessions)] == [3, 2, 1]
