"""
Unit Tests for QR tokens and attendance figures
"""
import base64
from datetime import datetime, timedelta
import pytest

from unidesk.services.attendance import (
    encode_qr_token, validate_qr_token, missing_absentees, attendance_stats, student_attendance_summary,
    InvalidQRCode, ExpiredQRCode, NotEnrolled, AlreadyMarked, CheckInError,
)

NOW = datetime(2025, 3, 12, 10, 30)


class TestQRToken:

    def test_token_encodes_session_and_minute(self):
        token = encode_qr_token(42, NOW)
        session_id, minutes = base64.b64decode(token).decode().split(":")
        assert session_id == "42"
        assert int(minutes) == int(NOW.timestamp() // 60)

    def test_fresh_token_is_accepted(self):
        token = encode_qr_token(7, NOW)
        age = validate_qr_token(token, 7, now=NOW + timedelta(minutes=3))
        assert 120 <= age <= 180

    def test_token_for_another_session_is_rejected(self):
        with pytest.raises(InvalidQRCode):
            validate_qr_token(encode_qr_token(7, NOW), 8, now=NOW)

    def test_old_token_is_rejected(self):
        with pytest.raises(ExpiredQRCode):
            validate_qr_token(encode_qr_token(7, NOW), 7, now=NOW + timedelta(minutes=11))

    def test_token_from_the_near_future_is_tolerated(self):
        validate_qr_token(encode_qr_token(7, NOW + timedelta(minutes=4)), 7, now=NOW)

    def test_token_from_the_far_future_is_rejected(self):
        with pytest.raises(ExpiredQRCode):
            validate_qr_token(encode_qr_token(7, NOW + timedelta(minutes=6)), 7, now=NOW)

    @pytest.mark.parametrize("token", [
        "not base64!!",
        base64.b64encode(b"7").decode(),
        base64.b64encode(b"7:soon").decode(),
    ])
    def test_malformed_tokens_are_rejected(self, token):
        with pytest.raises(InvalidQRCode):
            validate_qr_token(token, 7, now=NOW)

    def test_errors_carry_http_status(self):
        assert InvalidQRCode("x").status_code == 400
        assert NotEnrolled("x").status_code == 403
        assert AlreadyMarked("x").status_code == 409
        assert issubclass(ExpiredQRCode, CheckInError)


class TestAbsentees:

    def test_only_unrecorded_students(self):
        assert missing_absentees([1, 2, 3, 4], [2, 4]) == [1, 3]

    def test_duplicates_collapse(self):
        assert missing_absentees([1, 1, 2], []) == [1, 2]


class TestStats:

    def test_rate_with_no_records_is_zero(self):
        stats = attendance_stats([], [], NOW)
        assert stats["total_sessions"] == 0
        assert stats["attendance_rate"] == 0

    def test_counts_by_derived_status(self):
        sessions = [
            {"session_date": "2025-03-11", "start_time": "09:00", "end_time": "10:00"},
            {"session_date": "2025-03-12", "start_time": "10:00", "end_time": "11:00"},
            {"session_date": "2025-03-13", "start_time": "10:00", "end_time": "11:00"},
        ]
        records = [{"status": "present"}, {"status": "present"}, {"status": "late"}, {"status": "absent"}]

        stats = attendance_stats(sessions, records, NOW)

        assert stats["total_sessions"] == 3
        assert stats["active_sessions"] == 1
        assert stats["completed_sessions"] == 1
        assert stats["total_records"] == 4
        assert stats["present_records"] == 2
        assert stats["attendance_rate"] == 50.0

    def test_student_summary_counts_late_as_attended(self):
        summary = student_attendance_summary([{"status": "present"}, {"status": "late"}, {"status": "absent"}])
        assert summary["total"] == 3
        assert summary["late"] == 1
        assert summary["attendance_rate"] == 66.67
