import base64
import binascii
from datetime import datetime
from unidesk.services.session_status import session_status, ACTIVE, COMPLETED


class CheckInError(Exception):
    """Base class for attendance check-in rejections."""
    status_code = 400


class InvalidQRCode(CheckInError):
    pass


class ExpiredQRCode(CheckInError):
    pass


class SessionNotActive(CheckInError):
    pass


class NotEnrolled(CheckInError):
    status_code = 403


class AlreadyMarked(CheckInError):
    status_code = 409


def _minutes(now):
    return int(now.timestamp() // 60)


def encode_qr_token(session_id, now=None):
    """base64("<session_id>:<minutes since epoch>")"""
    now = now or datetime.now()
    raw = f"{session_id}:{_minutes(now)}"
    return base64.b64encode(raw.encode()).decode()


def validate_qr_token(token, session_id, now=None, max_age_minutes=10, future_skew_minutes=5):
    """
    Checks a scanned token against the session it is presented for.

    Raises InvalidQRCode for malformed tokens or a session mismatch, and
    ExpiredQRCode when the token is too old or too far in the future.
    Returns the token age in seconds.
    """
    now = now or datetime.now()
    try:
        decoded = base64.b64decode(token.encode(), validate=True).decode()
    except (binascii.Error, UnicodeDecodeError, AttributeError) as e:
        raise InvalidQRCode(f"Invalid QR code format: {e}")

    token_session_id, _, token_minutes = decoded.partition(":")
    if not token_session_id or not token_minutes:
        raise InvalidQRCode("Invalid QR code format - missing session ID or timestamp")

    if token_session_id != str(session_id):
        raise InvalidQRCode("Invalid QR code - session mismatch")

    try:
        issued_at = int(token_minutes) * 60
    except ValueError:
        raise InvalidQRCode("Invalid QR code format - bad timestamp")

    age = int(now.timestamp()) - issued_at
    if age > max_age_minutes * 60 or age < -future_skew_minutes * 60:
        raise ExpiredQRCode(
            f"QR code expired ({age}s old). Please scan the current QR code from the lecturer screen."
        )
    return age


def missing_absentees(active_student_ids, recorded_student_ids):
    """Students with an active enrollment and no record yet, in enrollment order."""
    recorded = set(recorded_student_ids)
    seen = set()
    result = []
    for student_id in active_student_ids:
        if student_id in recorded or student_id in seen:
            continue
        seen.add(student_id)
        result.append(student_id)
    return result


def attendance_stats(sessions, records, now=None):
    statuses = [session_status(s, now) for s in sessions]
    total_records = len(records)
    present = sum(1 for r in records if _status(r) == "present")
    rate = (present / total_records) * 100 if total_records else 0

    return {
        "total_sessions": len(sessions),
        "active_sessions": statuses.count(ACTIVE),
        "completed_sessions": statuses.count(COMPLETED),
        "total_records": total_records,
        "present_records": present,
        "attendance_rate": round(rate, 2),
    }


def student_attendance_summary(records):
    """Per-status counts for one student; late counts as attended."""
    counts = {"present": 0, "late": 0, "absent": 0}
    for r in records:
        status = _status(r)
        if status in counts:
            counts[status] += 1
    total = sum(counts.values())
    attended = counts["present"] + counts["late"]
    counts["total"] = total
    counts["attendance_rate"] = round((attended / total) * 100, 2) if total else 0
    return counts


def _status(record):
    return record["status"] if isinstance(record, dict) else record.status
