from datetime import datetime, date, time

UPCOMING = "upcoming"
ACTIVE = "active"
COMPLETED = "completed"


def _as_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, "%Y-%m-%d").date()


def _as_time(value):
    if isinstance(value, time):
        return value
    fmt = "%H:%M:%S" if value.count(":") == 2 else "%H:%M"
    return datetime.strptime(value, fmt).time()


def session_time_status(session_date, start_time, end_time, now=None):
    """
    Classifies a session against the wall clock.

    Accepts date/time objects or ISO strings ("2025-03-01", "09:00").
    No timezone handling: ``now`` is compared as a naive local datetime.
    """
    now = now or datetime.now()
    session_date = _as_date(session_date)
    start_time = _as_time(start_time)
    end_time = _as_time(end_time)
    today = now.date()
    current = now.time()

    if session_date < today:
        return COMPLETED
    if session_date > today:
        return UPCOMING
    if current > end_time:
        return COMPLETED
    if start_time <= current <= end_time:
        return ACTIVE
    return UPCOMING


def session_status(session, now=None):
    """Same as session_time_status for an AttendanceSession or its dict form."""
    if isinstance(session, dict):
        return session_time_status(session["session_date"], session["start_time"], session["end_time"], now)
    return session_time_status(session.session_date, session.start_time, session.end_time, now)


def is_session_active(session, now=None):
    return session_status(session, now) == ACTIVE


def is_session_upcoming(session, now=None):
    return session_status(session, now) == UPCOMING


def is_session_completed(session, now=None):
    return session_status(session, now) == COMPLETED


def sort_sessions_by_date(sessions):
    """Newest first, by date then start time."""
    def key(session):
        if isinstance(session, dict):
            return _as_date(session["session_date"]), _as_time(session["start_time"])
        return session.session_date, session.start_time

    return sorted(sessions, key=key, reverse=True)
