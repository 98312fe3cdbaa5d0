"""Attendance writes that need several lookups: QR check-in and closing a session."""
from datetime import datetime
from flask import current_app
from unidesk.extensions import db
from unidesk.models import AttendanceRecord, SectionEnrollment
from unidesk.services.attendance import (
    validate_qr_token, missing_absentees, CheckInError, SessionNotActive, NotEnrolled, AlreadyMarked,
)
from unidesk.services.session_status import is_session_active, is_session_completed
from unidesk.services.roster import active_section_student_ids


def check_in_student(session, student_id, token=None, now=None, method="qr_code"):
    """
    Marks a student present for a running session.

    Raises a CheckInError subclass when the token, time window, enrollment or
    an existing record rules the check-in out. The caller commits.
    """
    now = now or datetime.now()

    if token:
        validate_qr_token(
            token,
            session.id,
            now=now,
            max_age_minutes=current_app.config["QR_TOKEN_MAX_AGE_MINUTES"],
            future_skew_minutes=current_app.config["QR_TOKEN_FUTURE_SKEW_MINUTES"],
        )

    if session.status == "cancelled":
        raise SessionNotActive("This session has been cancelled.")

    if not is_session_active(session, now):
        raise SessionNotActive(
            f"Attendance can only be marked within the session time "
            f"({session.session_date.isoformat()} {session.start_time.strftime('%H:%M')}-"
            f"{session.end_time.strftime('%H:%M')})."
        )

    if not session.section_id:
        raise CheckInError("This session is not assigned to any section. Please contact your lecturer.")

    enrollment = SectionEnrollment.query.filter_by(
        student_id=student_id, section_id=session.section_id, status="active"
    ).first()
    if not enrollment:
        raise NotEnrolled("You are not enrolled in this section or the session is not for your section.")

    if AttendanceRecord.query.filter_by(session_id=session.id, student_id=student_id).first():
        raise AlreadyMarked("Attendance has already been marked for this session.")

    record = AttendanceRecord(
        session_id=session.id,
        student_id=student_id,
        status="present",
        method_used=method,
        marked_at=now,
    )
    db.session.add(record)
    return record


def close_session(session, now=None, force=False):
    """
    Completes a session and records everyone who never checked in as absent.

    Only sessions whose time has passed are closed unless ``force`` is set.
    Returns the number of absent records created. The caller commits.
    """
    now = now or datetime.now()
    if not force and not is_session_completed(session, now):
        raise SessionNotActive("Session has not ended yet; pass force=true to close it early.")

    created = 0
    if session.section_id:
        recorded = [r.student_id for r in AttendanceRecord.query.filter_by(session_id=session.id).all()]
        for student_id in missing_absentees(active_section_student_ids(session.section_id), recorded):
            db.session.add(AttendanceRecord(
                session_id=session.id,
                student_id=student_id,
                status="absent",
                method_used="auto",
                marked_at=now,
            ))
            created += 1

    session.status = "completed"
    return created
