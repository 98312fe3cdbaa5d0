import base64
from io import BytesIO, StringIO
from datetime import datetime
import pandas as pd
import qrcode
from flask import Blueprint, request, jsonify, current_app, Response
from flask_jwt_extended import jwt_required
from sqlalchemy.exc import IntegrityError
from unidesk.models import (
    AttendanceSession, AttendanceRecord, Course, Section, User,
    SessionTypeEnum, AttendanceStatusEnum, enum_values,
)
from unidesk.extensions import db, limiter
from unidesk.services.attendance import encode_qr_token, attendance_stats, CheckInError
from unidesk.services.checkin import check_in_student, close_session
from unidesk.services.session_status import session_status, sort_sessions_by_date
from unidesk.services.status_mapping import map_session_status, is_valid_status
from unidesk.services.roster import active_section_student_ids
from unidesk_utils.audit import log_event
from unidesk_utils.decorators import role_required, get_current_user
from unidesk_utils.access_control import ensure_course_access, ensure_session_access, get_assigned_course_ids
from unidesk_utils.parsing import request_data, missing_fields, parse_date, parse_time, parse_bool

attendance_bp = Blueprint('attendance', __name__)

ATTENDANCE_METHODS = ("qr_code", "facial_recognition", "hybrid")


def session_payload(session, role, now=None):
    data = session.to_dict()
    data["time_status"] = session_status(session, now)
    data["display_status"] = map_session_status(session.status, role)
    return data


def _load_session(session_id, user):
    session = db.session.get(AttendanceSession, session_id)
    if not session:
        return None, (jsonify({"error": "Session not found"}), 404)
    try:
        ensure_session_access(user, session)
    except (ValueError, PermissionError) as e:
        return None, (jsonify({"error": str(e)}), 403)
    return session, None


def _lecturer_scope(query, user):
    """Sessions a lecturer runs or that belong to a course they teach."""
    assigned = get_assigned_course_ids(user)
    return query.filter(
        (AttendanceSession.lecturer_id == user.id) | (AttendanceSession.course_id.in_(list(assigned)))
    )


def _apply_session_fields(session, data):
    """Copies editable fields from the payload; raises ValueError on bad input."""
    if 'session_name' in data:
        session.session_name = data['session_name'].strip()
    if 'session_date' in data:
        session.session_date = parse_date(data['session_date'])
    if 'start_time' in data:
        session.start_time = parse_time(data['start_time'])
    if 'end_time' in data:
        session.end_time = parse_time(data['end_time'])
    if 'session_type' in data:
        if data['session_type'] not in enum_values(SessionTypeEnum):
            raise ValueError("Invalid session_type")
        session.session_type = data['session_type']
    if 'attendance_method' in data:
        if data['attendance_method'] not in ATTENDANCE_METHODS:
            raise ValueError("Invalid attendance_method")
        session.attendance_method = data['attendance_method']
    if 'status' in data:
        if not is_valid_status(data['status'], "session"):
            raise ValueError("Invalid status")
        session.status = data['status']
    if 'section_id' in data:
        section_id = int(data['section_id']) if data['section_id'] else None
        section = db.session.get(Section, section_id) if section_id else None
        if section_id and not section:
            raise ValueError("Section not found")
        session.section_id = section_id
        if section:
            session.academic_year_id = section.academic_year_id
            session.semester_id = section.semester_id
    if 'capacity' in data:
        session.capacity = int(data['capacity']) if data['capacity'] else None
    for field in ('location', 'description'):
        if field in data:
            setattr(session, field, data[field])

    if session.start_time and session.end_time and session.start_time >= session.end_time:
        raise ValueError("end_time must be after start_time")


@attendance_bp.route('/sessions', methods=['GET'])
@jwt_required()
@role_required("admin", "lecturer")
def list_sessions():
    user = get_current_user()
    course_id = request.args.get("course_id", type=int)
    section_id = request.args.get("section_id", type=int)
    time_status = request.args.get("time_status")

    query = AttendanceSession.query
    if user.role_name == "lecturer":
        query = _lecturer_scope(query, user)
    if course_id:
        query = query.filter(AttendanceSession.course_id == course_id)
    if section_id:
        query = query.filter(AttendanceSession.section_id == section_id)

    try:
        if request.args.get("date_from"):
            query = query.filter(AttendanceSession.session_date >= parse_date(request.args["date_from"]))
        if request.args.get("date_to"):
            query = query.filter(AttendanceSession.session_date <= parse_date(request.args["date_to"]))
    except ValueError:
        return jsonify({"error": "Invalid date format, use YYYY-MM-DD"}), 400

    now = datetime.now()
    sessions = [session_payload(s, user.role_name, now) for s in sort_sessions_by_date(query.all())]
    if time_status:
        sessions = [s for s in sessions if s["time_status"] == time_status]

    return jsonify(sessions), 200


@attendance_bp.route('/sessions/create', methods=['POST'])
@jwt_required()
@role_required("admin", "lecturer")
def create_session():
    user = get_current_user()
    data = request_data(request)

    missing = missing_fields(data, ("course_id", "session_name", "session_date", "start_time", "end_time"))
    if missing:
        return jsonify({"error": f"Missing required fields: {missing}"}), 400

    try:
        course_id = int(data["course_id"])
    except (TypeError, ValueError):
        return jsonify({"error": "course_id must be a number"}), 400

    course = Course.query.filter_by(id=course_id, deleted=False).first()
    if not course:
        return jsonify({"error": "Course not found"}), 404

    try:
        ensure_course_access(user, course_id)
    except (ValueError, PermissionError) as e:
        return jsonify({"error": str(e)}), 403

    lecturer_id = user.id
    if user.role_name == "admin":
        if not data.get("lecturer_id"):
            return jsonify({"error": "lecturer_id is required when an admin creates a session"}), 400
        try:
            lecturer = db.session.get(User, int(data["lecturer_id"]))
        except (TypeError, ValueError):
            return jsonify({"error": "lecturer_id must be a number"}), 400
        if not lecturer or lecturer.role_name != "lecturer":
            return jsonify({"error": "Lecturer not found"}), 400
        lecturer_id = lecturer.id

    session = AttendanceSession(course_id=course_id, lecturer_id=lecturer_id)
    try:
        _apply_session_fields(session, data)
    except (TypeError, ValueError) as e:
        return jsonify({"error": str(e)}), 400

    db.session.add(session)
    db.session.commit()

    current_app.logger.info("Session %s created for course %s by user %s", session.id, course.course_code, user.id)
    return jsonify({"message": "Session created", "session": session_payload(session, user.role_name)}), 201


@attendance_bp.route('/sessions/<int:session_id>', methods=['GET'])
@jwt_required()
@role_required("admin", "lecturer")
def get_session(session_id):
    user = get_current_user()
    session, error = _load_session(session_id, user)
    if error:
        return error

    now = datetime.now()
    records = AttendanceRecord.query.filter_by(session_id=session.id).order_by(AttendanceRecord.marked_at).all()
    data = session_payload(session, user.role_name, now)
    data["records"] = [r.to_dict() for r in records]
    data["stats"] = attendance_stats([session], records, now)
    data["expected_students"] = len(active_section_student_ids(session.section_id)) if session.section_id else None
    return jsonify(data), 200


@attendance_bp.route('/sessions/update/<int:session_id>', methods=['PUT'])
@jwt_required()
@role_required("admin", "lecturer")
def update_session(session_id):
    user = get_current_user()
    session, error = _load_session(session_id, user)
    if error:
        return error

    try:
        _apply_session_fields(session, request_data(request))
    except (TypeError, ValueError) as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400

    db.session.commit()
    return jsonify({"message": "Session updated", "session": session_payload(session, user.role_name)}), 200


@attendance_bp.route('/sessions/remove/<int:session_id>', methods=['DELETE'])
@jwt_required()
@role_required("admin", "lecturer")
def remove_session(session_id):
    user = get_current_user()
    session, error = _load_session(session_id, user)
    if error:
        return error

    db.session.delete(session)
    db.session.commit()
    return jsonify({"message": "Session removed"}), 200


@attendance_bp.route('/sessions/<int:session_id>/qr', methods=['GET'])
@jwt_required()
@role_required("admin", "lecturer")
def session_qr(session_id):
    user = get_current_user()
    session, error = _load_session(session_id, user)
    if error:
        return error

    now = datetime.now()
    token = encode_qr_token(session.id, now)
    payload = f"{current_app.config['FRONTEND_ORIGIN']}/attend/{session.id}?token={token}"

    buffer = BytesIO()
    qrcode.make(payload).save(buffer)
    image = base64.b64encode(buffer.getvalue()).decode()

    return jsonify({
        "session_id": session.id,
        "token": token,
        "payload": payload,
        "image": f"data:image/png;base64,{image}",
        "time_status": session_status(session, now),
        "expires_in_seconds": current_app.config["QR_TOKEN_MAX_AGE_MINUTES"] * 60,
    }), 200


@attendance_bp.route('/check-in', methods=['POST'])
@limiter.limit("30 per minute")
@jwt_required()
@role_required("student")
def check_in():
    user = get_current_user()
    data = request_data(request)

    if not data.get("session_id"):
        return jsonify({"error": "Missing session_id"}), 400

    try:
        session = db.session.get(AttendanceSession, int(data["session_id"]))
    except (TypeError, ValueError):
        return jsonify({"error": "session_id must be a number"}), 400
    if not session:
        return jsonify({"error": "Invalid or expired session."}), 404

    try:
        record = check_in_student(session, user.id, token=data.get("token"))
        db.session.commit()
    except CheckInError as e:
        db.session.rollback()
        current_app.logger.info("Check-in rejected for student %s on session %s: %s", user.id, session.id, e)
        return jsonify({"error": str(e)}), e.status_code
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "Attendance has already been marked for this session."}), 409

    log_event("CHECK_IN", user_id=user.id, ip=request.remote_addr, description=f"session {session.id}")
    return jsonify({"message": "Attendance marked successfully!", "record": record.to_dict()}), 200


@attendance_bp.route('/sessions/<int:session_id>/mark', methods=['POST'])
@jwt_required()
@role_required("admin", "lecturer")
def mark_attendance(session_id):
    """Manual marking: {"records": [{"student_id": 1, "status": "late", "note": "..."}]}"""
    user = get_current_user()
    session, error = _load_session(session_id, user)
    if error:
        return error

    data = request.get_json(silent=True) or {}
    records = data.get('records', [])
    if not records:
        return jsonify({"error": "Missing data"}), 400

    allowed = set(active_section_student_ids(session.section_id)) if session.section_id else None
    try:
        for record in records:
            student_id = int(record['student_id'])
            status = record['status']
            if not is_valid_status(status, "attendance"):
                raise ValueError(f"Invalid status '{status}'")
            if allowed is not None and student_id not in allowed:
                raise ValueError(f"Student {student_id} is not enrolled in this session's section")

            existing = AttendanceRecord.query.filter_by(session_id=session.id, student_id=student_id).first()
            if existing:
                existing.status = status
                existing.recorded_by = user.id
                existing.note = record.get('note', existing.note)
            else:
                db.session.add(AttendanceRecord(
                    session_id=session.id,
                    student_id=student_id,
                    status=status,
                    method_used="manual",
                    recorded_by=user.id,
                    note=record.get('note'),
                ))
    except (KeyError, TypeError, ValueError) as e:
        db.session.rollback()
        return jsonify({"error": "Invalid attendance records", "details": str(e)}), 400

    db.session.commit()
    return jsonify({"message": "Attendance recorded"}), 200


@attendance_bp.route('/sessions/<int:session_id>/records', methods=['GET'])
@jwt_required()
@role_required("admin", "lecturer")
def session_records(session_id):
    user = get_current_user()
    session, error = _load_session(session_id, user)
    if error:
        return error

    query = AttendanceRecord.query.filter_by(session_id=session.id)
    if request.args.get("status"):
        query = query.filter(AttendanceRecord.status == request.args["status"])
    return jsonify([r.to_dict() for r in query.order_by(AttendanceRecord.marked_at).all()]), 200


@attendance_bp.route('/records/remove/<int:record_id>', methods=['DELETE'])
@jwt_required()
@role_required("admin", "lecturer")
def delete_record(record_id):
    user = get_current_user()
    record = AttendanceRecord.query.get_or_404(record_id)
    try:
        ensure_session_access(user, record.session)
    except (ValueError, PermissionError) as e:
        return jsonify({"error": str(e)}), 403

    db.session.delete(record)
    db.session.commit()
    return jsonify({"message": "Deleted"}), 200


@attendance_bp.route('/sessions/<int:session_id>/close', methods=['POST'])
@jwt_required()
@role_required("admin", "lecturer")
def close(session_id):
    user = get_current_user()
    session, error = _load_session(session_id, user)
    if error:
        return error

    force = parse_bool(request.args.get("force") or (request.get_json(silent=True) or {}).get("force"))
    try:
        absent = close_session(session, force=force)
        db.session.commit()
    except CheckInError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Closing session %s failed", session_id)
        return jsonify({"error": "Server error", "details": str(e)}), 500

    log_event("SESSION_CLOSED", user_id=user.id, ip=request.remote_addr,
              description=f"session {session.id}, {absent} marked absent")
    return jsonify({"message": "Session closed", "absent_marked": absent}), 200


@attendance_bp.route('/stats', methods=['GET'])
@jwt_required()
@role_required("admin", "lecturer")
def stats():
    user = get_current_user()
    course_id = request.args.get("course_id", type=int)

    query = AttendanceSession.query
    if course_id:
        try:
            ensure_course_access(user, course_id)
        except (ValueError, PermissionError) as e:
            return jsonify({"error": str(e)}), 403
        query = query.filter(AttendanceSession.course_id == course_id)
    elif user.role_name == "lecturer":
        query = _lecturer_scope(query, user)

    sessions = query.all()
    session_ids = [s.id for s in sessions]
    records = AttendanceRecord.query.filter(AttendanceRecord.session_id.in_(session_ids)).all()

    result = attendance_stats(sessions, records)
    total = len(records)
    result["by_status"] = [
        {
            "status": status,
            "count": count,
            "percentage": round((count / total) * 100, 2) if total else 0,
        }
        for status, count in (
            (s, sum(1 for r in records if r.status == s)) for s in enum_values(AttendanceStatusEnum)
        )
    ]
    return jsonify(result), 200


@attendance_bp.route('/export', methods=['GET'])
@jwt_required()
@role_required("admin", "lecturer")
def export_attendance():
    user = get_current_user()
    course_id = request.args.get("course_id", type=int)
    if not course_id:
        return jsonify({"error": "Missing required ?course_id="}), 400

    try:
        ensure_course_access(user, course_id)
    except (ValueError, PermissionError) as e:
        return jsonify({"error": str(e)}), 403

    rows = (
        db.session.query(
            AttendanceSession.session_name,
            AttendanceSession.session_date,
            AttendanceSession.start_time,
            User.full_name,
            AttendanceRecord.status,
            AttendanceRecord.method_used,
            AttendanceRecord.marked_at,
        )
        .join(AttendanceRecord, AttendanceRecord.session_id == AttendanceSession.id)
        .join(User, User.id == AttendanceRecord.student_id)
        .filter(AttendanceSession.course_id == course_id)
        .order_by(AttendanceSession.session_date, AttendanceSession.start_time, User.full_name)
        .all()
    )

    columns = ["session_name", "session_date", "start_time", "student_name", "status", "method_used", "marked_at"]
    df = pd.DataFrame([tuple(r) for r in rows], columns=columns)

    buffer = StringIO()
    df.to_csv(buffer, index=False)
    return Response(
        buffer.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename=attendance_course_{course_id}.csv"},
    )
