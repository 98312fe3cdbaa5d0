from datetime import datetime
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from unidesk.models import Course, AttendanceRecord, AttendanceSession, Material
from unidesk.services.roster import enrollment_rows, student_course_ids, student_sessions_query
from unidesk.services.session_status import sort_sessions_by_date, UPCOMING, ACTIVE
from unidesk.services.attendance import student_attendance_summary
from unidesk_utils.decorators import role_required, get_current_user
from unidesk.routes.attendance import session_payload

student_bp = Blueprint('student', __name__)


def _student_sessions(user, now):
    records = {
        r.session_id: r
        for r in AttendanceRecord.query.filter_by(student_id=user.id).all()
    }
    sessions = []
    for session in sort_sessions_by_date(student_sessions_query(user.id).all()):
        data = session_payload(session, "student", now)
        record = records.get(session.id)
        data["attendance_status"] = record.status if record else None
        data["marked_at"] = record.marked_at.isoformat() if record and record.marked_at else None
        sessions.append(data)
    return sessions


@student_bp.route('/dashboard', methods=['GET'])
@jwt_required()
@role_required("student")
def dashboard():
    user = get_current_user()
    now = datetime.now()

    sessions = _student_sessions(user, now)
    records = AttendanceRecord.query.filter_by(student_id=user.id).all()
    profile = user.student_profile

    return jsonify({
        "student": user.to_dict(),
        "profile": profile.to_dict() if profile else None,
        "enrollments": enrollment_rows(student_id=user.id),
        "course_count": len(student_course_ids(user.id)),
        "active_sessions": [s for s in sessions if s["time_status"] == ACTIVE],
        # soonest first
        "upcoming_sessions": list(reversed([s for s in sessions if s["time_status"] == UPCOMING]))[:5],
        "attendance": student_attendance_summary(records),
    }), 200


@student_bp.route('/courses', methods=['GET'])
@jwt_required()
@role_required("student")
def my_courses():
    user = get_current_user()
    course_ids = student_course_ids(user.id)
    if not course_ids:
        return jsonify([]), 200

    courses = {c.id: c for c in Course.query.filter(Course.id.in_(course_ids), Course.deleted == False).all()}
    return jsonify([courses[cid].to_dict() for cid in course_ids if cid in courses]), 200


@student_bp.route('/sessions', methods=['GET'])
@jwt_required()
@role_required("student")
def my_sessions():
    user = get_current_user()
    time_status = request.args.get("time_status")
    course_id = request.args.get("course_id", type=int)

    sessions = _student_sessions(user, datetime.now())
    if time_status:
        sessions = [s for s in sessions if s["time_status"] == time_status]
    if course_id:
        sessions = [s for s in sessions if s["course_id"] == course_id]
    return jsonify(sessions), 200


@student_bp.route('/attendance', methods=['GET'])
@jwt_required()
@role_required("student")
def attendance_history():
    user = get_current_user()
    course_id = request.args.get("course_id", type=int)

    query = AttendanceRecord.query.join(AttendanceSession).filter(AttendanceRecord.student_id == user.id)
    if course_id:
        query = query.filter(AttendanceSession.course_id == course_id)
    records = query.order_by(AttendanceSession.session_date.desc(), AttendanceSession.start_time.desc()).all()

    history = []
    for record in records:
        data = record.to_dict()
        data["session_name"] = record.session.session_name
        data["session_date"] = record.session.session_date.isoformat()
        data["course_code"] = record.session.course.course_code if record.session.course else None
        history.append(data)

    return jsonify({"records": history, "summary": student_attendance_summary(records)}), 200


@student_bp.route('/materials', methods=['GET'])
@jwt_required()
@role_required("student")
def my_materials():
    user = get_current_user()
    course_ids = student_course_ids(user.id)
    course_id = request.args.get("course_id", type=int)
    if course_id:
        if course_id not in course_ids:
            return jsonify({"error": "You are not enrolled in this course"}), 403
        course_ids = [course_id]
    if not course_ids:
        return jsonify([]), 200

    materials = (
        Material.query
        .filter(Material.course_id.in_(course_ids), Material.is_public == True)
        .order_by(Material.created_at.desc())
        .all()
    )
    return jsonify([m.to_dict() for m in materials]), 200
