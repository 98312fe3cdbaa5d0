from datetime import datetime
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from unidesk.models import Course, AttendanceSession, AttendanceRecord
from unidesk.services.roster import lecturer_assignment_rows, lecturer_course_students
from unidesk.services.session_status import sort_sessions_by_date
from unidesk.services.attendance import attendance_stats
from unidesk_utils.decorators import role_required, get_current_user
from unidesk.routes.attendance import session_payload

lecturer_bp = Blueprint('lecturer', __name__)


@lecturer_bp.route('/courses', methods=['GET'])
@jwt_required()
@role_required("lecturer")
def my_courses():
    user = get_current_user()
    assignments = lecturer_assignment_rows(user.id)

    courses = {}
    for assignment in assignments:
        course_id = assignment["course_id"]
        if course_id in courses:
            courses[course_id]["assignments"].append(assignment)
            continue
        course = Course.query.filter_by(id=course_id, deleted=False).first()
        if not course:
            continue
        data = course.to_dict()
        data["assignments"] = [assignment]
        courses[course_id] = data

    for course_id, data in courses.items():
        data["student_count"] = len(lecturer_course_students(user.id, course_id))
        data["session_count"] = AttendanceSession.query.filter_by(course_id=course_id, lecturer_id=user.id).count()

    return jsonify(list(courses.values())), 200


@lecturer_bp.route('/courses/<int:course_id>', methods=['GET'])
@jwt_required()
@role_required("lecturer")
def course_detail(course_id):
    user = get_current_user()
    assignments = lecturer_assignment_rows(user.id, course_id)
    if not assignments:
        return jsonify({"error": "You are not assigned to this course"}), 403

    course = Course.query.filter_by(id=course_id, deleted=False).first()
    if not course:
        return jsonify({"error": "Course not found"}), 404

    now = datetime.now()
    sessions = AttendanceSession.query.filter_by(course_id=course_id).all()
    records = AttendanceRecord.query.filter(
        AttendanceRecord.session_id.in_([s.id for s in sessions])
    ).all()

    students = lecturer_course_students(user.id, course_id)
    data = course.to_dict()
    data["assignments"] = assignments
    data["students"] = students
    data["student_count"] = len(students)
    data["sessions"] = [session_payload(s, "lecturer", now) for s in sort_sessions_by_date(sessions)]
    data["stats"] = attendance_stats(sessions, records, now)
    return jsonify(data), 200


@lecturer_bp.route('/sessions', methods=['GET'])
@jwt_required()
@role_required("lecturer")
def my_sessions():
    user = get_current_user()
    time_status = request.args.get("time_status")

    now = datetime.now()
    sessions = AttendanceSession.query.filter_by(lecturer_id=user.id).all()
    payload = [session_payload(s, "lecturer", now) for s in sort_sessions_by_date(sessions)]
    if time_status:
        payload = [s for s in payload if s["time_status"] == time_status]
    return jsonify(payload), 200
