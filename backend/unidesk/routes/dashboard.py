from datetime import datetime
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import func
from unidesk.models import (
    User, Role, Course, Program, Section, SectionEnrollment, AttendanceSession, AttendanceRecord,
    AcademicYear, CommunityPost, PostStatusEnum,
)
from unidesk.extensions import db
from unidesk.services.attendance import attendance_stats
from unidesk_utils.decorators import role_required

dashboard_bp = Blueprint('dashboard', __name__)


@dashboard_bp.route('/summary')
@jwt_required()
@role_required("admin")
def summary():
    academic_year_id = request.args.get('academic_year_id', type=int)

    base_section_query = Section.query
    base_session_query = AttendanceSession.query
    if academic_year_id:
        base_section_query = base_section_query.filter(Section.academic_year_id == academic_year_id)
        base_session_query = base_session_query.filter(AttendanceSession.academic_year_id == academic_year_id)

    # Users by role
    role_counts = {
        name: count
        for name, count in db.session.query(Role.name, func.count(User.id))
        .join(User, User.role_id == Role.id)
        .filter(User.deleted == False)
        .group_by(Role.name)
        .all()
    }

    section_ids = [s.id for s in base_section_query.with_entities(Section.id).all()]
    active_enrollments = (
        SectionEnrollment.query
        .filter(SectionEnrollment.status == "active", SectionEnrollment.section_id.in_(section_ids))
        .count()
    )

    sessions = base_session_query.all()
    records = AttendanceRecord.query.filter(
        AttendanceRecord.session_id.in_([s.id for s in sessions])
    ).all()

    current_year = AcademicYear.query.filter_by(is_current=True).first()

    return jsonify({
        "totalStudents": role_counts.get("student", 0),
        "totalLecturers": role_counts.get("lecturer", 0),
        "totalAdmins": role_counts.get("admin", 0),
        "totalCourses": Course.query.filter_by(deleted=False).count(),
        "totalPrograms": Program.query.count(),
        "totalSections": len(section_ids),
        "activeEnrollments": active_enrollments,
        "publishedPosts": CommunityPost.query.filter_by(status=PostStatusEnum.published).count(),
        "attendance": attendance_stats(sessions, records, datetime.now()),
        "currentAcademicYear": current_year.to_dict() if current_year else None,
    })
