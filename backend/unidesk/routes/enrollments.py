from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from sqlalchemy.exc import IntegrityError
import pandas as pd
from unidesk.models import (
    SectionEnrollment, Section, StudentProfile, User, EnrollmentStatusEnum, AcademicStatusEnum, enum_values,
)
from unidesk.extensions import db
from unidesk_utils.decorators import role_required, get_current_user
from unidesk_utils.access_control import ensure_self_or_staff
from unidesk_utils.pagination import apply_pagination_and_search, pagination_payload
from unidesk_utils.parsing import request_data, missing_fields, parse_date

enrollments_bp = Blueprint('enrollments', __name__)


def _section_is_full(section):
    if section.max_capacity is None:
        return False
    active = SectionEnrollment.query.filter_by(section_id=section.id, status="active").count()
    return active >= section.max_capacity


@enrollments_bp.route('/list', methods=['GET'])
@jwt_required()
@role_required("admin", "lecturer", "student")
def list_enrollments():
    user = get_current_user()
    section_id = request.args.get("section_id", type=int)
    student_id = request.args.get("student_id", type=int)
    status = request.args.get("status")

    if user.role_name == "student":
        student_id = user.id

    query = SectionEnrollment.query.join(Section)
    if section_id:
        query = query.filter(SectionEnrollment.section_id == section_id)
    if student_id:
        query = query.filter(SectionEnrollment.student_id == student_id)
    if status:
        if status not in enum_values(EnrollmentStatusEnum):
            return jsonify({"error": "Invalid status"}), 400
        query = query.filter(SectionEnrollment.status == status)

    enrollments = query.order_by(SectionEnrollment.enrollment_date.desc(), SectionEnrollment.id).all()
    return jsonify([e.to_dict() for e in enrollments]), 200


@enrollments_bp.route('/create', methods=['POST'])
@jwt_required()
@role_required("admin")
def create_enrollment():
    data = request_data(request)
    missing = missing_fields(data, ("student_id", "section_id"))
    if missing:
        return jsonify({"error": f"Missing required fields: {missing}"}), 400

    try:
        student_id = int(data["student_id"])
        section_id = int(data["section_id"])
        enrollment_date = parse_date(data["enrollment_date"]) if data.get("enrollment_date") else None
    except (TypeError, ValueError) as e:
        return jsonify({"error": "Invalid input types", "details": str(e)}), 400

    status = data.get("status", "active")
    if status not in enum_values(EnrollmentStatusEnum):
        return jsonify({"error": "Invalid status"}), 400

    student = db.session.get(User, student_id)
    if not student or student.role_name != "student":
        return jsonify({"error": "Student not found"}), 404

    section = db.session.get(Section, section_id)
    if not section:
        return jsonify({"error": "Section not found"}), 404
    if status == "active" and _section_is_full(section):
        return jsonify({"error": f"Section {section.section_code} is full"}), 409

    enrollment = SectionEnrollment(
        student_id=student_id,
        section_id=section_id,
        status=status,
        notes=data.get("notes"),
    )
    if enrollment_date:
        enrollment.enrollment_date = enrollment_date

    db.session.add(enrollment)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "Student is already enrolled in this section"}), 409

    return jsonify({"message": "Student enrolled", "enrollment": enrollment.to_dict()}), 201


@enrollments_bp.route('/update/<int:enrollment_id>', methods=['PUT'])
@jwt_required()
@role_required("admin")
def update_enrollment(enrollment_id):
    enrollment = SectionEnrollment.query.get_or_404(enrollment_id)
    data = request_data(request)

    if 'status' in data:
        if data['status'] not in enum_values(EnrollmentStatusEnum):
            return jsonify({"error": "Invalid status"}), 400
        if data['status'] == "active" and enrollment.status != "active" and _section_is_full(enrollment.section):
            return jsonify({"error": f"Section {enrollment.section.section_code} is full"}), 409
        enrollment.status = data['status']
    if 'grade' in data:
        enrollment.grade = data['grade']
    if 'notes' in data:
        enrollment.notes = data['notes']
    if 'enrollment_date' in data:
        try:
            enrollment.enrollment_date = parse_date(data['enrollment_date'])
        except ValueError:
            db.session.rollback()
            return jsonify({"error": "Invalid enrollment date format"}), 400

    db.session.commit()
    return jsonify({"message": "Enrollment updated", "enrollment": enrollment.to_dict()}), 200


@enrollments_bp.route('/remove/<int:enrollment_id>', methods=['DELETE'])
@jwt_required()
@role_required("admin")
def remove_enrollment(enrollment_id):
    enrollment = SectionEnrollment.query.get_or_404(enrollment_id)
    db.session.delete(enrollment)
    db.session.commit()
    return jsonify({"message": "Enrollment removed"}), 200


@enrollments_bp.route('/bulkupload', methods=['POST'])
@jwt_required()
@role_required("admin")
def bulk_upload_enrollments():
    if 'file' not in request.files:
        return jsonify({"error": "Missing CSV/XLSX file"}), 400

    file = request.files['file']
    ext = file.filename.rsplit('.', 1)[-1].lower() if '.' in file.filename else ''
    try:
        if ext == 'csv':
            df = pd.read_csv(file, dtype=str)
        elif ext in ['xls', 'xlsx']:
            df = pd.read_excel(file, dtype=str)
        else:
            return jsonify({"error": "Unsupported file format. Use CSV or Excel."}), 400
    except Exception as e:
        return jsonify({"error": "Failed to read file", "details": str(e)}), 400

    missing = [col for col in ("student_number", "section_code") if col not in df.columns]
    if missing:
        return jsonify({"error": f"Missing columns: {missing}"}), 400

    # section codes repeat across programs and terms; the form narrows them down
    section_query = Section.query
    for field in ("program_id", "academic_year_id", "semester_id"):
        if request.form.get(field):
            try:
                value = int(request.form[field])
            except ValueError:
                return jsonify({"error": f"{field} must be a number"}), 400
            section_query = section_query.filter(getattr(Section, field) == value)
    sections = {}
    for section in section_query.all():
        sections.setdefault(section.section_code, []).append(section)

    profiles = {p.student_number: p for p in StudentProfile.query.all()}
    df = df.fillna("")

    created, skipped = 0, []
    for idx, row in df.iterrows():
        line = idx + 2  # header is line 1
        number = row['student_number'].strip()
        code = row['section_code'].strip()

        profile = profiles.get(number)
        if not profile:
            skipped.append({"row": line, "reason": f"Unknown student number '{number}'"})
            continue

        candidates = sections.get(code, [])
        if len(candidates) != 1:
            reason = "Unknown section code" if not candidates else "Ambiguous section code"
            skipped.append({"row": line, "reason": f"{reason} '{code}'"})
            continue
        section = candidates[0]

        if SectionEnrollment.query.filter_by(student_id=profile.user_id, section_id=section.id).first():
            skipped.append({"row": line, "reason": "Already enrolled"})
            continue

        if _section_is_full(section):
            skipped.append({"row": line, "reason": f"Section {code} is full"})
            continue

        enrollment = SectionEnrollment(student_id=profile.user_id, section_id=section.id, status="active")
        if row.get('enrollment_date'):
            try:
                enrollment.enrollment_date = parse_date(row['enrollment_date'])
            except ValueError:
                skipped.append({"row": line, "reason": "Invalid enrollment_date"})
                continue

        db.session.add(enrollment)
        db.session.flush()
        created += 1

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Bulk enrollment upload failed")
        return jsonify({"error": "Server error", "details": str(e)}), 500

    return jsonify({
        "message": f"{created} enrollments created successfully.",
        "created": created,
        "skipped": skipped,
    }), 201


# ---- student profiles ----

@enrollments_bp.route('/profiles', methods=['GET'])
@jwt_required()
@role_required("admin", "lecturer")
def list_profiles():
    page = request.args.get("page", 1, type=int)
    per_page = request.args.get("per_page", 10, type=int)
    search_term = request.args.get("search", type=str)
    program_id = request.args.get("program_id", type=int)

    query = StudentProfile.query
    if program_id:
        query = query.filter(StudentProfile.program_id == program_id)

    paginated = apply_pagination_and_search(
        query.order_by(StudentProfile.student_number),
        StudentProfile,
        search_term,
        ["student_number"],
        page,
        per_page
    )
    return jsonify(pagination_payload(paginated, "profiles")), 200


@enrollments_bp.route('/profiles/<int:student_id>', methods=['GET'])
@jwt_required()
def get_profile(student_id):
    try:
        ensure_self_or_staff(get_current_user(), student_id)
    except (ValueError, PermissionError) as e:
        return jsonify({"error": str(e)}), 403

    profile = StudentProfile.query.filter_by(user_id=student_id).first()
    if not profile:
        return jsonify({"error": "Student profile not found"}), 404
    return jsonify(profile.to_dict()), 200


@enrollments_bp.route('/profiles/update/<int:student_id>', methods=['PUT'])
@jwt_required()
@role_required("admin")
def update_profile(student_id):
    profile = StudentProfile.query.filter_by(user_id=student_id).first_or_404()
    data = request_data(request)

    if 'academic_status' in data:
        if data['academic_status'] not in enum_values(AcademicStatusEnum):
            return jsonify({"error": "Invalid academic status"}), 400
        profile.academic_status = data['academic_status']
    for field in ("program_id", "section_id", "academic_year_id", "credits_completed"):
        if field in data:
            try:
                setattr(profile, field, int(data[field]) if data[field] not in (None, "") else None)
            except (TypeError, ValueError):
                db.session.rollback()
                return jsonify({"error": f"{field} must be a number"}), 400
    for field in ("emergency_contact_name", "emergency_contact_phone"):
        if field in data:
            setattr(profile, field, data[field])
    for field in ("enrollment_date", "expected_graduation"):
        if field in data:
            try:
                setattr(profile, field, parse_date(data[field]) if data[field] else None)
            except ValueError:
                db.session.rollback()
                return jsonify({"error": f"Invalid {field} format"}), 400

    db.session.commit()
    return jsonify({"message": "Student profile updated", "profile": profile.to_dict()}), 200
