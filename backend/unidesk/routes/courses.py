from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy.exc import IntegrityError
from unidesk.models import (
    Course, CourseAssignment, LecturerAssignment, Program, AcademicYear, Semester, Section, User,
)
from unidesk.extensions import db
from unidesk.services.roster import course_students, lecturer_course_students
from unidesk_utils.decorators import role_required, get_current_user
from unidesk_utils.access_control import ensure_course_access
from unidesk_utils.formSchema import generate_schema_from_model
from unidesk_utils.pagination import apply_pagination_and_search, pagination_payload
from unidesk_utils.parsing import request_data, missing_fields, parse_bool, parse_date

courses_bp = Blueprint("courses", __name__)


@courses_bp.route('/list', methods=['GET'])
@jwt_required()
def list_courses():
    page = request.args.get("page", 1, type=int)
    per_page = request.args.get("per_page", 10, type=int)
    search_term = request.args.get("search", type=str)
    department_id = request.args.get("department_id", type=int)

    query = Course.query.filter(Course.deleted == False)
    if department_id:
        query = query.filter(Course.department_id == department_id)

    paginated = apply_pagination_and_search(
        query.order_by(Course.course_code),
        Course,
        search_term,
        ["course_code", "course_name"],
        page,
        per_page
    )
    return jsonify(pagination_payload(paginated, "courses")), 200


@courses_bp.route('/<int:course_id>', methods=['GET'])
@jwt_required()
def get_course(course_id):
    course = Course.query.filter_by(id=course_id, deleted=False).first()
    if not course:
        return jsonify({"error": "Course not found"}), 404
    return jsonify(course.to_dict(include_related=True)), 200


@courses_bp.route("/form_schema", methods=["GET"])
@jwt_required()
def form_schema():
    model_name = request.args.get("model", "Course")

    MODEL_MAP = {
        "Course": Course,
        "CourseAssignment": CourseAssignment,
        "LecturerAssignment": LecturerAssignment,
    }

    model_class = MODEL_MAP.get(model_name)
    if not model_class:
        return jsonify({"error": f"Model '{model_name}' is not supported in this route."}), 400

    return jsonify(generate_schema_from_model(model_class, model_name, current_user=get_current_user()))


@courses_bp.route("/create", methods=["POST"])
@jwt_required()
@role_required("admin")
def create_course():
    data = request_data(request)
    missing = missing_fields(data, ("course_code", "course_name"))
    if missing:
        return jsonify({"error": f"Missing required fields: {missing}"}), 400

    try:
        credits = int(data.get("credits") or 3)
    except ValueError:
        return jsonify({"error": "credits must be a number"}), 400

    course = Course(
        course_code=data["course_code"].strip().upper(),
        course_name=data["course_name"].strip(),
        department_id=data.get("department_id") or None,
        credits=credits,
        description=data.get("description"),
    )
    db.session.add(course)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "Course code already exists"}), 409

    return jsonify({"message": "Course created successfully", "course": course.to_dict()}), 201


@courses_bp.route('/update/<int:course_id>', methods=['PUT'])
@jwt_required()
@role_required("admin")
def update_course(course_id):
    course = Course.query.filter_by(id=course_id, deleted=False).first_or_404()
    data = request_data(request)

    if 'course_code' in data:
        course.course_code = data['course_code'].strip().upper()
    if 'course_name' in data:
        course.course_name = data['course_name'].strip()
    if 'department_id' in data:
        course.department_id = data['department_id'] or None
    if 'description' in data:
        course.description = data['description']
    if 'credits' in data:
        try:
            course.credits = int(data['credits'])
        except (TypeError, ValueError):
            db.session.rollback()
            return jsonify({"error": "credits must be a number"}), 400

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "Course code already exists"}), 409
    return jsonify({"message": "Course updated successfully", "course": course.to_dict()}), 200


@courses_bp.route("/remove/<int:course_id>", methods=["DELETE"])
@jwt_required()
@role_required("admin")
def delete_course(course_id):
    course = Course.query.get_or_404(course_id)
    course.soft_delete()
    db.session.commit()
    return jsonify({"message": "Course soft-deleted successfully"}), 200


@courses_bp.route("/deleted", methods=["GET"])
@jwt_required()
@role_required("admin")
def list_deleted_courses():
    courses = Course.query.filter(Course.deleted == True).order_by(Course.course_code).all()
    return jsonify([c.to_dict() for c in courses]), 200


@courses_bp.route("/restore/<int:course_id>", methods=["POST"])
@jwt_required()
@role_required("admin")
def restore_course(course_id):
    course = Course.query.get_or_404(course_id)
    course.restore()
    db.session.commit()
    return jsonify({"message": "Course restored successfully"}), 200


# ---- program assignments ----

@courses_bp.route('/<int:course_id>/assignments', methods=['GET'])
@jwt_required()
def list_program_assignments(course_id):
    Course.query.get_or_404(course_id)
    assignments = CourseAssignment.query.filter_by(course_id=course_id).order_by(CourseAssignment.id).all()
    return jsonify([a.to_dict() for a in assignments]), 200


@courses_bp.route('/<int:course_id>/assignments/create', methods=['POST'])
@jwt_required()
@role_required("admin")
def create_program_assignment(course_id):
    Course.query.filter_by(id=course_id, deleted=False).first_or_404()
    data = request_data(request)

    missing = missing_fields(data, ("program_id", "academic_year_id", "semester_id", "year"))
    if missing:
        return jsonify({"error": f"Missing required fields: {missing}"}), 400

    try:
        program_id = int(data["program_id"])
        academic_year_id = int(data["academic_year_id"])
        semester_id = int(data["semester_id"])
        year = int(data["year"])
        max_students = int(data["max_students"]) if data.get("max_students") else None
    except (TypeError, ValueError) as e:
        return jsonify({"error": "Invalid input types", "details": str(e)}), 400

    if not 1 <= year <= 4:
        return jsonify({"error": "year must be between 1 and 4"}), 400
    if max_students is not None and max_students <= 0:
        return jsonify({"error": "max_students must be positive"}), 400

    semester = db.session.get(Semester, semester_id)
    if not db.session.get(Program, program_id) or not db.session.get(AcademicYear, academic_year_id) or not semester:
        return jsonify({"error": "Invalid program, academic year or semester"}), 400
    if semester.academic_year_id != academic_year_id:
        return jsonify({"error": "Semester does not belong to the academic year"}), 400

    assignment = CourseAssignment(
        course_id=course_id,
        program_id=program_id,
        academic_year_id=academic_year_id,
        semester_id=semester_id,
        year=year,
        is_mandatory=parse_bool(data.get("is_mandatory"), default=True),
        max_students=max_students,
    )
    db.session.add(assignment)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "Course is already assigned to this program, term and year"}), 409

    return jsonify({"message": "Course assigned to program", "assignment": assignment.to_dict()}), 201


@courses_bp.route('/assignments/remove/<int:assignment_id>', methods=['DELETE'])
@jwt_required()
@role_required("admin")
def remove_program_assignment(assignment_id):
    assignment = CourseAssignment.query.get_or_404(assignment_id)
    db.session.delete(assignment)
    db.session.commit()
    return jsonify({"message": "Program assignment removed"}), 200


# ---- lecturer assignments ----

@courses_bp.route('/<int:course_id>/lecturers', methods=['GET'])
@jwt_required()
def list_lecturers(course_id):
    Course.query.get_or_404(course_id)
    rows = LecturerAssignment.query.filter_by(course_id=course_id).order_by(LecturerAssignment.id).all()
    return jsonify([r.to_dict() for r in rows]), 200


@courses_bp.route('/<int:course_id>/lecturers/assign', methods=['POST'])
@jwt_required()
@role_required("admin")
def assign_lecturer(course_id):
    Course.query.filter_by(id=course_id, deleted=False).first_or_404()
    data = request_data(request)

    if not data.get("lecturer_id"):
        return jsonify({"error": "Missing required fields: ['lecturer_id']"}), 400

    try:
        lecturer_id = int(data["lecturer_id"])
        optional_ids = {
            key: int(data[key]) if data.get(key) else None
            for key in ("program_id", "academic_year_id", "semester_id", "section_id", "year",
                        "teaching_hours_per_week")
        }
        start_date = parse_date(data["start_date"]) if data.get("start_date") else None
        end_date = parse_date(data["end_date"]) if data.get("end_date") else None
    except (TypeError, ValueError) as e:
        return jsonify({"error": "Invalid input types", "details": str(e)}), 400

    lecturer = db.session.get(User, lecturer_id)
    if not lecturer or lecturer.deleted or lecturer.role_name != "lecturer":
        return jsonify({"error": "Lecturer not found"}), 400

    hours = optional_ids["teaching_hours_per_week"]
    if hours is not None and not 1 <= hours <= 20:
        return jsonify({"error": "teaching_hours_per_week must be between 1 and 20"}), 400

    section_id = optional_ids["section_id"]
    if section_id:
        section = db.session.get(Section, section_id)
        if not section:
            return jsonify({"error": "Section not found"}), 400
        # a section pins the program/term/year
        optional_ids.update(
            program_id=section.program_id,
            academic_year_id=section.academic_year_id,
            semester_id=section.semester_id,
            year=section.year,
        )

    assignment = LecturerAssignment(
        lecturer_id=lecturer_id,
        course_id=course_id,
        is_primary=parse_bool(data.get("is_primary"), default=True),
        start_date=start_date,
        end_date=end_date,
        **optional_ids,
    )
    db.session.add(assignment)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "Lecturer is already assigned to this course offering"}), 409

    return jsonify({"message": "Lecturer assigned", "assignment": assignment.to_dict()}), 201


@courses_bp.route('/lecturers/remove/<int:assignment_id>', methods=['DELETE'])
@jwt_required()
@role_required("admin")
def remove_lecturer(assignment_id):
    assignment = LecturerAssignment.query.get_or_404(assignment_id)
    db.session.delete(assignment)
    db.session.commit()
    return jsonify({"message": "Lecturer assignment removed"}), 200


# ---- inherited students ----

@courses_bp.route('/<int:course_id>/students', methods=['GET'])
@jwt_required()
@role_required("admin", "lecturer")
def enrolled_students(course_id):
    user = get_current_user()
    Course.query.filter_by(id=course_id, deleted=False).first_or_404()

    try:
        ensure_course_access(user, course_id)
    except (ValueError, PermissionError) as e:
        return jsonify({"error": str(e)}), 403

    if user.role_name == "lecturer":
        students = lecturer_course_students(user.id, course_id)
    else:
        students = course_students(course_id)

    search = (request.args.get("search") or "").strip().lower()
    if search:
        students = [
            s for s in students
            if search in s["student_name"].lower() or search in s["student_number"].lower()
        ]

    return jsonify({"students": students, "total": len(students)}), 200
