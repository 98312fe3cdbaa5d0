from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from sqlalchemy import Boolean, Integer, Date, Time, Numeric
from sqlalchemy.exc import IntegrityError
from unidesk.models import AcademicYear, Semester, Department, Program, Section
from unidesk.extensions import db
from unidesk_utils.decorators import role_required, get_current_user
from unidesk_utils.formSchema import generate_schema_from_model
from unidesk_utils.parsing import request_data, missing_fields, parse_date, parse_time, parse_bool

academic_bp = Blueprint('academic', __name__)

MODEL_MAP = {
    "years": AcademicYear,
    "semesters": Semester,
    "departments": Department,
    "programs": Program,
    "sections": Section,
}

ORDERING = {
    "years": AcademicYear.start_date.desc(),
    "semesters": Semester.start_date,
    "departments": Department.department_name,
    "programs": Program.program_code,
    "sections": Section.section_code,
}

READONLY_FIELDS = {"id", "created_at", "updated_at"}

# list filters accepted as query params, per resource
FILTERS = {
    "semesters": ("academic_year_id", "is_current"),
    "programs": ("department_id", "is_active"),
    "sections": ("program_id", "academic_year_id", "semester_id", "year", "is_active"),
}


def _coerce(column, value):
    if value in (None, ""):
        return None
    if isinstance(column.type, Boolean):
        return parse_bool(value)
    if isinstance(column.type, Date):
        return parse_date(value)
    if isinstance(column.type, Time):
        return parse_time(value)
    if isinstance(column.type, Integer):
        return int(value)
    if isinstance(column.type, Numeric):
        return float(value)
    return str(value).strip()


def _required_columns(model):
    return [
        c.name for c in model.__table__.columns
        if not c.nullable and c.default is None and c.name not in READONLY_FIELDS
    ]


def _validate(resource, obj):
    """Checks the rules the tables express as CHECK constraints."""
    start, end = getattr(obj, "start_date", None), getattr(obj, "end_date", None)
    if start and end and start > end:
        return "start_date must be on or before end_date"
    if resource == "semesters" and obj.semester_number not in (1, 2):
        return "semester_number must be 1 or 2"
    if resource == "sections" and not 1 <= obj.year <= 4:
        return "year must be between 1 and 4"
    if resource == "sections" and obj.max_capacity is not None and obj.max_capacity <= 0:
        return "max_capacity must be positive"
    return None


def _apply(model, obj, data):
    for column in model.__table__.columns:
        if column.name in READONLY_FIELDS or column.name not in data:
            continue
        setattr(obj, column.name, _coerce(column, data[column.name]))


def _resolve(resource):
    model = MODEL_MAP.get(resource)
    if not model:
        return None, (jsonify({"error": f"Resource '{resource}' is not supported"}), 404)
    return model, None


@academic_bp.route('/<resource>/list', methods=['GET'])
@jwt_required()
def list_resource(resource):
    model, error = _resolve(resource)
    if error:
        return error

    query = model.query
    for field in FILTERS.get(resource, ()):
        raw = request.args.get(field)
        if raw is None:
            continue
        try:
            value = _coerce(model.__table__.columns[field], raw)
        except ValueError:
            return jsonify({"error": f"Invalid value for {field}"}), 400
        query = query.filter(getattr(model, field) == value)

    return jsonify([row.to_dict() for row in query.order_by(ORDERING[resource]).all()]), 200


@academic_bp.route('/<resource>/<int:row_id>', methods=['GET'])
@jwt_required()
def get_resource(resource, row_id):
    model, error = _resolve(resource)
    if error:
        return error
    return jsonify(db.get_or_404(model, row_id).to_dict()), 200


@academic_bp.route('/<resource>/form_schema', methods=['GET'])
@jwt_required()
def form_schema(resource):
    model, error = _resolve(resource)
    if error:
        return error
    return jsonify(generate_schema_from_model(model, model.__name__, current_user=get_current_user()))


@academic_bp.route('/<resource>/create', methods=['POST'])
@jwt_required()
@role_required("admin")
def create_resource(resource):
    model, error = _resolve(resource)
    if error:
        return error

    data = request_data(request)
    missing = missing_fields(data, _required_columns(model))
    if missing:
        return jsonify({"error": f"Missing required fields: {missing}"}), 400

    obj = model()
    try:
        _apply(model, obj, data)
    except ValueError as e:
        return jsonify({"error": "Invalid input types", "details": str(e)}), 400

    problem = _validate(resource, obj)
    if problem:
        return jsonify({"error": problem}), 400

    if resource in ("years", "semesters") and obj.is_current:
        _clear_current(model, obj)

    db.session.add(obj)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        current_app.logger.warning("Duplicate %s: %s", resource, e.orig)
        return jsonify({"error": f"A {model.__name__} with these values already exists"}), 409

    return jsonify({"message": f"{model.__name__} created", "item": obj.to_dict()}), 201


@academic_bp.route('/<resource>/update/<int:row_id>', methods=['PUT'])
@jwt_required()
@role_required("admin")
def update_resource(resource, row_id):
    model, error = _resolve(resource)
    if error:
        return error

    obj = db.get_or_404(model, row_id)
    data = request_data(request)
    try:
        _apply(model, obj, data)
    except ValueError as e:
        db.session.rollback()
        return jsonify({"error": "Invalid input types", "details": str(e)}), 400

    problem = _validate(resource, obj)
    if problem:
        db.session.rollback()
        return jsonify({"error": problem}), 400

    if resource in ("years", "semesters") and obj.is_current:
        _clear_current(model, obj)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": f"A {model.__name__} with these values already exists"}), 409

    return jsonify({"message": f"{model.__name__} updated", "item": obj.to_dict()}), 200


@academic_bp.route('/<resource>/remove/<int:row_id>', methods=['DELETE'])
@jwt_required()
@role_required("admin")
def remove_resource(resource, row_id):
    model, error = _resolve(resource)
    if error:
        return error

    obj = db.get_or_404(model, row_id)
    db.session.delete(obj)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": f"{model.__name__} is still referenced and cannot be removed"}), 409

    return jsonify({"message": f"{model.__name__} removed"}), 200


def _clear_current(model, obj):
    """Only one academic year (and one semester) is current at a time."""
    query = model.query.filter(model.is_current == True)
    if obj.id:
        query = query.filter(model.id != obj.id)
    for other in query.all():
        other.is_current = False
