from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from unidesk.models import Material, Course, AttendanceSession, MaterialTypeEnum, MaterialCategoryEnum, enum_values
from unidesk.extensions import db
from unidesk.services.roster import student_course_ids
from unidesk_utils.decorators import role_required, get_current_user
from unidesk_utils.access_control import ensure_course_access
from unidesk_utils.pagination import apply_pagination_and_search, pagination_payload
from unidesk_utils.parsing import request_data, missing_fields, parse_bool

materials_bp = Blueprint('materials', __name__)


def _can_read(user, material):
    if user.role_name == "admin":
        return True
    if user.role_name == "lecturer":
        try:
            ensure_course_access(user, material.course_id)
            return True
        except PermissionError:
            return False
    return material.is_public and material.course_id in student_course_ids(user.id)


def _apply_fields(material, data):
    if 'title' in data:
        if not str(data['title']).strip():
            raise ValueError("title cannot be empty")
        material.title = str(data['title']).strip()
    if 'material_type' in data:
        if data['material_type'] not in enum_values(MaterialTypeEnum):
            raise ValueError("Invalid material_type")
        material.material_type = MaterialTypeEnum(data['material_type'])
    if 'category' in data:
        if data['category'] not in enum_values(MaterialCategoryEnum):
            raise ValueError("Invalid category")
        material.category = MaterialCategoryEnum(data['category'])
    if 'session_id' in data:
        session_id = int(data['session_id']) if data['session_id'] else None
        if session_id:
            session = db.session.get(AttendanceSession, session_id)
            if not session or session.course_id != material.course_id:
                raise ValueError("Session does not belong to this course")
        material.session_id = session_id
    if 'file_size' in data:
        material.file_size = int(data['file_size']) if data['file_size'] else None
    if 'is_public' in data:
        material.is_public = parse_bool(data['is_public'], default=True)
    for field in ('description', 'file_url', 'file_type', 'external_url'):
        if field in data:
            setattr(material, field, data[field])

    if material.material_type == MaterialTypeEnum.link and not material.external_url:
        raise ValueError("Link materials need an external_url")


@materials_bp.route('/list', methods=['GET'])
@jwt_required()
@role_required("admin", "lecturer")
def list_materials():
    user = get_current_user()
    course_id = request.args.get("course_id", type=int)

    query = Material.query
    if course_id:
        try:
            ensure_course_access(user, course_id)
        except PermissionError as e:
            return jsonify({"error": str(e)}), 403
        query = query.filter(Material.course_id == course_id)
    elif user.role_name == "lecturer":
        query = query.filter(Material.uploaded_by == user.id)

    if request.args.get("category"):
        try:
            query = query.filter(Material.category == MaterialCategoryEnum(request.args["category"]))
        except ValueError:
            return jsonify({"error": "Invalid category"}), 400

    paginated = apply_pagination_and_search(
        query.order_by(Material.created_at.desc()),
        Material,
        request.args.get("search", type=str),
        ["title", "description"],
        request.args.get("page", 1, type=int),
        request.args.get("per_page", 10, type=int)
    )
    return jsonify(pagination_payload(paginated, "materials")), 200


@materials_bp.route('/<int:material_id>', methods=['GET'])
@jwt_required()
@role_required("admin", "lecturer", "student")
def get_material(material_id):
    user = get_current_user()
    material = Material.query.get_or_404(material_id)
    if not _can_read(user, material):
        return jsonify({"error": "Access denied to this material"}), 403
    return jsonify(material.to_dict()), 200


@materials_bp.route('/create', methods=['POST'])
@jwt_required()
@role_required("admin", "lecturer")
def create_material():
    user = get_current_user()
    data = request_data(request)

    missing = missing_fields(data, ("course_id", "title", "material_type"))
    if missing:
        return jsonify({"error": f"Missing required fields: {missing}"}), 400

    try:
        course_id = int(data["course_id"])
    except (TypeError, ValueError):
        return jsonify({"error": "course_id must be a number"}), 400

    if not Course.query.filter_by(id=course_id, deleted=False).first():
        return jsonify({"error": "Course not found"}), 404

    try:
        ensure_course_access(user, course_id)
    except PermissionError as e:
        return jsonify({"error": str(e)}), 403

    material = Material(course_id=course_id, uploaded_by=user.id, download_count=0)
    try:
        _apply_fields(material, data)
    except (TypeError, ValueError) as e:
        return jsonify({"error": str(e)}), 400

    db.session.add(material)
    db.session.commit()
    current_app.logger.info("Material %s added to course %s by user %s", material.id, course_id, user.id)
    return jsonify({"message": "Material created", "material": material.to_dict()}), 201


@materials_bp.route('/update/<int:material_id>', methods=['PUT'])
@jwt_required()
@role_required("admin", "lecturer")
def update_material(material_id):
    user = get_current_user()
    material = Material.query.get_or_404(material_id)
    try:
        ensure_course_access(user, material.course_id)
    except PermissionError as e:
        return jsonify({"error": str(e)}), 403

    try:
        _apply_fields(material, request_data(request))
    except (TypeError, ValueError) as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400

    db.session.commit()
    return jsonify({"message": "Material updated", "material": material.to_dict()}), 200


@materials_bp.route('/remove/<int:material_id>', methods=['DELETE'])
@jwt_required()
@role_required("admin", "lecturer")
def remove_material(material_id):
    user = get_current_user()
    material = Material.query.get_or_404(material_id)
    try:
        ensure_course_access(user, material.course_id)
    except PermissionError as e:
        return jsonify({"error": str(e)}), 403

    db.session.delete(material)
    db.session.commit()
    return jsonify({"message": "Material removed"}), 200


@materials_bp.route('/<int:material_id>/download', methods=['POST'])
@jwt_required()
@role_required("admin", "lecturer", "student")
def record_download(material_id):
    user = get_current_user()
    material = Material.query.get_or_404(material_id)
    if not _can_read(user, material):
        return jsonify({"error": "Access denied to this material"}), 403

    material.download_count = (material.download_count or 0) + 1
    db.session.commit()
    return jsonify({
        "download_count": material.download_count,
        "url": material.external_url or material.file_url,
    }), 200
