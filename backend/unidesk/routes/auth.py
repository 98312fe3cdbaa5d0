from flask import Blueprint, request, jsonify, current_app, make_response
from flask_jwt_extended import (
    create_access_token, create_refresh_token, jwt_required,
    get_jwt_identity, get_jwt
)
from unidesk.models import User, Role, StudentProfile, TokenBlocklist, enum_values, RoleEnum
from unidesk.extensions import db, limiter
from unidesk_utils.audit import log_event
from unidesk_utils.decorators import role_required, get_current_user
from unidesk_utils.parsing import request_data, missing_fields, parse_date
from datetime import datetime, timedelta
import re

auth_bp = Blueprint('auth', __name__)
EMAIL_PATTERN = re.compile(r'^[\w.+-]+@[\w-]+(\.[\w-]+)+$')


def _set_access_cookie(response, access_token):
    response.set_cookie(
        "access_token_cookie",
        access_token,
        max_age=60 * 60,  # 1 hour
        httponly=True,
        secure=current_app.config["JWT_COOKIE_SECURE"],
        samesite=current_app.config["JWT_COOKIE_SAMESITE"],
        path="/"
    )


def _access_token_for(user):
    return create_access_token(
        identity=str(user.id),
        expires_delta=timedelta(hours=1),
        additional_claims={"role": user.role_name}
    )


@auth_bp.route('/register', methods=['POST'])
@limiter.limit("5 per minute", override_defaults=False)
@jwt_required()
@role_required("admin")
def register():
    data = request_data(request)
    email = (data.get('email') or '').strip().lower()
    full_name = (data.get('full_name') or '').strip()
    password = data.get('password') or ''
    role_name = (data.get('role') or '').strip().lower()

    missing = missing_fields({"email": email, "full_name": full_name, "password": password, "role": role_name},
                             ("email", "full_name", "password", "role"))
    if missing:
        return jsonify({"error": f"Missing required fields: {missing}"}), 400

    if not EMAIL_PATTERN.match(email):
        return jsonify({"error": "Invalid email format"}), 400

    if role_name not in enum_values(RoleEnum):
        return jsonify({"error": f"Role '{role_name}' not found"}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({"error": "Email already registered"}), 409

    role = Role.query.filter_by(name=role_name).first()
    if not role:
        role = Role(name=role_name)
        db.session.add(role)
        db.session.flush()

    user = User(email=email, full_name=full_name, role_id=role.id, department=data.get('department'))
    user.set_password(password)
    db.session.add(user)
    db.session.flush()

    if role_name == "student":
        student_number = (data.get('student_number') or '').strip()
        if not student_number:
            db.session.rollback()
            return jsonify({"error": "student_number is required for students"}), 400
        if StudentProfile.query.filter_by(student_number=student_number).first():
            db.session.rollback()
            return jsonify({"error": "Student number already exists"}), 409
        try:
            enrollment_date = parse_date(data['enrollment_date']) if data.get('enrollment_date') else None
        except ValueError:
            db.session.rollback()
            return jsonify({"error": "Invalid enrollment_date format, use YYYY-MM-DD"}), 400
        db.session.add(StudentProfile(
            user_id=user.id,
            student_number=student_number,
            program_id=data.get('program_id'),
            section_id=data.get('section_id'),
            academic_year_id=data.get('academic_year_id'),
            enrollment_date=enrollment_date,
        ))

    db.session.commit()
    log_event("USER_REGISTERED", user_id=get_jwt_identity(), ip=request.remote_addr,
              description=f"{email} registered as {role_name}")

    return jsonify({
        "message": "User created",
        "user_id": user.id,
        "role": role_name
    }), 201


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("5 per minute", override_defaults=False)
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password', '')
    ip = request.remote_addr

    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400

    user = User.query.filter_by(email=email, deleted=False).first()

    if user and user.check_password(password):
        access_token = _access_token_for(user)
        refresh_token = create_refresh_token(
            identity=str(user.id),
            expires_delta=timedelta(days=7)
        )

        response = make_response(jsonify({"message": "Login successful", "role": user.role_name}))
        _set_access_cookie(response, access_token)
        response.set_cookie(
            "refresh_token_cookie",
            refresh_token,
            max_age=60 * 60 * 24 * 7,  # 7 days
            httponly=True,
            secure=current_app.config["JWT_COOKIE_SECURE"],
            samesite=current_app.config["JWT_COOKIE_SAMESITE"],
            path="/auth/refresh"
        )

        log_event("LOGIN_SUCCESS", user_id=user.id, ip=ip, description=f"{email} logged in")
        return response

    log_event("LOGIN_FAILED", ip=ip, description=f"Failed login attempt for {email}", level="WARNING")
    return jsonify({"error": "Invalid email or password"}), 401


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def get_me():
    user = get_current_user()
    if not user:
        return jsonify({"error": "User not found"}), 404

    data = user.to_dict()
    if user.student_profile:
        data["student_profile"] = user.student_profile.to_dict()
    return jsonify(data), 200


@auth_bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True, locations=["cookies"])
def refresh_access_token():
    user = get_current_user()
    if not user:
        return jsonify({"error": "User not found"}), 404

    response = make_response(jsonify({"message": "Token refreshed"}))
    _set_access_cookie(response, _access_token_for(user))

    log_event("REFRESH_TOKEN", user_id=user.id, ip=request.remote_addr)
    return response


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    claims = get_jwt()
    user_id = get_jwt_identity()

    token_block = TokenBlocklist(
        jti=claims["jti"],
        token_type=claims.get("type", "access"),
        user_id=int(user_id),
        expires_at=datetime.fromtimestamp(claims["exp"]),
    )
    db.session.add(token_block)
    db.session.commit()

    response = make_response(jsonify({"message": "Successfully logged out"}))
    response.delete_cookie("access_token_cookie", path="/")
    response.delete_cookie("refresh_token_cookie", path="/auth/refresh")

    log_event("LOGOUT", user_id=user_id, ip=request.remote_addr)
    return response
