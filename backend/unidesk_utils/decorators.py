from functools import wraps
from flask_jwt_extended import get_jwt_identity
from flask import jsonify
from unidesk.extensions import db
from unidesk.models import User


def get_current_user():
    user_id = get_jwt_identity()
    if not user_id:
        return None
    user = db.session.get(User, int(user_id))
    if not user or user.deleted:
        return None
    return user


def role_required(*allowed_roles):
    """
    Restrict access to users with specific roles.
    Usage: @role_required("admin", "lecturer")
    """
    allowed_roles = set(role.lower() for role in allowed_roles)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user_id = get_jwt_identity()
            if not user_id:
                return jsonify({"error": "Missing or invalid JWT token"}), 401

            user = get_current_user()
            if not user:
                return jsonify({"error": "User not found"}), 401

            if user.role_name not in allowed_roles:
                return jsonify({"error": "Access forbidden: insufficient permissions"}), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
