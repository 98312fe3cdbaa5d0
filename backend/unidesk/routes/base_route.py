from flask import Blueprint, jsonify
from unidesk.extensions import db

base_bp = Blueprint("base", __name__)

@base_bp.route("/")
def home():
    return jsonify({"message": "Welcome to the UniDesk API!"})

@base_bp.route("/api/test-db")
def test_db():
    from unidesk.models import User, Course
    try:
        return {"status": "success", "users": User.query.count(), "courses": Course.query.count()}
    except Exception as e:
        db.session.rollback()
        return {"status": "error", "message": str(e)}, 500
