from .base_route import base_bp
from .auth import auth_bp
from .academic import academic_bp
from .courses import courses_bp
from .enrollments import enrollments_bp
from .attendance import attendance_bp
from .lecturer import lecturer_bp
from .student import student_bp
from .materials import materials_bp
from .community import community_bp
from .dashboard import dashboard_bp

def register_routes(app):
    app.register_blueprint(base_bp)
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(academic_bp, url_prefix='/academic')
    app.register_blueprint(courses_bp, url_prefix='/courses')
    app.register_blueprint(enrollments_bp, url_prefix='/enrollments')
    app.register_blueprint(attendance_bp, url_prefix='/attendance')
    app.register_blueprint(lecturer_bp, url_prefix='/lecturer')
    app.register_blueprint(student_bp, url_prefix='/student')
    app.register_blueprint(materials_bp, url_prefix='/materials')
    app.register_blueprint(community_bp, url_prefix='/community')
    app.register_blueprint(dashboard_bp, url_prefix='/dashboard')
