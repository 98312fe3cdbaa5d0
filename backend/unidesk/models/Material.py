from datetime import datetime
from unidesk.extensions import db
from .base import MaterialTypeEnum, MaterialCategoryEnum

class Material(db.Model):
    __tablename__ = 'materials'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    session_id = db.Column(db.Integer, db.ForeignKey('attendance_sessions.id'), nullable=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    material_type = db.Column(db.Enum(MaterialTypeEnum), nullable=False, index=True)
    category = db.Column(db.Enum(MaterialCategoryEnum), nullable=False, default=MaterialCategoryEnum.lecture)
    file_url = db.Column(db.String(500), nullable=True)
    file_type = db.Column(db.String(100), nullable=True)
    file_size = db.Column(db.BigInteger, nullable=True)
    external_url = db.Column(db.String(500), nullable=True)
    is_public = db.Column(db.Boolean, default=True)
    uploaded_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    download_count = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    course = db.relationship('Course', back_populates='materials')
    uploader = db.relationship('User')

    def to_dict(self):
        return {
            "id": self.id,
            "course_id": self.course_id,
            "course_code": self.course.course_code if self.course else None,
            "session_id": self.session_id,
            "title": self.title,
            "description": self.description,
            "material_type": self.material_type.value if self.material_type else None,
            "category": self.category.value if self.category else None,
            "file_url": self.file_url,
            "file_type": self.file_type,
            "file_size": self.file_size,
            "external_url": self.external_url,
            "is_public": self.is_public,
            "uploaded_by": self.uploader.full_name if self.uploader else None,
            "download_count": self.download_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
