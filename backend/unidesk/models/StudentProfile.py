from datetime import datetime
from unidesk.extensions import db

class StudentProfile(db.Model):
    __tablename__ = 'student_profiles'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)
    student_number = db.Column(db.String(50), unique=True, nullable=False)
    program_id = db.Column(db.Integer, db.ForeignKey('programs.id'), nullable=True)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id'), nullable=True)
    academic_year_id = db.Column(db.Integer, db.ForeignKey('academic_years.id'), nullable=True)
    enrollment_date = db.Column(db.Date, nullable=True)
    expected_graduation = db.Column(db.Date, nullable=True)
    academic_status = db.Column(db.String(20), nullable=False, default="active")
    gpa = db.Column(db.Numeric(3, 2), nullable=True)
    credits_completed = db.Column(db.Integer, default=0)
    emergency_contact_name = db.Column(db.String(255), nullable=True)
    emergency_contact_phone = db.Column(db.String(20), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship('User', back_populates='student_profile', foreign_keys=[user_id])
    program = db.relationship('Program')
    section = db.relationship('Section')

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "full_name": self.user.full_name if self.user else None,
            "email": self.user.email if self.user else None,
            "student_number": self.student_number,
            "program_id": self.program_id,
            "program": self.program.program_name if self.program else None,
            "section_id": self.section_id,
            "section_code": self.section.section_code if self.section else None,
            "academic_year_id": self.academic_year_id,
            "enrollment_date": self.enrollment_date.isoformat() if self.enrollment_date else None,
            "expected_graduation": self.expected_graduation.isoformat() if self.expected_graduation else None,
            "academic_status": self.academic_status,
            "gpa": float(self.gpa) if self.gpa is not None else None,
            "credits_completed": self.credits_completed,
        }
