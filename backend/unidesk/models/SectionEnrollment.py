from datetime import datetime
from unidesk.extensions import db

class SectionEnrollment(db.Model):
    __tablename__ = 'section_enrollments'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id'), nullable=False)
    enrollment_date = db.Column(db.Date, nullable=False, default=lambda: datetime.utcnow().date())
    status = db.Column(db.String(20), nullable=False, default="active", index=True)  # 'active', 'dropped', 'completed'
    grade = db.Column(db.String(10), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    student = db.relationship('User')
    section = db.relationship('Section', back_populates='enrollments')

    __table_args__ = (
        db.UniqueConstraint('student_id', 'section_id', name='uq_student_section'),
    )

    def to_dict(self):
        section = self.section
        profile = self.student.student_profile if self.student else None
        return {
            "id": self.id,
            "student_id": self.student_id,
            "student_name": self.student.full_name if self.student else None,
            "student_number": profile.student_number if profile else None,
            "section_id": self.section_id,
            "section_code": section.section_code if section else None,
            "program_id": section.program_id if section else None,
            "academic_year_id": section.academic_year_id if section else None,
            "semester_id": section.semester_id if section else None,
            "year": section.year if section else None,
            "enrollment_date": self.enrollment_date.isoformat() if self.enrollment_date else None,
            "status": self.status,
            "grade": self.grade,
            "notes": self.notes,
        }
