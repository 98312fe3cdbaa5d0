from datetime import datetime
from unidesk.extensions import db
from .base import SoftDeleteMixin

class Course(db.Model, SoftDeleteMixin):
    __tablename__ = 'courses'

    id = db.Column(db.Integer, primary_key=True)
    course_code = db.Column(db.String(20), unique=True, nullable=False)
    course_name = db.Column(db.String(255), nullable=False)
    department_id = db.Column(db.Integer, db.ForeignKey('departments.id'), nullable=True)
    credits = db.Column(db.Integer, default=3)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    department = db.relationship('Department')
    program_assignments = db.relationship('CourseAssignment', back_populates='course', lazy=True,
                                          cascade="all, delete-orphan")
    lecturer_assignments = db.relationship('LecturerAssignment', back_populates='course', lazy=True,
                                           cascade="all, delete-orphan")
    sessions = db.relationship('AttendanceSession', back_populates='course', lazy=True)
    materials = db.relationship('Material', back_populates='course', lazy=True,
                                cascade="all, delete-orphan")

    def to_dict(self, include_related=False):
        data = {
            "id": self.id,
            "course_code": self.course_code,
            "course_name": self.course_name,
            "department_id": self.department_id,
            "department": self.department.department_name if self.department else None,
            "credits": self.credits,
            "description": self.description,
        }

        if include_related:
            data["program_assignments"] = [a.to_dict() for a in self.program_assignments]
            data["lecturers"] = [a.to_dict() for a in self.lecturer_assignments]

        return data


class CourseAssignment(db.Model):
    """A course offered to one program / academic year / semester / year level."""
    __tablename__ = 'course_assignments'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    program_id = db.Column(db.Integer, db.ForeignKey('programs.id'), nullable=False)
    academic_year_id = db.Column(db.Integer, db.ForeignKey('academic_years.id'), nullable=False)
    semester_id = db.Column(db.Integer, db.ForeignKey('semesters.id'), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    is_mandatory = db.Column(db.Boolean, default=True)
    max_students = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    course = db.relationship('Course', back_populates='program_assignments')
    program = db.relationship('Program')
    academic_year = db.relationship('AcademicYear')
    semester = db.relationship('Semester')

    __table_args__ = (
        db.UniqueConstraint('course_id', 'program_id', 'academic_year_id', 'semester_id', 'year',
                            name='uq_course_assignment'),
        db.CheckConstraint('year >= 1 AND year <= 4', name='ck_course_assignment_year'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "course_id": self.course_id,
            "program_id": self.program_id,
            "program_name": self.program.program_name if self.program else None,
            "program_code": self.program.program_code if self.program else None,
            "academic_year_id": self.academic_year_id,
            "academic_year_name": self.academic_year.year_name if self.academic_year else None,
            "semester_id": self.semester_id,
            "semester_name": self.semester.semester_name if self.semester else None,
            "year": self.year,
            "is_mandatory": self.is_mandatory,
            "max_students": self.max_students,
        }


class LecturerAssignment(db.Model):
    """Which lecturer teaches a course, optionally narrowed to a program/term/section."""
    __tablename__ = 'lecturer_assignments'

    id = db.Column(db.Integer, primary_key=True)
    lecturer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    program_id = db.Column(db.Integer, db.ForeignKey('programs.id'), nullable=True)
    academic_year_id = db.Column(db.Integer, db.ForeignKey('academic_years.id'), nullable=True)
    semester_id = db.Column(db.Integer, db.ForeignKey('semesters.id'), nullable=True)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id'), nullable=True)
    year = db.Column(db.Integer, nullable=True)
    is_primary = db.Column(db.Boolean, default=True)
    teaching_hours_per_week = db.Column(db.Integer, nullable=True)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    assigned_at = db.Column(db.DateTime, default=datetime.utcnow)

    lecturer = db.relationship('User')
    course = db.relationship('Course', back_populates='lecturer_assignments')
    program = db.relationship('Program')
    academic_year = db.relationship('AcademicYear')
    semester = db.relationship('Semester')
    section = db.relationship('Section')

    __table_args__ = (
        db.UniqueConstraint('lecturer_id', 'course_id', 'academic_year_id', 'semester_id',
                            'program_id', 'section_id', name='uq_lecturer_assignment'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "lecturer_id": self.lecturer_id,
            "lecturer_name": self.lecturer.full_name if self.lecturer else None,
            "course_id": self.course_id,
            "program_id": self.program_id,
            "program_name": self.program.program_name if self.program else None,
            "program_code": self.program.program_code if self.program else None,
            "academic_year_id": self.academic_year_id,
            "academic_year_name": self.academic_year.year_name if self.academic_year else None,
            "semester_id": self.semester_id,
            "semester_name": self.semester.semester_name if self.semester else None,
            "section_id": self.section_id,
            "section_code": self.section.section_code if self.section else None,
            "year": self.year,
            "is_primary": self.is_primary,
            "teaching_hours_per_week": self.teaching_hours_per_week,
        }
