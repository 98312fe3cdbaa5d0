from datetime import datetime
from unidesk.extensions import db


class AcademicYear(db.Model):
    __tablename__ = 'academic_years'

    id = db.Column(db.Integer, primary_key=True)
    year_name = db.Column(db.String(50), nullable=False, unique=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    is_current = db.Column(db.Boolean, default=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    semesters = db.relationship('Semester', back_populates='academic_year', lazy=True,
                                cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "year_name": self.year_name,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "is_current": self.is_current,
            "description": self.description,
        }


class Semester(db.Model):
    __tablename__ = 'semesters'

    id = db.Column(db.Integer, primary_key=True)
    academic_year_id = db.Column(db.Integer, db.ForeignKey('academic_years.id'), nullable=False)
    semester_name = db.Column(db.String(50), nullable=False)
    semester_number = db.Column(db.Integer, nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    is_current = db.Column(db.Boolean, default=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    academic_year = db.relationship('AcademicYear', back_populates='semesters')

    __table_args__ = (
        db.UniqueConstraint('academic_year_id', 'semester_number', name='uq_year_semester_number'),
        db.CheckConstraint('semester_number IN (1, 2)', name='ck_semester_number'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "academic_year_id": self.academic_year_id,
            "academic_year": self.academic_year.year_name if self.academic_year else None,
            "semester_name": self.semester_name,
            "semester_number": self.semester_number,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "is_current": self.is_current,
            "description": self.description,
        }


class Department(db.Model):
    __tablename__ = 'departments'

    id = db.Column(db.Integer, primary_key=True)
    department_code = db.Column(db.String(20), unique=True, nullable=False)
    department_name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    head_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    programs = db.relationship('Program', back_populates='department', lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "department_code": self.department_code,
            "department_name": self.department_name,
            "description": self.description,
            "head_id": self.head_id,
            "is_active": self.is_active,
        }


class Program(db.Model):
    __tablename__ = 'programs'

    id = db.Column(db.Integer, primary_key=True)
    program_code = db.Column(db.String(20), unique=True, nullable=False)
    program_name = db.Column(db.String(255), nullable=False)
    department_id = db.Column(db.Integer, db.ForeignKey('departments.id'), nullable=True)
    degree_type = db.Column(db.String(50), nullable=True)  # Bachelor, Master, PhD, Certificate
    duration_years = db.Column(db.Integer, nullable=True)
    total_credits = db.Column(db.Integer, nullable=True)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    department = db.relationship('Department', back_populates='programs')
    sections = db.relationship('Section', back_populates='program', lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "program_code": self.program_code,
            "program_name": self.program_name,
            "department_id": self.department_id,
            "department": self.department.department_name if self.department else None,
            "degree_type": self.degree_type,
            "duration_years": self.duration_years,
            "total_credits": self.total_credits,
            "description": self.description,
            "is_active": self.is_active,
        }


class Section(db.Model):
    __tablename__ = 'sections'

    id = db.Column(db.Integer, primary_key=True)
    section_code = db.Column(db.String(20), nullable=False)
    program_id = db.Column(db.Integer, db.ForeignKey('programs.id'), nullable=False)
    academic_year_id = db.Column(db.Integer, db.ForeignKey('academic_years.id'), nullable=False)
    semester_id = db.Column(db.Integer, db.ForeignKey('semesters.id'), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    max_capacity = db.Column(db.Integer, nullable=True)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    program = db.relationship('Program', back_populates='sections')
    academic_year = db.relationship('AcademicYear')
    semester = db.relationship('Semester')
    enrollments = db.relationship('SectionEnrollment', back_populates='section', lazy=True,
                                  cascade="all, delete-orphan")

    __table_args__ = (
        db.UniqueConstraint('section_code', 'program_id', 'academic_year_id', 'semester_id',
                            name='uq_section_code_program_term'),
        db.CheckConstraint('year >= 1 AND year <= 4', name='ck_section_year'),
    )

    @property
    def current_enrollment(self):
        return sum(1 for e in self.enrollments if e.status == "active")

    def to_dict(self):
        return {
            "id": self.id,
            "section_code": self.section_code,
            "program_id": self.program_id,
            "program": self.program.program_name if self.program else None,
            "academic_year_id": self.academic_year_id,
            "academic_year": self.academic_year.year_name if self.academic_year else None,
            "semester_id": self.semester_id,
            "semester": self.semester.semester_name if self.semester else None,
            "year": self.year,
            "max_capacity": self.max_capacity,
            "current_enrollment": self.current_enrollment,
            "description": self.description,
            "is_active": self.is_active,
        }
