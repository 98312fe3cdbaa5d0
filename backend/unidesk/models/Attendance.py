from datetime import datetime
from unidesk.extensions import db

class AttendanceSession(db.Model):
    __tablename__ = 'attendance_sessions'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    lecturer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id'), nullable=True)
    academic_year_id = db.Column(db.Integer, db.ForeignKey('academic_years.id'), nullable=True)
    semester_id = db.Column(db.Integer, db.ForeignKey('semesters.id'), nullable=True)
    session_name = db.Column(db.String(255), nullable=False)
    session_date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    session_type = db.Column(db.String(20), nullable=False, default="lecture")
    location = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    capacity = db.Column(db.Integer, nullable=True)
    attendance_method = db.Column(db.String(20), nullable=False, default="qr_code")
    status = db.Column(db.String(20), nullable=False, default="scheduled")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    course = db.relationship('Course', back_populates='sessions')
    lecturer = db.relationship('User')
    section = db.relationship('Section')
    records = db.relationship('AttendanceRecord', back_populates='session', lazy=True,
                              cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "course_id": self.course_id,
            "course_code": self.course.course_code if self.course else None,
            "course_name": self.course.course_name if self.course else None,
            "lecturer_id": self.lecturer_id,
            "lecturer_name": self.lecturer.full_name if self.lecturer else None,
            "section_id": self.section_id,
            "section_code": self.section.section_code if self.section else None,
            "academic_year_id": self.academic_year_id,
            "semester_id": self.semester_id,
            "session_name": self.session_name,
            "session_date": self.session_date.isoformat() if self.session_date else None,
            "start_time": self.start_time.strftime("%H:%M") if self.start_time else None,
            "end_time": self.end_time.strftime("%H:%M") if self.end_time else None,
            "session_type": self.session_type,
            "location": self.location,
            "description": self.description,
            "capacity": self.capacity,
            "attendance_method": self.attendance_method,
            "status": self.status,
        }


class AttendanceRecord(db.Model):
    __tablename__ = 'attendance_records'

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('attendance_sessions.id'), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    status = db.Column(db.String(20), nullable=False, default="present")  # 'present', 'late', 'absent'
    method_used = db.Column(db.String(20), nullable=False)  # 'qr_code', 'facial_recognition', 'manual', 'auto'
    marked_at = db.Column(db.DateTime, default=datetime.utcnow)
    recorded_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    location_data = db.Column(db.JSON, nullable=True)
    note = db.Column(db.String(255), nullable=True)

    session = db.relationship('AttendanceSession', back_populates='records')
    student = db.relationship('User', foreign_keys=[student_id])

    __table_args__ = (
        db.UniqueConstraint('session_id', 'student_id', name='uq_session_student'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "session_id": self.session_id,
            "student_id": self.student_id,
            "student_name": self.student.full_name if self.student else None,
            "status": self.status,
            "method_used": self.method_used,
            "marked_at": self.marked_at.isoformat() if self.marked_at else None,
            "recorded_by": self.recorded_by,
            "note": self.note,
        }
