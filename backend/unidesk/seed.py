import os
from datetime import date, time, timedelta
from unidesk.extensions import db
from unidesk.models import (
    Role, User, StudentProfile, AcademicYear, Semester, Department, Program, Section,
    SectionEnrollment, Course, CourseAssignment, LecturerAssignment, AttendanceSession,
)

ROLES = ['admin', 'lecturer', 'student']


def seed_data(reset=False):
    if reset:
        db.drop_all()
        db.create_all()

    admin_password = os.getenv("ADMIN_PASSWORD", "your_secure_password")

    # Create roles
    for role_name in ROLES:
        if not Role.query.filter_by(name=role_name).first():
            db.session.add(Role(name=role_name))
    db.session.commit()

    def get_role_id(role_name):
        role = Role.query.filter_by(name=role_name).first()
        return role.id if role else None

    def get_or_create_user(email, full_name, role_name, password):
        user = User.query.filter_by(email=email).first()
        if user:
            return user
        user = User(email=email, full_name=full_name, role_id=get_role_id(role_name))
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    admin = get_or_create_user("admin@unidesk.local", "System Administrator", "admin", admin_password)

    if AcademicYear.query.first():
        print("ℹ️ Academic data already present, only roles and admin were checked.")
        return

    # Academic structure
    year = AcademicYear(year_name="2025/2026", start_date=date(2025, 9, 1), end_date=date(2026, 6, 30),
                        is_current=True)
    db.session.add(year)
    db.session.flush()

    semester = Semester(academic_year_id=year.id, semester_name="Semester 1", semester_number=1,
                        start_date=date(2025, 9, 1), end_date=date(2026, 1, 31), is_current=True)
    department = Department(department_code="CS", department_name="Computer Science", head_id=admin.id)
    db.session.add_all([semester, department])
    db.session.flush()

    program = Program(program_code="BSCS", program_name="BSc Computer Science", department_id=department.id,
                      degree_type="Bachelor", duration_years=4, total_credits=240)
    db.session.add(program)
    db.session.flush()

    section_a = Section(section_code="A", program_id=program.id, academic_year_id=year.id,
                        semester_id=semester.id, year=1, max_capacity=40)
    section_b = Section(section_code="B", program_id=program.id, academic_year_id=year.id,
                        semester_id=semester.id, year=1, max_capacity=40)
    db.session.add_all([section_a, section_b])
    db.session.commit()

    lecturer = get_or_create_user("lecturer@unidesk.local", "Grace Hopper", "lecturer", "lecturerpass")

    course = Course(course_code="CS101", course_name="Introduction to Programming",
                    department_id=department.id, credits=6)
    db.session.add(course)
    db.session.flush()

    db.session.add(CourseAssignment(course_id=course.id, program_id=program.id, academic_year_id=year.id,
                                    semester_id=semester.id, year=1))
    db.session.add(LecturerAssignment(lecturer_id=lecturer.id, course_id=course.id, program_id=program.id,
                                      academic_year_id=year.id, semester_id=semester.id, year=1))
    db.session.commit()

    students = [
        ("Thabo Mokoena", "S1001", section_a),
        ("Ayanda Sithole", "S1002", section_a),
        ("Sipho Deliwe", "S1003", section_b),
    ]
    for full_name, student_number, section in students:
        email = f"{student_number.lower()}@students.unidesk.local"
        user = get_or_create_user(email, full_name, "student", "studentpass")
        db.session.add(StudentProfile(user_id=user.id, student_number=student_number, program_id=program.id,
                                      section_id=section.id, academic_year_id=year.id,
                                      enrollment_date=year.start_date))
        db.session.add(SectionEnrollment(student_id=user.id, section_id=section.id,
                                         enrollment_date=year.start_date))
    db.session.commit()

    today = date.today()
    for offset, section in ((-1, section_a), (0, section_a), (1, section_b)):
        db.session.add(AttendanceSession(
            course_id=course.id,
            lecturer_id=lecturer.id,
            section_id=section.id,
            academic_year_id=year.id,
            semester_id=semester.id,
            session_name=f"CS101 Lecture {section.section_code}",
            session_date=today + timedelta(days=offset),
            start_time=time(8, 0),
            end_time=time(17, 0),
            location="Lecture Hall 1",
        ))
    db.session.commit()

    print(f"✅ Created {len(students)} students, 1 lecturer and 3 sessions.")
    print("✅ Seed data inserted successfully.")


if __name__ == "__main__":
    from unidesk import create_app

    app = create_app()
    with app.app_context():
        seed_data()
