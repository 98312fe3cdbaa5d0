"""
UniDesk - Test Configuration and Fixtures
"""
from datetime import date, time, timedelta
import pytest
from faker import Faker
from flask_jwt_extended import create_access_token

from unidesk import create_app
from unidesk.config import TestConfig
from unidesk.extensions import db
from unidesk.models import (
    Role, User, StudentProfile, AcademicYear, Semester, Department, Program, Section,
    SectionEnrollment, Course, CourseAssignment, LecturerAssignment, AttendanceSession,
)

fake = Faker()


@pytest.fixture
def app(tmp_path):
    """Fresh app with an in-memory database for each test"""
    app = create_app(TestConfig)
    app.config["AUDIT_LOG_FILE"] = str(tmp_path / "audit.log")

    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Factory for users of a given role; students also get a profile"""
    def _make_user(role_name, password="testpassword123", **kwargs):
        role = Role.query.filter_by(name=role_name).first()
        if not role:
            role = Role(name=role_name)
            db.session.add(role)
            db.session.flush()

        user = User(
            email=kwargs.pop("email", fake.unique.email()),
            full_name=kwargs.pop("full_name", fake.name()),
            role_id=role.id,
            **kwargs
        )
        user.set_password(password)
        db.session.add(user)
        db.session.flush()

        if role_name == "student":
            db.session.add(StudentProfile(user_id=user.id, student_number=fake.unique.bothify("S#######")))
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def admin_user(make_user):
    return make_user("admin")


@pytest.fixture
def lecturer_user(make_user):
    return make_user("lecturer")


@pytest.fixture
def student_user(make_user):
    return make_user("student")


@pytest.fixture
def auth_headers(app):
    """Returns a function building bearer headers for a user"""
    def _headers(user):
        token = create_access_token(identity=str(user.id))
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def academic(app):
    """One year, one semester, a program with two first-year sections"""
    year = AcademicYear(year_name="2025/2026", start_date=date(2025, 9, 1), end_date=date(2026, 6, 30),
                        is_current=True)
    db.session.add(year)
    db.session.flush()

    semester = Semester(academic_year_id=year.id, semester_name="Semester 1", semester_number=1,
                        start_date=date(2025, 9, 1), end_date=date(2026, 1, 31))
    department = Department(department_code="CS", department_name="Computer Science")
    db.session.add_all([semester, department])
    db.session.flush()

    program = Program(program_code="BSCS", program_name="BSc Computer Science", department_id=department.id)
    db.session.add(program)
    db.session.flush()

    section_a = Section(section_code="A", program_id=program.id, academic_year_id=year.id,
                        semester_id=semester.id, year=1, max_capacity=30)
    section_b = Section(section_code="B", program_id=program.id, academic_year_id=year.id,
                        semester_id=semester.id, year=1)
    db.session.add_all([section_a, section_b])
    db.session.commit()

    return {
        "year": year,
        "semester": semester,
        "department": department,
        "program": program,
        "section_a": section_a,
        "section_b": section_b,
    }


@pytest.fixture
def course(academic):
    """CS101 offered to first-year BSCS students"""
    course = Course(course_code="CS101", course_name="Introduction to Programming",
                    department_id=academic["department"].id)
    db.session.add(course)
    db.session.flush()
    db.session.add(CourseAssignment(
        course_id=course.id,
        program_id=academic["program"].id,
        academic_year_id=academic["year"].id,
        semester_id=academic["semester"].id,
        year=1,
    ))
    db.session.commit()
    return course


@pytest.fixture
def teaching(course, academic, lecturer_user):
    """The lecturer assigned to CS101 for the BSCS program"""
    db.session.add(LecturerAssignment(
        lecturer_id=lecturer_user.id,
        course_id=course.id,
        program_id=academic["program"].id,
        academic_year_id=academic["year"].id,
        semester_id=academic["semester"].id,
        year=1,
    ))
    db.session.commit()
    return lecturer_user


@pytest.fixture
def enroll():
    def _enroll(student, section, status="active"):
        enrollment = SectionEnrollment(student_id=student.id, section_id=section.id, status=status)
        db.session.add(enrollment)
        db.session.commit()
        return enrollment
    return _enroll


@pytest.fixture
def make_session(course, academic):
    """Factory for sessions of CS101 in section A, defaulting to an all-day session today"""
    def _make_session(lecturer, day_offset=0, start=time(0, 0), end=time(23, 59, 59), **kwargs):
        session = AttendanceSession(
            course_id=course.id,
            lecturer_id=lecturer.id,
            section_id=kwargs.pop("section_id", academic["section_a"].id),
            academic_year_id=academic["year"].id,
            semester_id=academic["semester"].id,
            session_name=kwargs.pop("session_name", "Lecture 1"),
            session_date=date.today() + timedelta(days=day_offset),
            start_time=start,
            end_time=end,
            **kwargs
        )
        db.session.add(session)
        db.session.commit()
        return session
    return _make_session
