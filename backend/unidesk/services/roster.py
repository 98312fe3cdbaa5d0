"""Database side of course inheritance: loads rows and hands them to enrollment.py."""
from sqlalchemy.orm import joinedload
from unidesk.models import (
    CourseAssignment, LecturerAssignment, SectionEnrollment, Section, AttendanceSession,
)
from unidesk.services.enrollment import inherit_students, courses_for_student

TERM_FIELDS = ("program_id", "academic_year_id", "semester_id")
SCOPE_FIELDS = TERM_FIELDS + ("year",)


def enrollment_rows(program_ids=None, student_id=None):
    """Active section enrollments, flattened with their section's program/term/year."""
    query = (
        SectionEnrollment.query
        .join(Section)
        .options(joinedload(SectionEnrollment.section), joinedload(SectionEnrollment.student))
        .filter(SectionEnrollment.status == "active")
    )
    if program_ids is not None:
        query = query.filter(Section.program_id.in_(list(program_ids)))
    if student_id is not None:
        query = query.filter(SectionEnrollment.student_id == student_id)
    return [e.to_dict() for e in query.order_by(SectionEnrollment.id).all()]


def course_assignment_rows(course_id):
    assignments = CourseAssignment.query.filter_by(course_id=course_id).order_by(CourseAssignment.id).all()
    return [a.to_dict() for a in assignments]


def lecturer_assignment_rows(lecturer_id, course_id=None):
    query = LecturerAssignment.query.filter_by(lecturer_id=lecturer_id)
    if course_id is not None:
        query = query.filter_by(course_id=course_id)
    return [a.to_dict() for a in query.order_by(LecturerAssignment.id).all()]


def _students_for(assignments):
    if not assignments:
        return []
    program_ids = {a["program_id"] for a in assignments if a.get("program_id") is not None}
    return inherit_students(assignments, enrollment_rows(program_ids=program_ids))


def course_students(course_id):
    """Students a course inherits through its program assignments."""
    return _students_for(course_assignment_rows(course_id))


def lecturer_course_students(lecturer_id, course_id):
    """
    Students a lecturer teaches in a course. A lecturer assignment that leaves
    program or term unset takes them from the course's program assignments
    that agree with the fields it does set.
    """
    course_rows = None
    scoped = []
    for assignment in lecturer_assignment_rows(lecturer_id, course_id):
        if all(assignment.get(field) is not None for field in TERM_FIELDS):
            scoped.append(assignment)
            continue
        if course_rows is None:
            course_rows = course_assignment_rows(course_id)
        wanted = {f: assignment[f] for f in SCOPE_FIELDS if assignment.get(f) is not None}
        scoped.extend(
            row for row in course_rows
            if all(row.get(k) == v for k, v in wanted.items())
        )
    return _students_for(scoped)


def student_course_ids(student_id):
    own = enrollment_rows(student_id=student_id)
    if not own:
        return []
    program_ids = {e["program_id"] for e in own}
    assignments = (
        CourseAssignment.query
        .filter(CourseAssignment.program_id.in_(list(program_ids)))
        .order_by(CourseAssignment.id)
        .all()
    )
    return courses_for_student([a.to_dict() for a in assignments], own, student_id)


def student_section_ids(student_id):
    return [e["section_id"] for e in enrollment_rows(student_id=student_id)]


def student_sessions_query(student_id):
    """Sessions for the student's active sections, or section-less sessions of inherited courses."""
    section_ids = student_section_ids(student_id)
    course_ids = student_course_ids(student_id)
    return AttendanceSession.query.filter(
        (AttendanceSession.section_id.in_(section_ids)) |
        ((AttendanceSession.section_id.is_(None)) & (AttendanceSession.course_id.in_(course_ids)))
    )


def active_section_student_ids(section_id):
    rows = (
        SectionEnrollment.query
        .with_entities(SectionEnrollment.student_id)
        .filter_by(section_id=section_id, status="active")
        .order_by(SectionEnrollment.id)
        .all()
    )
    return [row.student_id for row in rows]
