"""
Course enrollment by inheritance.

A course never stores its students directly. Students reach a course through
their active section enrollments: a section belongs to a program, academic
year, semester and year level, and a course assignment names the same four
things. This module joins the two lists in memory.

Rows are plain mappings, usually produced by ``CourseAssignment.to_dict()``,
``LecturerAssignment.to_dict()`` and ``SectionEnrollment.to_dict()``.
"""

NOT_AVAILABLE = "N/A"


def _or_na(value):
    return value if value not in (None, "") else NOT_AVAILABLE


def enrollment_matches(assignment, enrollment):
    """True when an active enrollment falls under the assignment's program/term/year."""
    if enrollment.get("status") != "active":
        return False

    for key in ("program_id", "semester_id", "academic_year_id"):
        if enrollment.get(key) != assignment.get(key):
            return False

    # an assignment without a year level covers every year
    year = assignment.get("year")
    return year is None or enrollment.get("year") == year


def student_key(enrollment, assignment):
    return (
        enrollment.get("student_id"),
        assignment.get("program_id"),
        assignment.get("semester_id"),
        assignment.get("academic_year_id"),
    )


def inherit_students(assignments, enrollments):
    """
    Returns the students a course inherits from its assignments.

    One entry per (student, program, semester, academic year). The first
    matching enrollment fills the entry; later matches only add their section
    code to ``sections``. Entries keep insertion order.
    """
    inherited = {}

    for assignment in assignments:
        for enrollment in enrollments:
            if not enrollment_matches(assignment, enrollment):
                continue

            key = student_key(enrollment, assignment)
            section_code = enrollment.get("section_code")

            if key not in inherited:
                inherited[key] = {
                    "id": enrollment.get("id"),
                    "student_id": enrollment.get("student_id"),
                    "student_name": _or_na(enrollment.get("student_name")),
                    "student_number": _or_na(enrollment.get("student_number")),
                    "program": _or_na(assignment.get("program_name")),
                    "program_code": _or_na(assignment.get("program_code")),
                    "year": assignment.get("year") if assignment.get("year") is not None else enrollment.get("year"),
                    "semester": _or_na(assignment.get("semester_name")),
                    "academic_year": _or_na(assignment.get("academic_year_name")),
                    "enrollment_date": enrollment.get("enrollment_date"),
                    "status": enrollment.get("status"),
                    "sections": [section_code] if section_code else [],
                    "assignment_id": assignment.get("id"),
                    "is_mandatory": assignment.get("is_mandatory"),
                    "max_students": assignment.get("max_students"),
                }
            elif section_code and section_code not in inherited[key]["sections"]:
                inherited[key]["sections"].append(section_code)

    return list(inherited.values())


def courses_for_student(assignments, enrollments, student_id):
    """Course ids a student inherits, in first-seen assignment order."""
    own = [e for e in enrollments if e.get("student_id") == student_id]
    course_ids = []
    for assignment in assignments:
        if assignment.get("course_id") in course_ids:
            continue
        if any(enrollment_matches(assignment, e) for e in own):
            course_ids.append(assignment.get("course_id"))
    return course_ids
