"""
Unit Tests for course inheritance

Covers:
1. One entry per student/program/semester/year, sections merged
2. Only active enrollments count
3. Assignment order does not change the student set
4. Missing names and year-less assignments
"""
from unidesk.services.enrollment import (
    inherit_students, enrollment_matches, courses_for_student, NOT_AVAILABLE,
)


def assignment(**overrides):
    row = {
        "id": 1,
        "course_id": 10,
        "program_id": 1,
        "program_name": "BSc Computer Science",
        "program_code": "BSCS",
        "academic_year_id": 2025,
        "academic_year_name": "2025/2026",
        "semester_id": 1,
        "semester_name": "Semester 1",
        "year": 1,
        "is_mandatory": True,
        "max_students": None,
    }
    row.update(overrides)
    return row


def enrollment(student_id, section_code="A", **overrides):
    row = {
        "id": student_id * 100,
        "student_id": student_id,
        "student_name": f"Student {student_id}",
        "student_number": f"S{student_id:04d}",
        "section_id": ord(section_code),
        "section_code": section_code,
        "program_id": 1,
        "academic_year_id": 2025,
        "semester_id": 1,
        "year": 1,
        "status": "active",
        "enrollment_date": "2025-09-01",
    }
    row.update(overrides)
    return row


class TestDeduplication:
    """A student reached twice under the same key appears once"""

    def test_two_sections_merge_into_one_entry(self):
        """Both section codes are listed on the single entry"""
        students = inherit_students([assignment()], [enrollment(1, "A"), enrollment(1, "B")])

        assert len(students) == 1
        assert students[0]["sections"] == ["A", "B"]

    def test_first_enrollment_fills_the_entry(self):
        first = enrollment(1, "A", enrollment_date="2025-09-01")
        second = enrollment(1, "B", enrollment_date="2025-10-15")

        students = inherit_students([assignment()], [first, second])

        assert students[0]["id"] == first["id"]
        assert students[0]["enrollment_date"] == "2025-09-01"

    def test_same_section_is_not_listed_twice(self):
        students = inherit_students([assignment(), assignment(id=2, year=None)], [enrollment(1, "A")])

        assert len(students) == 1
        assert students[0]["sections"] == ["A"]

    def test_different_programs_give_separate_entries(self):
        """The key includes the program, so a double-major student shows up per program"""
        assignments = [assignment(), assignment(id=2, program_id=2, program_name="BSc Mathematics")]
        enrollments = [enrollment(1, "A"), enrollment(1, "M", program_id=2)]

        students = inherit_students(assignments, enrollments)

        assert len(students) == 2
        assert {s["program"] for s in students} == {"BSc Computer Science", "BSc Mathematics"}


class TestActiveOnly:

    def test_dropped_and_completed_enrollments_are_excluded(self):
        enrollments = [
            enrollment(1),
            enrollment(2, status="dropped"),
            enrollment(3, status="completed"),
        ]

        assert [s["student_id"] for s in inherit_students([assignment()], enrollments)] == [1]

    def test_matching_needs_program_term_and_year(self):
        base = assignment()
        assert enrollment_matches(base, enrollment(1))
        assert not enrollment_matches(base, enrollment(1, program_id=2))
        assert not enrollment_matches(base, enrollment(1, semester_id=2))
        assert not enrollment_matches(base, enrollment(1, academic_year_id=2024))
        assert not enrollment_matches(base, enrollment(1, year=2))


class TestOrderIndependence:

    def test_reversing_assignments_keeps_the_student_set(self):
        assignments = [
            assignment(id=1),
            assignment(id=2, year=2),
            assignment(id=3, semester_id=2, semester_name="Semester 2"),
        ]
        enrollments = [
            enrollment(1),
            enrollment(2, year=2),
            enrollment(3, semester_id=2),
            enrollment(4, "B"),
            enrollment(1, "B"),
        ]

        forward = inherit_students(assignments, enrollments)
        backward = inherit_students(list(reversed(assignments)), enrollments)

        def keys(rows):
            return {(r["student_id"], r["semester"], tuple(sorted(r["sections"]))) for r in rows}

        assert keys(forward) == keys(backward)


class TestMissingValues:

    def test_missing_names_become_not_available(self):
        students = inherit_students(
            [assignment(program_name=None, semester_name="", academic_year_name=None)],
            [enrollment(1, student_name=None, student_number=None)],
        )

        row = students[0]
        assert row["student_name"] == NOT_AVAILABLE
        assert row["student_number"] == NOT_AVAILABLE
        assert row["program"] == NOT_AVAILABLE
        assert row["semester"] == NOT_AVAILABLE
        assert row["academic_year"] == NOT_AVAILABLE

    def test_assignment_without_year_matches_every_year(self):
        enrollments = [enrollment(1, year=1), enrollment(2, year=3)]

        students = inherit_students([assignment(year=None)], enrollments)

        assert [s["student_id"] for s in students] == [1, 2]
        assert [s["year"] for s in students] == [1, 3]

    def test_no_assignments_means_no_students(self):
        assert inherit_students([], [enrollment(1)]) == []


class TestCoursesForStudent:

    def test_courses_follow_the_students_sections(self):
        assignments = [
            assignment(course_id=10),
            assignment(id=2, course_id=11, year=2),
            assignment(id=3, course_id=12),
            assignment(id=4, course_id=10, semester_id=2),
        ]
        enrollments = [enrollment(1), enrollment(2, year=2)]

        assert courses_for_student(assignments, enrollments, 1) == [10, 12]
        assert courses_for_student(assignments, enrollments, 2) == [11]
        assert courses_for_student(assignments, enrollments, 99) == []
