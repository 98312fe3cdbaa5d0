"""
Integration Tests for /courses, including inherited students
"""
from unidesk.extensions import db
from unidesk.models import Course


class TestCourseCrud:

    def test_create_and_duplicate(self, client, admin_user, auth_headers, academic):
        headers = auth_headers(admin_user)
        payload = {"course_code": "ma201", "course_name": "Linear Algebra", "credits": 4}

        first = client.post("/courses/create", headers=headers, json=payload)
        second = client.post("/courses/create", headers=headers, json=payload)

        assert first.status_code == 201
        assert first.get_json()["course"]["course_code"] == "MA201"
        assert second.status_code == 409

    def test_list_searches_code_and_name(self, client, student_user, auth_headers, course):
        response = client.get("/courses/list?search=programming", headers=auth_headers(student_user))

        assert response.status_code == 200
        data = response.get_json()
        assert data["total"] == 1
        assert data["courses"][0]["course_code"] == "CS101"

    def test_soft_delete_and_restore(self, client, admin_user, auth_headers, course):
        headers = auth_headers(admin_user)

        assert client.delete(f"/courses/remove/{course.id}", headers=headers).status_code == 200
        assert client.get("/courses/list", headers=headers).get_json()["total"] == 0
        assert [c["id"] for c in client.get("/courses/deleted", headers=headers).get_json()] == [course.id]

        assert client.post(f"/courses/restore/{course.id}", headers=headers).status_code == 200
        assert db.session.get(Course, course.id).deleted is False


class TestProgramAssignments:

    def test_year_range(self, client, admin_user, auth_headers, course, academic):
        response = client.post(f"/courses/{course.id}/assignments/create", headers=auth_headers(admin_user), json={
            "program_id": academic["program"].id,
            "academic_year_id": academic["year"].id,
            "semester_id": academic["semester"].id,
            "year": 6,
        })
        assert response.status_code == 400

    def test_duplicate_assignment(self, client, admin_user, auth_headers, course, academic):
        response = client.post(f"/courses/{course.id}/assignments/create", headers=auth_headers(admin_user), json={
            "program_id": academic["program"].id,
            "academic_year_id": academic["year"].id,
            "semester_id": academic["semester"].id,
            "year": 1,
        })
        assert response.status_code == 409


class TestInheritedStudents:

    def test_admin_sees_each_student_once(self, client, admin_user, auth_headers, course, academic,
                                          make_user, enroll):
        twice = make_user("student", full_name="Zanele Dube")
        once = make_user("student", full_name="Pieter Botha")
        dropped = make_user("student")
        enroll(twice, academic["section_a"])
        enroll(twice, academic["section_b"])
        enroll(once, academic["section_b"])
        enroll(dropped, academic["section_a"], status="dropped")

        response = client.get(f"/courses/{course.id}/students", headers=auth_headers(admin_user))

        assert response.status_code == 200
        data = response.get_json()
        assert data["total"] == 2
        by_id = {s["student_id"]: s for s in data["students"]}
        assert sorted(by_id[twice.id]["sections"]) == ["A", "B"]
        assert by_id[once.id]["sections"] == ["B"]
        assert dropped.id not in by_id

    def test_search_by_name(self, client, admin_user, auth_headers, course, academic, make_user, enroll):
        enroll(make_user("student", full_name="Zanele Dube"), academic["section_a"])
        enroll(make_user("student", full_name="Pieter Botha"), academic["section_a"])

        response = client.get(f"/courses/{course.id}/students?search=zanele", headers=auth_headers(admin_user))

        assert [s["student_name"] for s in response.get_json()["students"]] == ["Zanele Dube"]

    def test_assigned_lecturer_sees_students(self, client, teaching, auth_headers, course, academic,
                                             student_user, enroll):
        enroll(student_user, academic["section_a"])

        response = client.get(f"/courses/{course.id}/students", headers=auth_headers(teaching))

        assert response.status_code == 200
        assert [s["student_id"] for s in response.get_json()["students"]] == [student_user.id]

    def test_program_only_assignment_takes_term_from_course(self, client, admin_user, auth_headers, course,
                                                            academic, make_user, enroll):
        """A lecturer assigned by program alone teaches the students the course inherits for it"""
        lecturer = make_user("lecturer")
        enroll(make_user("student"), academic["section_a"])
        client.post(f"/courses/{course.id}/lecturers/assign", headers=auth_headers(admin_user), json={
            "lecturer_id": lecturer.id,
            "program_id": academic["program"].id,
        })

        admin_view = client.get(f"/courses/{course.id}/students", headers=auth_headers(admin_user)).get_json()
        lecturer_view = client.get(f"/courses/{course.id}/students", headers=auth_headers(lecturer)).get_json()
        courses = client.get("/lecturer/courses", headers=auth_headers(lecturer)).get_json()

        assert admin_view["total"] == lecturer_view["total"] == 1
        assert [c["student_count"] for c in courses] == [1]

    def test_assignment_for_another_year_sees_nobody(self, client, admin_user, auth_headers, course, academic,
                                                     make_user, enroll):
        lecturer = make_user("lecturer")
        enroll(make_user("student"), academic["section_a"])
        client.post(f"/courses/{course.id}/lecturers/assign", headers=auth_headers(admin_user), json={
            "lecturer_id": lecturer.id,
            "program_id": academic["program"].id,
            "year": 3,
        })

        response = client.get(f"/courses/{course.id}/students", headers=auth_headers(lecturer))

        assert response.get_json()["total"] == 0

    def test_other_lecturers_are_denied(self, client, make_user, auth_headers, course):
        outsider = make_user("lecturer")
        response = client.get(f"/courses/{course.id}/students", headers=auth_headers(outsider))
        assert response.status_code == 403

    def test_lecturer_assignment_via_section(self, client, admin_user, auth_headers, course, academic, make_user):
        lecturer = make_user("lecturer")

        response = client.post(f"/courses/{course.id}/lecturers/assign", headers=auth_headers(admin_user), json={
            "lecturer_id": lecturer.id,
            "section_id": academic["section_b"].id,
        })

        assert response.status_code == 201
        assignment = response.get_json()["assignment"]
        assert assignment["program_id"] == academic["program"].id
        assert assignment["section_code"] == "B"
        assert assignment["year"] == 1
