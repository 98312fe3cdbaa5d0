"""
Integration Tests for /materials
"""


def create_material(client, headers, course, **overrides):
    payload = {
        "course_id": course.id,
        "title": "Week 1 slides",
        "material_type": "presentation",
        "file_url": "https://files.example.com/week1.pdf",
    }
    payload.update(overrides)
    return client.post("/materials/create", headers=headers, json=payload)


class TestMaterials:

    def test_lecturer_adds_material(self, client, teaching, auth_headers, course):
        response = create_material(client, auth_headers(teaching), course, category="reading")

        assert response.status_code == 201
        material = response.get_json()["material"]
        assert material["category"] == "reading"
        assert material["download_count"] == 0

    def test_links_need_a_url(self, client, teaching, auth_headers, course):
        response = create_material(client, auth_headers(teaching), course, material_type="link", file_url=None)
        assert response.status_code == 400

    def test_invalid_type(self, client, teaching, auth_headers, course):
        response = create_material(client, auth_headers(teaching), course, material_type="hologram")
        assert response.status_code == 400

    def test_unassigned_lecturer(self, client, make_user, auth_headers, course):
        response = create_material(client, auth_headers(make_user("lecturer")), course)
        assert response.status_code == 403

    def test_enrolled_student_downloads(self, client, teaching, auth_headers, course, academic,
                                        student_user, enroll):
        enroll(student_user, academic["section_a"])
        material_id = create_material(client, auth_headers(teaching), course).get_json()["material"]["id"]

        response = client.post(f"/materials/{material_id}/download", headers=auth_headers(student_user))

        assert response.status_code == 200
        assert response.get_json()["download_count"] == 1

        listed = client.get("/student/materials", headers=auth_headers(student_user)).get_json()
        assert [m["id"] for m in listed] == [material_id]

    def test_outside_student_is_denied(self, client, teaching, auth_headers, course, student_user):
        material_id = create_material(client, auth_headers(teaching), course).get_json()["material"]["id"]

        response = client.get(f"/materials/{material_id}", headers=auth_headers(student_user))

        assert response.status_code == 403

    def test_update_and_remove(self, client, teaching, auth_headers, course):
        headers = auth_headers(teaching)
        material_id = create_material(client, headers, course).get_json()["material"]["id"]

        updated = client.put(f"/materials/update/{material_id}", headers=headers, json={"title": "Week 1 (v2)"})
        assert updated.get_json()["material"]["title"] == "Week 1 (v2)"

        assert client.delete(f"/materials/remove/{material_id}", headers=headers).status_code == 200
        assert client.get(f"/materials/{material_id}", headers=headers).status_code == 404

    def test_list_by_course(self, client, teaching, auth_headers, course):
        headers = auth_headers(teaching)
        create_material(client, headers, course)
        create_material(client, headers, course, title="Lab sheet", category="lab")

        response = client.get(f"/materials/list?course_id={course.id}&category=lab", headers=headers)

        assert response.status_code == 200
        assert [m["title"] for m in response.get_json()["materials"]] == ["Lab sheet"]
