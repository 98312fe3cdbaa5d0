"""
Integration Tests for /community and /dashboard
"""
from unidesk.extensions import db
from unidesk.models import CommunityPost


def create_post(client, headers, **overrides):
    payload = {"post_type": "discussion", "title": "Library hours", "content": "Could the library open later?"}
    payload.update(overrides)
    return client.post("/community/create", headers=headers, json=payload)


class TestPosts:

    def test_anonymous_post_hides_author(self, client, student_user, auth_headers):
        response = create_post(client, auth_headers(student_user), is_anonymous=True)

        assert response.status_code == 201
        post = response.get_json()["post"]
        assert post["author"] is None
        assert db.session.get(CommunityPost, post["id"]).author_id == student_user.id

    def test_named_post_shows_author(self, client, student_user, auth_headers):
        post = create_post(client, auth_headers(student_user)).get_json()["post"]
        assert post["author"] == student_user.full_name

    def test_students_cannot_announce(self, client, student_user, auth_headers):
        response = create_post(client, auth_headers(student_user), post_type="announcement")
        assert response.status_code == 403

    def test_viewing_counts(self, client, student_user, auth_headers):
        headers = auth_headers(student_user)
        post_id = create_post(client, headers).get_json()["post"]["id"]

        client.get(f"/community/{post_id}", headers=headers)
        response = client.get(f"/community/{post_id}", headers=headers)

        assert response.get_json()["views"] == 2

    def test_voting(self, client, student_user, auth_headers):
        headers = auth_headers(student_user)
        post_id = create_post(client, headers).get_json()["post"]["id"]

        client.post(f"/community/{post_id}/vote", headers=headers, json={"direction": "up"})
        response = client.post(f"/community/{post_id}/vote", headers=headers, json={"direction": "down"})

        assert response.get_json() == {"upvotes": 1, "downvotes": 1}
        bad = client.post(f"/community/{post_id}/vote", headers=headers, json={"direction": "sideways"})
        assert bad.status_code == 400

    def test_only_admins_pin(self, client, student_user, admin_user, auth_headers):
        post_id = create_post(client, auth_headers(student_user)).get_json()["post"]["id"]

        denied = client.put(f"/community/update/{post_id}", headers=auth_headers(student_user),
                            json={"is_pinned": True})
        allowed = client.put(f"/community/update/{post_id}", headers=auth_headers(admin_user),
                             json={"is_pinned": True, "status": "archived"})

        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert allowed.get_json()["post"]["is_pinned"] is True
        assert allowed.get_json()["post"]["status"] == "archived"

    def test_removed_posts_leave_the_list(self, client, student_user, admin_user, auth_headers):
        post_id = create_post(client, auth_headers(student_user)).get_json()["post"]["id"]

        assert client.delete(f"/community/remove/{post_id}", headers=auth_headers(admin_user)).status_code == 200

        listed = client.get("/community/list", headers=auth_headers(student_user)).get_json()
        assert listed["total"] == 0
        assert db.session.get(CommunityPost, post_id).status.value == "removed"

    def test_pinned_posts_first(self, client, student_user, admin_user, auth_headers):
        headers = auth_headers(student_user)
        first = create_post(client, headers, title="First").get_json()["post"]["id"]
        create_post(client, headers, title="Second")
        client.put(f"/community/update/{first}", headers=auth_headers(admin_user), json={"is_pinned": True})

        titles = [p["title"] for p in client.get("/community/list", headers=headers).get_json()["posts"]]

        assert titles[0] == "First"


class TestDashboard:

    def test_admin_summary(self, client, admin_user, auth_headers, course, academic, make_user, enroll):
        enroll(make_user("student"), academic["section_a"])
        make_user("lecturer")

        response = client.get("/dashboard/summary", headers=auth_headers(admin_user))

        assert response.status_code == 200
        data = response.get_json()
        assert data["totalStudents"] == 1
        assert data["totalLecturers"] == 1
        assert data["totalCourses"] == 1
        assert data["totalSections"] == 2
        assert data["activeEnrollments"] == 1
        assert data["currentAcademicYear"]["year_name"] == "2025/2026"

    def test_summary_is_admin_only(self, client, lecturer_user, auth_headers):
        assert client.get("/dashboard/summary", headers=auth_headers(lecturer_user)).status_code == 403
