"""
Integration Tests for /auth
"""
from unidesk.models import User, StudentProfile


class TestLogin:

    def test_login_sets_cookies(self, client, make_user):
        user = make_user("lecturer", password="correct-horse")

        response = client.post("/auth/login", json={"email": user.email, "password": "correct-horse"})

        assert response.status_code == 200
        assert response.get_json()["role"] == "lecturer"
        cookies = " ".join(response.headers.getlist("Set-Cookie"))
        assert "access_token_cookie=" in cookies
        assert "refresh_token_cookie=" in cookies

    def test_wrong_password_is_rejected(self, client, make_user):
        user = make_user("student", password="correct-horse")

        response = client.post("/auth/login", json={"email": user.email, "password": "wrong"})

        assert response.status_code == 401

    def test_missing_fields(self, client):
        response = client.post("/auth/login", json={"email": ""})
        assert response.status_code == 400

    def test_login_is_audited(self, app, client, make_user):
        user = make_user("admin", password="pw")
        client.post("/auth/login", json={"email": user.email, "password": "pw"})

        with open(app.config["AUDIT_LOG_FILE"]) as fh:
            assert "LOGIN_SUCCESS" in fh.read()


class TestMe:

    def test_me_returns_profile_for_students(self, client, student_user, auth_headers):
        response = client.get("/auth/me", headers=auth_headers(student_user))

        assert response.status_code == 200
        data = response.get_json()
        assert data["email"] == student_user.email
        assert data["student_profile"]["student_number"].startswith("S")

    def test_me_requires_token(self, client):
        assert client.get("/auth/me").status_code == 401


class TestRegister:

    def test_admin_registers_student(self, client, admin_user, auth_headers):
        response = client.post("/auth/register", headers=auth_headers(admin_user), json={
            "email": "new.student@example.com",
            "full_name": "New Student",
            "password": "secret123",
            "role": "student",
            "student_number": "S9000001",
        })

        assert response.status_code == 201
        user = User.query.filter_by(email="new.student@example.com").first()
        assert user.role_name == "student"
        assert StudentProfile.query.filter_by(user_id=user.id).first().student_number == "S9000001"

    def test_student_number_is_required(self, client, admin_user, auth_headers):
        response = client.post("/auth/register", headers=auth_headers(admin_user), json={
            "email": "no.number@example.com",
            "full_name": "No Number",
            "password": "secret123",
            "role": "student",
        })

        assert response.status_code == 400
        assert User.query.filter_by(email="no.number@example.com").first() is None

    def test_duplicate_email(self, client, admin_user, lecturer_user, auth_headers):
        response = client.post("/auth/register", headers=auth_headers(admin_user), json={
            "email": lecturer_user.email,
            "full_name": "Someone Else",
            "password": "secret123",
            "role": "lecturer",
        })
        assert response.status_code == 409

    def test_only_admins_register(self, client, lecturer_user, auth_headers):
        response = client.post("/auth/register", headers=auth_headers(lecturer_user), json={
            "email": "x@example.com", "full_name": "X", "password": "secret123", "role": "student",
        })
        assert response.status_code == 403


class TestLogout:

    def test_token_is_revoked(self, client, admin_user, auth_headers):
        headers = auth_headers(admin_user)

        assert client.post("/auth/logout", headers=headers).status_code == 200
        assert client.get("/auth/me", headers=headers).status_code == 401
