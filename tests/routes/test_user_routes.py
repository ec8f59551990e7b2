# tests/routes/test_user_routes.py
from gpae.models.reservation import Reservation


class TestAccessControl:
    def test_requires_authentication(self, client):
        response = client.get("/users")

        assert response.status_code == 401
        assert response.json()["code"] == "NOT_AUTHENTICATED"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_garbage_token(self, client):
        response = client.get("/users", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_TOKEN"

    def test_admin_only(self, client, auth_headers_instructor, auth_headers_student):
        for headers in (auth_headers_instructor, auth_headers_student):
            response = client.get("/users", headers=headers)

            assert response.status_code == 403
            assert response.json()["code"] == "ADMIN_REQUIRED"


class TestDirectory:
    def test_list_and_filter(self, client, auth_headers_admin, admin, instructor, student):
        response = client.get("/users", headers=auth_headers_admin)

        assert response.status_code == 200
        assert {u["id"] for u in response.json()} == {admin.id, instructor.id, student.id}

        response = client.get("/users", params={"role": "instructor"}, headers=auth_headers_admin)
        [listed] = response.json()
        assert listed["id"] == instructor.id
        assert listed["nom"] == "Bernard"
        assert listed["availability"] == {"monday": [{"start": "09:00", "end": "12:00"}]}

    def test_list_with_unknown_role(self, client, auth_headers_admin):
        response = client.get("/users", params={"role": "pilot"}, headers=auth_headers_admin)

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ROLE"

    def test_get_one(self, client, auth_headers_admin, student):
        response = client.get(f"/users/{student.id}", headers=auth_headers_admin)

        assert response.status_code == 200
        assert response.json()["email"] == "eleve@example.com"
        assert "hashed_password" not in response.json()

    def test_get_missing(self, client, auth_headers_admin):
        response = client.get("/users/01HZZZZZZZZZZZZZZZZZZZZZZZ", headers=auth_headers_admin)

        assert response.status_code == 404
        assert response.json()["code"] == "USER_NOT_FOUND"


class TestCreate:
    def test_create_instructor_with_french_field_names(self, client, auth_headers_admin):
        response = client.post(
            "/users",
            json={
                "nom": "Petit",
                "prenom": "Jean",
                "email": "jean.petit@example.com",
                "password": "motdepasse",
                "role": "instructor",
                "tel": "0612345678",
                "availability": {"mardi": ["09:00", "10:00"], "jeudi": {"start": "14:00", "end": "18:00"}},
            },
            headers=auth_headers_admin,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Utilisateur ajouté"
        assert body["user"]["last_name"] == "Petit"
        assert body["user"]["tel"] == "0612345678"
        assert body["user"]["availability"] == {
            "tuesday": [{"start": "09:00", "end": "11:00"}],
            "thursday": [{"start": "14:00", "end": "18:00"}],
        }

        login = client.post("/login", json={"email": "jean.petit@example.com", "password": "motdepasse"})
        assert login.status_code == 200

    def test_duplicate_email(self, client, auth_headers_admin, student):
        response = client.post(
            "/users",
            json={
                "last_name": "Autre",
                "first_name": "Eleve",
                "email": "ELEVE@example.com",
                "password": "x",
                "role": "student",
            },
            headers=auth_headers_admin,
        )

        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_EMAIL"

    def test_invalid_body_is_400(self, client, auth_headers_admin):
        response = client.post(
            "/users",
            json={"nom": "Petit", "email": "not-an-email", "password": "x", "role": "pilot"},
            headers=auth_headers_admin,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert {tuple(error["loc"])[-1] for error in body["errors"]} >= {"email", "role"}

    def test_invalid_schedule(self, client, auth_headers_admin):
        response = client.post(
            "/users",
            json={
                "nom": "Petit",
                "prenom": "Jean",
                "email": "jean.petit@example.com",
                "password": "x",
                "role": "instructor",
                "availability": {"monday": {"start": "18:00", "end": "08:00"}},
            },
            headers=auth_headers_admin,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_SCHEDULE"


class TestUpdate:
    def test_patch_profile(self, client, auth_headers_admin, student):
        response = client.patch(
            f"/users/{student.id}", json={"tel": "0699999999", "prenom": "Léna"}, headers=auth_headers_admin
        )

        assert response.status_code == 200
        assert response.json()["phone"] == "0699999999"
        assert response.json()["first_name"] == "Léna"
        assert response.json()["last_name"] == "Durand"

    def test_patch_to_taken_email(self, client, auth_headers_admin, student, instructor):
        response = client.patch(
            f"/users/{student.id}", json={"email": instructor.email}, headers=auth_headers_admin
        )

        assert response.status_code == 409

    def test_replace_availability(self, client, auth_headers_admin, instructor):
        response = client.put(
            f"/users/{instructor.id}/availability",
            json={"friday": [{"start": "08:00", "end": "12:00"}], "samedi": ["09:00"]},
            headers=auth_headers_admin,
        )

        assert response.status_code == 200
        assert response.json()["availability"] == {
            "friday": [{"start": "08:00", "end": "12:00"}],
            "saturday": [{"start": "09:00", "end": "10:00"}],
        }

    def test_availability_for_student(self, client, auth_headers_admin, student):
        response = client.put(
            f"/users/{student.id}/availability", json={"monday": ["09:00"]}, headers=auth_headers_admin
        )

        assert response.status_code == 400
        assert response.json()["code"] == "NOT_AN_INSTRUCTOR"


class TestDelete:
    def test_deleting_instructor_detaches_reservations(
        self, client, db, auth_headers_admin, instructor, reservation_factory
    ):
        first = reservation_factory("2030-01-07T09:00:00+01:00", instructor=instructor, email="a@example.com")
        second = reservation_factory("2030-01-07T10:00:00+01:00", instructor=instructor, email="b@example.com")

        response = client.delete(f"/users/{instructor.id}", headers=auth_headers_admin)

        assert response.status_code == 200
        assert response.json() == {"message": "Utilisateur supprimé", "detached_reservations": 2}

        listed = client.get("/reservations", headers=auth_headers_admin).json()
        assert {r["id"]: r["instructor_id"] for r in listed} == {first.id: None, second.id: None}
        assert all(r["instructor_name"] is None for r in listed)
        assert db.query(Reservation).count() == 2

    def test_delete_missing(self, client, auth_headers_admin):
        response = client.delete("/users/01HZZZZZZZZZZZZZZZZZZZZZZZ", headers=auth_headers_admin)

        assert response.status_code == 404
