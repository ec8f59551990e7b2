# tests/routes/test_reservation_routes.py
"""
Route tests for the reservation lifecycle.

2030-01-07 is a Monday in winter: Paris is UTC+1, so 10:00 local is 09:00Z.
The ``instructor`` fixture works Mondays 09:00-12:00 local.
"""

import pytest

from gpae.models.reservation import Reservation

SLOT = "2030-01-07T10:00:00+01:00"


def _booking(instructor_id=None, **overrides):
    body = {
        "slot": SLOT,
        "nom": "Lefèvre",
        "prenom": "Marie",
        "email": "Marie@Example.com",
        "tel": "0611223344",
    }
    if instructor_id:
        body["instructor_id"] = instructor_id
    body.update(overrides)
    return body


class TestCreateReservation:
    def test_create_with_explicit_instructor(self, client, instructor, email_service):
        response = client.post("/reservations", json=_booking(instructor.id, status="confirmed"))

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Réservation créée"
        reservation = body["reservation"]
        assert reservation["slot"] == "2030-01-07T09:00:00.000Z"
        assert reservation["end"] == "2030-01-07T10:00:00.000Z"
        assert reservation["status"] == "pending"
        assert reservation["instructor_id"] == instructor.id
        assert reservation["instructor_name"] == "Marc Bernard"
        assert reservation["email"] == "marie@example.com"
        assert reservation["nom"] == "Lefèvre"

        email_service.send_email.assert_called_once()
        kwargs = email_service.send_email.call_args.kwargs
        assert kwargs["to_email"] == "marie@example.com"
        assert kwargs["subject"] == "Confirmation de réservation"
        assert "07/01/2030 10:00" in kwargs["text_content"]

    def test_auto_assigns_instructor(self, client, instructor):
        response = client.post("/reservations", json=_booking())

        assert response.status_code == 201
        assert response.json()["reservation"]["instructor_id"] == instructor.id

    def test_same_request_twice_is_rejected(self, client, instructor):
        first = client.post("/reservations", json=_booking(instructor.id))
        second = client.post("/reservations", json=_booking(instructor.id, email="autre@example.com"))

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["code"] == "SLOT_ALREADY_BOOKED"
        assert second.json()["message"] == "Ce créneau est déjà réservé"

    def test_no_free_instructor_for_auto_assignment(self, client, instructor, reservation_factory):
        reservation_factory(SLOT, instructor=instructor)

        response = client.post("/reservations", json=_booking())

        assert response.status_code == 409
        assert response.json()["code"] == "NO_INSTRUCTOR_AVAILABLE"

    def test_student_cannot_book_twice_in_same_hour(self, client, instructor, user_factory):
        other = user_factory(role="instructor", email="autre.moniteur@example.com")
        client.post("/reservations", json=_booking(instructor.id))

        response = client.post("/reservations", json=_booking(other.id))

        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_STUDENT_BOOKING"

    def test_outside_instructor_hours(self, client, instructor):
        response = client.post(
            "/reservations", json=_booking(instructor.id, slot="2030-01-07T14:00:00+01:00")
        )

        assert response.status_code == 409
        assert response.json()["code"] == "OUTSIDE_AVAILABILITY"

    def test_unknown_instructor(self, client, instructor):
        response = client.post("/reservations", json=_booking("01HZZZZZZZZZZZZZZZZZZZZZZZ"))

        assert response.status_code == 404
        assert response.json()["code"] == "INSTRUCTOR_NOT_FOUND"

    @pytest.mark.parametrize(
        "slot", ["not-a-date", "2030-01-07T10:30:00+01:00", 42, "9999-12-31T23:00:00+00:00"]
    )
    def test_invalid_slot(self, client, instructor, slot, email_service):
        response = client.post("/reservations", json=_booking(slot=slot))

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_SLOT"
        email_service.send_email.assert_not_called()

    def test_missing_names(self, client, instructor):
        response = client.post("/reservations", json={"slot": SLOT, "email": "marie@example.com"})

        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_FIELDS"

    def test_missing_slot_is_validation_error(self, client):
        response = client.post("/reservations", json={"nom": "Lefèvre", "prenom": "Marie"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_without_email_no_notification(self, client, instructor, email_service):
        response = client.post("/reservations", json=_booking(instructor.id, email=None))

        assert response.status_code == 201
        email_service.send_email.assert_not_called()

    def test_mail_failure_does_not_fail_booking(self, client, instructor, email_service):
        email_service.send_email.side_effect = RuntimeError("smtp down")

        response = client.post("/reservations", json=_booking(instructor.id))

        assert response.status_code == 201


class TestCancelReservation:
    def test_cancel_deletes_and_notifies(
        self, client, db, auth_headers_instructor, instructor, reservation_factory, email_service
    ):
        reservation = reservation_factory(SLOT, instructor=instructor)

        first = client.delete(f"/reservations/{reservation.id}", headers=auth_headers_instructor)
        second = client.delete(f"/reservations/{reservation.id}", headers=auth_headers_instructor)

        assert first.status_code == 200
        assert first.json() == {"message": "Réservation annulée"}
        assert second.status_code == 404
        assert second.json()["code"] == "RESERVATION_NOT_FOUND"
        assert db.query(Reservation).count() == 0

        email_service.send_email.assert_called_once()
        assert email_service.send_email.call_args.kwargs["to_email"] == "eleve@example.com"
        assert email_service.send_email.call_args.kwargs["subject"] == "Annulation de réservation"

    def test_cancel_frees_the_slot(self, client, auth_headers_admin, instructor, reservation_factory):
        reservation = reservation_factory(SLOT, instructor=instructor, email="old@example.com")
        client.delete(f"/reservations/{reservation.id}", headers=auth_headers_admin)

        response = client.post("/reservations", json=_booking(instructor.id))

        assert response.status_code == 201

    def test_cannot_cancel_refused(self, client, auth_headers_admin, instructor, reservation_factory):
        reservation = reservation_factory(SLOT, instructor=instructor, status="refused")

        response = client.delete(f"/reservations/{reservation.id}", headers=auth_headers_admin)

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS"

    def test_students_cannot_cancel(self, client, auth_headers_student, reservation_factory):
        reservation = reservation_factory(SLOT)

        response = client.delete(f"/reservations/{reservation.id}", headers=auth_headers_student)

        assert response.status_code == 403
        assert response.json()["code"] == "STAFF_REQUIRED"

    def test_anonymous_cannot_cancel(self, client, reservation_factory):
        reservation = reservation_factory(SLOT)

        response = client.delete(f"/reservations/{reservation.id}")

        assert response.status_code == 401


class TestReservationStatus:
    def test_confirm(self, client, auth_headers_admin, instructor, reservation_factory, email_service):
        reservation = reservation_factory(SLOT, instructor=instructor)

        response = client.put(
            f"/reservations/{reservation.id}/status", json={"status": "confirmed"}, headers=auth_headers_admin
        )

        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert response.json()["id"] == reservation.id
        email_service.send_email.assert_not_called()

    def test_cancel_through_status_keeps_row_and_notifies(
        self, client, db, auth_headers_admin, instructor, reservation_factory, email_service
    ):
        reservation = reservation_factory(SLOT, instructor=instructor, status="confirmed")

        response = client.put(
            f"/reservations/{reservation.id}/status", json={"status": "cancelled"}, headers=auth_headers_admin
        )

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert db.query(Reservation).count() == 1
        email_service.send_email.assert_called_once()

    def test_forbidden_transition(self, client, auth_headers_admin, instructor, reservation_factory):
        reservation = reservation_factory(SLOT, instructor=instructor, status="confirmed")

        response = client.put(
            f"/reservations/{reservation.id}/status", json={"status": "refused"}, headers=auth_headers_admin
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_STATUS"
        assert body["errors"] == {"current": "confirmed", "requested": "refused"}

    def test_unknown_status(self, client, auth_headers_admin, reservation_factory):
        reservation = reservation_factory(SLOT)

        response = client.put(
            f"/reservations/{reservation.id}/status", json={"status": "done"}, headers=auth_headers_admin
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS"

    def test_missing_reservation(self, client, auth_headers_admin):
        response = client.put(
            "/reservations/01HZZZZZZZZZZZZZZZZZZZZZZZ/status",
            json={"status": "confirmed"},
            headers=auth_headers_admin,
        )

        assert response.status_code == 404


class TestListReservations:
    def test_staff_only(self, client, auth_headers_student):
        assert client.get("/reservations").json()["code"] == "NOT_AUTHENTICATED"

        response = client.get("/reservations", headers=auth_headers_student)

        assert response.status_code == 403
        assert response.json()["code"] == "STAFF_REQUIRED"

    def test_filters(self, client, auth_headers_instructor, instructor, reservation_factory):
        early = reservation_factory(SLOT, instructor=instructor, email="a@example.com")
        late = reservation_factory(
            "2030-01-07T11:00:00+01:00", instructor=instructor, email="b@example.com", status="confirmed"
        )
        unassigned = reservation_factory("2030-01-08T10:00:00+01:00", email="c@example.com")

        everything = client.get("/reservations", headers=auth_headers_instructor).json()
        assert [r["id"] for r in everything] == [early.id, late.id, unassigned.id]

        confirmed = client.get(
            "/reservations", params={"status": "confirmed"}, headers=auth_headers_instructor
        ).json()
        assert [r["id"] for r in confirmed] == [late.id]

        mine = client.get(
            "/reservations", params={"instructor_id": instructor.id}, headers=auth_headers_instructor
        ).json()
        assert {r["id"] for r in mine} == {early.id, late.id}

        window = client.get(
            "/reservations",
            params={"start": "2030-01-07T10:00:00Z", "end": "2030-01-08T00:00:00Z"},
            headers=auth_headers_instructor,
        ).json()
        assert [r["id"] for r in window] == [late.id]

    def test_bad_filters(self, client, auth_headers_admin):
        assert client.get(
            "/reservations", params={"start": "yesterday"}, headers=auth_headers_admin
        ).json()["code"] == "INVALID_DATE"
        assert client.get(
            "/reservations", params={"status": "done"}, headers=auth_headers_admin
        ).json()["code"] == "INVALID_STATUS"


def test_calendar_feed_is_public(client, instructor, reservation_factory):
    reservation = reservation_factory(SLOT, instructor=instructor)

    response = client.get("/slots")

    assert response.status_code == 200
    assert response.json() == [
        {
            "id": reservation.id,
            "title": "Léa Durand",
            "start": "2030-01-07T09:00:00.000Z",
            "end": "2030-01-07T10:00:00.000Z",
            "status": "pending",
            "instructor_id": instructor.id,
            "extendedProps": {
                "email": "eleve@example.com",
                "tel": "0600000000",
                "nom": "Durand",
                "prenom": "Léa",
                "instructor_id": instructor.id,
            },
        }
    ]
