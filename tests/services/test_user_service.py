# tests/services/test_user_service.py
from datetime import time

import pytest

from gpae.auth import verify_password
from gpae.core.exceptions import (
    DuplicateEmailException,
    UnauthorizedException,
    UserNotFoundException,
    ValidationException,
)
from gpae.models.availability import AvailabilityWindow
from gpae.models.reservation import Reservation
from gpae.models.user import User
from gpae.services.user_service import UserService

MONDAY_10 = "2030-01-07T10:00:00+01:00"


class TestAuthenticate:
    def test_valid_credentials(self, db, student, test_password):
        user = UserService(db).authenticate("  ELEVE@example.com ", test_password)

        assert user.id == student.id

    def test_wrong_password(self, db, student):
        with pytest.raises(UnauthorizedException) as exc_info:
            UserService(db).authenticate(student.email, "wrong-password")
        assert exc_info.value.code == "INVALID_CREDENTIALS"

    def test_unknown_email_gets_the_same_error(self, db, test_password):
        with pytest.raises(UnauthorizedException) as exc_info:
            UserService(db).authenticate("nobody@example.com", test_password)
        assert exc_info.value.code == "INVALID_CREDENTIALS"

    @pytest.mark.parametrize("email, password", [(None, "x"), ("a@example.com", None), ("", ""), ("  ", "x")])
    def test_missing_credentials(self, db, email, password):
        with pytest.raises(ValidationException) as exc_info:
            UserService(db).authenticate(email, password)
        assert exc_info.value.code == "MISSING_CREDENTIALS"


class TestCreateUser:
    def test_creates_instructor_with_schedule(self, db):
        user = UserService(db).create_user(
            last_name=" Bernard ",
            first_name="Marc",
            email="Marc.Bernard@Example.com",
            password="secret-password",
            role="instructor",
            phone="0611111111",
            availability={"lundi": [{"start": "09:00", "end": "12:00"}, {"start": "11:00", "end": "13:00"}]},
        )

        assert user.email == "marc.bernard@example.com"
        assert user.last_name == "Bernard"
        assert verify_password("secret-password", user.hashed_password)
        assert sorted((w.weekday, w.start_time, w.end_time) for w in user.availability_windows) == [
            (0, time(9), time(13))
        ]

    def test_duplicate_email_is_case_insensitive(self, db, student):
        with pytest.raises(DuplicateEmailException):
            UserService(db).create_user(
                last_name="X", first_name="Y", email="ELEVE@EXAMPLE.COM", password="p", role="student"
            )

    def test_invalid_role(self, db):
        with pytest.raises(ValidationException) as exc_info:
            UserService(db).create_user(
                last_name="X", first_name="Y", email="x@example.com", password="p", role="superuser"
            )
        assert exc_info.value.code == "INVALID_ROLE"

    def test_schedule_only_for_instructors(self, db):
        with pytest.raises(ValidationException) as exc_info:
            UserService(db).create_user(
                last_name="X",
                first_name="Y",
                email="x@example.com",
                password="p",
                role="student",
                availability={"monday": ["09:00"]},
            )
        assert exc_info.value.code == "NOT_AN_INSTRUCTOR"
        assert db.query(User).count() == 0


class TestUpdateUser:
    def test_partial_update(self, db, student):
        updated = UserService(db).update_user(student.id, {"phone": " 0622222222 ", "first_name": None})

        assert updated.phone == "0622222222"
        assert updated.first_name == "Léa"

    def test_password_is_rehashed(self, db, student):
        UserService(db).update_user(student.id, {"password": "new-password"})

        assert UserService(db).authenticate(student.email, "new-password").id == student.id

    def test_email_taken_by_someone_else(self, db, student, admin):
        with pytest.raises(DuplicateEmailException):
            UserService(db).update_user(student.id, {"email": admin.email.upper()})

    def test_keeping_own_email_is_fine(self, db, student):
        updated = UserService(db).update_user(student.id, {"email": student.email})

        assert updated.email == student.email

    def test_blank_name_rejected(self, db, student):
        with pytest.raises(ValidationException):
            UserService(db).update_user(student.id, {"last_name": "   "})

    def test_instructor_demoted_loses_schedule(self, db, instructor):
        updated = UserService(db).update_user(instructor.id, {"role": "student"})

        assert updated.role == "student"
        assert updated.availability_windows == []
        assert db.query(AvailabilityWindow).count() == 0

    def test_missing_user(self, db):
        with pytest.raises(UserNotFoundException):
            UserService(db).update_user("01HZZZZZZZZZZZZZZZZZZZZZZZ", {"phone": "1"})


class TestAvailability:
    def test_replace_schedule(self, db, instructor):
        updated = UserService(db).set_availability(
            instructor.id, {"tuesday": ["09:00", "10:00", "14h"], "saturday": {"start": "8h", "end": "12h"}}
        )

        assert sorted((w.weekday, w.start_time, w.end_time) for w in updated.availability_windows) == [
            (1, time(9), time(11)),
            (1, time(14), time(15)),
            (5, time(8), time(12)),
        ]

    def test_empty_schedule_clears_windows(self, db, instructor):
        updated = UserService(db).set_availability(instructor.id, {})

        assert updated.availability_windows == []

    def test_not_an_instructor(self, db, student):
        with pytest.raises(ValidationException) as exc_info:
            UserService(db).set_availability(student.id, {"monday": ["09:00"]})
        assert exc_info.value.code == "NOT_AN_INSTRUCTOR"

    def test_invalid_schedule_keeps_previous_one(self, db, instructor):
        with pytest.raises(ValidationException):
            UserService(db).set_availability(instructor.id, {"monday": {"start": "12:00", "end": "09:00"}})

        db.expire_all()
        assert db.query(AvailabilityWindow).filter_by(instructor_id=instructor.id).count() == 1


class TestDeleteUser:
    def test_instructor_deletion_detaches_reservations(self, db, instructor, reservation_factory):
        first = reservation_factory(MONDAY_10, instructor=instructor, email="a@example.com")
        second = reservation_factory("2030-01-07T11:00:00+01:00", instructor=instructor, email="b@example.com")

        detached = UserService(db).delete_user(instructor.id)

        assert detached == 2
        assert db.get(User, instructor.id) is None
        for reservation_id in (first.id, second.id):
            reservation = db.get(Reservation, reservation_id)
            assert reservation is not None
            assert reservation.instructor_id is None
            assert reservation.instructor is None
        assert db.query(AvailabilityWindow).count() == 0

    def test_student_deletion(self, db, student):
        assert UserService(db).delete_user(student.id) == 0
        assert db.get(User, student.id) is None

    def test_missing_user(self, db):
        with pytest.raises(UserNotFoundException):
            UserService(db).delete_user("01HZZZZZZZZZZZZZZZZZZZZZZZ")


def test_list_users_by_role(db, admin, instructor, student):
    service = UserService(db)

    assert {u.id for u in service.list_users()} == {admin.id, instructor.id, student.id}
    assert [u.id for u in service.list_users("instructor")] == [instructor.id]

    with pytest.raises(ValidationException):
        service.list_users("pilot")
