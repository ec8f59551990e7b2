# tests/conftest.py
"""
Shared pytest fixtures for the GPAE booking API.

Every test gets a fresh in-memory SQLite store. Route tests use a
TestClient whose database session, notification service and rate limiter
are overridden, so no email leaves the process and rate-limit counters do
not leak between tests.
"""

import os

# Environment must be set before anything from gpae is imported
os.environ.setdefault("CI", "1")
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["EMAIL_PROVIDER"] = "console"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["REFERENCE_TIMEZONE"] = "Europe/Paris"
os.environ["STUDENT_BOOKING_SCOPE"] = "any"
os.environ["AUTO_ASSIGN_INSTRUCTOR"] = "true"

from typing import Iterable, Optional  # noqa: E402
from unittest.mock import Mock  # noqa: E402

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from gpae import models  # noqa: E402,F401
from gpae.api.dependencies.database import get_db  # noqa: E402
from gpae.api.dependencies.services import get_notification_service  # noqa: E402
from gpae.auth import create_access_token, get_password_hash  # noqa: E402
from gpae.core.enums import RoleName  # noqa: E402
from gpae.core.timezone_utils import parse_slot  # noqa: E402
from gpae.database import Base  # noqa: E402
from gpae.main import app  # noqa: E402
from gpae.models.availability import AvailabilityWindow  # noqa: E402
from gpae.models.reservation import Reservation, ReservationStatus  # noqa: E402
from gpae.models.user import User  # noqa: E402
from gpae.ratelimit.dependency import get_rate_limiter  # noqa: E402
from gpae.ratelimit.limiter import InMemoryRateLimiter  # noqa: E402
from gpae.services.availability import parse_weekly_schedule  # noqa: E402
from gpae.services.notification_service import NotificationService  # noqa: E402
from gpae.services.template_service import TemplateService  # noqa: E402

TEST_PASSWORD = "TestPassword123!"

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine, expire_on_commit=False)


def auth_headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def db() -> Iterable[Session]:
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def test_password() -> str:
    return TEST_PASSWORD


@pytest.fixture
def user_factory(db: Session):
    """Create and commit a user; ``availability`` takes the admin payload shape."""

    def _create(
        role: str = RoleName.STUDENT.value,
        email: Optional[str] = None,
        last_name: str = "Martin",
        first_name: str = "Paul",
        phone: Optional[str] = None,
        availability: Optional[dict] = None,
        password: str = TEST_PASSWORD,
    ) -> User:
        user = User(
            last_name=last_name,
            first_name=first_name,
            email=email.lower() if email else None,
            phone=phone,
            role=role,
            hashed_password=get_password_hash(password),
        )
        db.add(user)
        db.flush()
        for weekday, start, end in parse_weekly_schedule(availability):
            db.add(AvailabilityWindow(instructor_id=user.id, weekday=weekday, start_time=start, end_time=end))
        db.commit()
        db.refresh(user)
        return user

    return _create


@pytest.fixture
def reservation_factory(db: Session):
    """Insert a reservation row directly, bypassing the admission rules."""

    def _create(
        slot: str,
        instructor: Optional[User] = None,
        email: Optional[str] = "eleve@example.com",
        status: str = ReservationStatus.PENDING.value,
        last_name: str = "Durand",
        first_name: str = "Léa",
    ) -> Reservation:
        reservation = Reservation(
            slot=parse_slot(slot),
            student_last_name=last_name,
            student_first_name=first_name,
            student_email=email,
            student_phone="0600000000",
            instructor_id=instructor.id if instructor else None,
            status=status,
        )
        db.add(reservation)
        db.commit()
        db.refresh(reservation)
        return reservation

    return _create


@pytest.fixture
def admin(user_factory) -> User:
    return user_factory(
        role=RoleName.ADMIN.value, email="admin@example.com", last_name="Admin", first_name="Alice"
    )


@pytest.fixture
def instructor(user_factory) -> User:
    """Instructor working Monday 09:00-12:00."""
    return user_factory(
        role=RoleName.INSTRUCTOR.value,
        email="moniteur@example.com",
        last_name="Bernard",
        first_name="Marc",
        availability={"monday": {"start": "09:00", "end": "12:00"}},
    )


@pytest.fixture
def student(user_factory) -> User:
    return user_factory(
        role=RoleName.STUDENT.value, email="eleve@example.com", last_name="Durand", first_name="Léa"
    )


@pytest.fixture
def auth_headers_admin(admin: User) -> dict:
    return auth_headers_for(admin)


@pytest.fixture
def auth_headers_instructor(instructor: User) -> dict:
    return auth_headers_for(instructor)


@pytest.fixture
def auth_headers_student(student: User) -> dict:
    return auth_headers_for(student)


@pytest.fixture
def email_service() -> Mock:
    service = Mock()
    service.send_email.return_value = {"id": "test-email-id"}
    return service


@pytest.fixture
def template_service() -> TemplateService:
    return TemplateService()


@pytest.fixture
def notification_service(template_service: TemplateService, email_service: Mock) -> NotificationService:
    return NotificationService(template_service=template_service, email_service=email_service)


@pytest.fixture
def rate_limiter() -> InMemoryRateLimiter:
    return InMemoryRateLimiter(limit=3, window_s=3600, bucket="bulk_mail", clock=lambda: 1_900_000_000.0)


@pytest.fixture
def client(db: Session, notification_service: NotificationService, rate_limiter: InMemoryRateLimiter):
    """Create test client with the test database and collaborators."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_service] = lambda: notification_service
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer headers for any user."""
    return auth_headers_for
