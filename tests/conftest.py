import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

TEST_DB_FILE = "test_course_platform.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

# must be set before the app (and its engine) is imported
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["DEADLINE_SCHEDULER_ENABLED"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.core.deps import get_db, get_notification_channel, get_session_factory  # noqa: E402
from app.core.security import create_access_token, hash_password  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.models.activity import ActivityRecord  # noqa: E402
from app.models.assessment import Assessment  # noqa: E402
from app.models.course import Course  # noqa: E402
from app.models.course_module import CourseModule, ModuleResource  # noqa: E402
from app.models.enrollment import Enrollment  # noqa: E402
from app.models.enums import AssessmentType, Role  # noqa: E402
from app.models.submission import Submission  # noqa: E402
from app.models.user import User  # noqa: E402
from tests.fakes import RecordingChannel  # noqa: E402

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# bcrypt is slow on purpose; hash the shared test password once
PASSWORD = "password123"
PASSWORD_HASH = hash_password(PASSWORD)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def token_for(user_id: int) -> str:
    return create_access_token({"sub": str(user_id)})


def auth_header(user_id: int) -> dict:
    return {"Authorization": f"Bearer {token_for(user_id)}"}


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture(autouse=True)
def seed_data():
    """
    Seed a clean dataset for each test:
    one open course taught by `teacher`, with `assistant` as ASSISTANT,
    `student1`/`student2` as STUDENTs, and `outsider` not enrolled.
    HW1 (task) is due in 30 minutes, Midterm (exam) in three days.
    """
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        for model in (
            ActivityRecord,
            Submission,
            Assessment,
            ModuleResource,
            CourseModule,
            Enrollment,
            Course,
            User,
        ):
            db.query(model).delete()
        db.commit()

        now = datetime.now(timezone.utc)

        users = {
            name: User(
                email=f"{name}@example.com",
                full_name=name.title(),
                role="instructor" if name == "teacher" else "student",
                hashed_password=PASSWORD_HASH,
            )
            for name in ("teacher", "assistant", "student1", "student2", "outsider")
        }
        db.add_all(users.values())
        db.commit()

        course = Course(
            title="Distributed Systems",
            teacher_id=users["teacher"].id,
            start_date=now - timedelta(days=7),
            end_date=now + timedelta(days=30),
        )
        db.add(course)
        db.commit()

        db.add_all(
            [
                Enrollment(course_id=course.id, user_id=users["assistant"].id, role=Role.ASSISTANT),
                Enrollment(course_id=course.id, user_id=users["student1"].id, role=Role.STUDENT),
                Enrollment(course_id=course.id, user_id=users["student2"].id, role=Role.STUDENT),
            ]
        )

        hw1 = Assessment(
            course_id=course.id,
            user_id=users["teacher"].id,
            title="HW1",
            type=AssessmentType.TASK,
            start_time=now - timedelta(days=1),
            deadline=now + timedelta(minutes=30),
            tolerance_time=10,
        )
        midterm = Assessment(
            course_id=course.id,
            user_id=users["teacher"].id,
            title="Midterm",
            type=AssessmentType.EXAM,
            start_time=now + timedelta(days=2),
            deadline=now + timedelta(days=3),
        )
        db.add_all([hw1, midterm])
        db.commit()

        yield SimpleNamespace(
            now=now,
            course_id=course.id,
            hw1_id=hw1.id,
            midterm_id=midterm.id,
            **{f"{name}_id": u.id for name, u in users.items()},
        )
    finally:
        db.close()


@pytest.fixture()
def channel():
    return RecordingChannel()


@pytest.fixture()
def client(channel):
    """Test client on the test DB, with notifications captured instead of sent."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_notification_channel] = lambda: channel
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
