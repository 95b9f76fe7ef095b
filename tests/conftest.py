import sys
from datetime import timedelta
from pathlib import Path

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, text


def _ensure_app_on_path():
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))
    return repo_root


_ensure_app_on_path()

from nihongo_quiz.auth_utils import hash_password, identity_for
from nihongo_quiz.models import Course, User
from nihongo_quiz.schemas import ItemIn
from nihongo_quiz.services import course_store
from nihongo_quiz.utils import utcnow

TEST_PASSWORD = "testpass123"

# ============================================================================
# IN-MEMORY DATABASE FOR TESTING
# ============================================================================

# StaticPool so every connection shares the same in-memory database
test_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create all tables in the test database once per session."""
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(autouse=True)
def cleanup_db_between_tests():
    """Clean up test data after each test."""
    yield

    # Clean up in FK-safe order
    with Session(test_engine) as session:
        session.exec(text("DELETE FROM quizsubmission"))
        session.exec(text("DELETE FROM moduleitem"))
        session.exec(text("DELETE FROM coursemodule"))
        session.exec(text("DELETE FROM course"))
        session.exec(text("DELETE FROM user"))
        session.commit()


@pytest.fixture
def session():
    """Provide a database session for tests."""
    with Session(test_engine) as session:
        yield session


# ============================================================================
# FASTAPI APP & TEST CLIENT
# ============================================================================

from fastapi.testclient import TestClient

from nihongo_quiz.database import get_session
from nihongo_quiz.main import app


@pytest.fixture
def client():
    """TestClient bound to the in-memory database (startup hooks are not run)."""

    def override_get_session():
        with Session(test_engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client, user: User, password: str = TEST_PASSWORD):
    response = client.post("/auth/login", json={"email": user.email, "password": password})
    assert response.status_code == 200, response.text
    return response


# ============================================================================
# ENTITY FIXTURES
# ============================================================================


def _create_user(name: str, email: str, role: str) -> User:
    with Session(test_engine) as session:
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(TEST_PASSWORD),
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        user_id = user.id

    with Session(test_engine) as session:
        return session.get(User, user_id)


@pytest.fixture
def student_user():
    return _create_user("Hanako Yamada", "hanako@example.com", "student")


@pytest.fixture
def other_student_user():
    return _create_user("Taro Suzuki", "taro@example.com", "student")


@pytest.fixture
def instructor_user():
    return _create_user("Sensei Tanaka", "tanaka@example.com", "instructor")


@pytest.fixture
def student(student_user):
    """Identity of the default student, as the core services receive it."""
    return identity_for(student_user)


@pytest.fixture
def other_student(other_student_user):
    return identity_for(other_student_user)


@pytest.fixture
def instructor(instructor_user):
    return identity_for(instructor_user)


@pytest.fixture
def course():
    with Session(test_engine) as session:
        course = Course(
            title="JLPT N5 Vocabulary",
            title_jp="JLPT N5 語彙",
            description="Core vocabulary for the N5 exam",
            is_published=True,
        )
        session.add(course)
        session.commit()
        session.refresh(course)
        course_id = course.id

    with Session(test_engine) as session:
        return session.get(Course, course_id)


def mcq_definition(**overrides) -> dict:
    """Two questions worth 5 points each, pass mark 60%."""
    definition = {
        "quiz_type": "mcq",
        "time_limit": 30,
        "total_points": 10,
        "passing_score": 60,
        "allow_multiple_attempts": False,
        "show_answers_after_submission": True,
        "questions": [
            {
                "question": "What does 水 mean?",
                "options": [
                    {"text": "fire", "is_correct": False},
                    {"text": "water", "is_correct": True},
                    {"text": "tree", "is_correct": False},
                ],
                "points": 5,
                "explanation": "水 (mizu) means water.",
            },
            {
                "question": "How do you read 山?",
                "options": [
                    {"text": "yama", "is_correct": True},
                    {"text": "kawa", "is_correct": False},
                    {"text": "sora", "is_correct": False},
                    {"text": "umi", "is_correct": False},
                ],
                "points": 5,
            },
        ],
    }
    definition.update(overrides)
    return definition


def open_ended_definition(**overrides) -> dict:
    definition = {
        "quiz_type": "open-ended",
        "time_limit": 60,
        "total_points": 100,
        "passing_score": 70,
        "allow_multiple_attempts": False,
        "question": "自己紹介を書いてください。 (Write a self-introduction.)",
        "accept_text_answer": True,
        "accept_file_upload": True,
    }
    definition.update(overrides)
    return definition


@pytest.fixture
def make_quiz(course):
    """Factory adding a quiz item to a fresh module; returns its location."""

    def _make(definition: dict, is_published: bool = True, title: str = "Quiz") -> dict:
        with Session(test_engine) as session:
            module = course_store.add_module(session, course.id, f"Module for {title}")
            item = course_store.add_item(
                session,
                course.id,
                module.position,
                ItemIn(type="quiz", title=title, is_published=is_published, quiz_data=definition),
            )
            return {
                "course_id": course.id,
                "module_index": module.position,
                "item_index": item.position,
            }

    return _make


@pytest.fixture
def mcq_quiz(make_quiz):
    return make_quiz(mcq_definition(), title="Kanji basics")


@pytest.fixture
def open_quiz(make_quiz):
    return make_quiz(open_ended_definition(), title="Self-introduction")


@pytest.fixture
def started_at():
    return utcnow() - timedelta(minutes=5)
