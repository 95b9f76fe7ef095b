"""SQLModel models for the quiz service.

Timestamps are stored as naive UTC datetimes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from nihongo_quiz.utils import utcnow


class User(SQLModel, table=True):
    """Account that can log in with a role (admin / instructor / student)."""

    __table_args__ = (UniqueConstraint("email", name="uq_user_email"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str
    password_hash: str
    role: str = Field(default="student")  # "admin", "instructor", "student"
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)


# ===================== COURSE STORE =====================


class Course(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    title_jp: Optional[str] = None
    description: str = ""
    level: str = Field(default="beginner")  # beginner | intermediate | advanced
    category: str = Field(default="vocabulary")
    is_published: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)


class CourseModule(SQLModel, table=True):
    """A curriculum module; ``position`` is the module index within its course."""

    __table_args__ = (
        UniqueConstraint("course_id", "position", name="uq_module_course_position"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    position: int
    title: str


class ModuleItem(SQLModel, table=True):
    """A lesson, quiz, assignment or resource inside a module.

    Quiz items embed their definition in ``quiz_data``; see
    ``nihongo_quiz.schemas.QuizDefinition`` for its shape.
    """

    __table_args__ = (
        UniqueConstraint("module_id", "position", name="uq_item_module_position"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    module_id: int = Field(foreign_key="coursemodule.id", index=True)
    position: int
    type: str  # lesson | quiz | assignment | resource
    title: str
    description: Optional[str] = None
    is_published: bool = Field(default=False)
    quiz_data: Optional[dict] = Field(default=None, sa_column=Column(JSON))


# ===================== SUBMISSIONS =====================


class QuizSubmission(SQLModel, table=True):
    """One row per attempt by a student at a quiz."""

    __table_args__ = (
        UniqueConstraint(
            "course_id",
            "module_index",
            "item_index",
            "student_id",
            "attempt_number",
            name="uq_submission_attempt",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    module_index: int
    item_index: int
    student_id: str = Field(index=True)
    student_name: str
    student_email: str = ""
    quiz_type: str  # mcq | open-ended
    attempt_number: int = Field(default=1)

    # MCQ: [{question_index, selected_option_index, is_correct, points_earned}]
    mcq_answers: Optional[list] = Field(default=None, sa_column=Column(JSON))

    # Open-ended
    text_answer: Optional[str] = None
    file_url: Optional[str] = None
    graded_score: Optional[float] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None
    graded_by: Optional[str] = None

    score: float = Field(default=0)
    total_points: float
    percentage: int = Field(default=0)
    passed: bool = Field(default=False)

    started_at: datetime
    submitted_at: datetime
    time_spent: int  # seconds
    exceeded_time_limit: bool = Field(default=False)

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
