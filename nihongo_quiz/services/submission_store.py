"""Queries and serialization for quiz submissions."""

from typing import List, Optional

from sqlmodel import Session, select

from nihongo_quiz.models import QuizSubmission
from nihongo_quiz.schemas import OPEN_ENDED


def find_student_submissions(
    session: Session,
    course_id: int,
    module_index: int,
    item_index: int,
    student_id: str,
    submission_id: Optional[int] = None,
) -> List[QuizSubmission]:
    """A student's submissions for one quiz, most recent attempt first."""
    stmt = select(QuizSubmission).where(
        (QuizSubmission.course_id == course_id)
        & (QuizSubmission.module_index == module_index)
        & (QuizSubmission.item_index == item_index)
        & (QuizSubmission.student_id == student_id)
    )
    if submission_id is not None:
        stmt = stmt.where(QuizSubmission.id == submission_id)
    stmt = stmt.order_by(QuizSubmission.attempt_number.desc())
    return list(session.exec(stmt).all())


def find_open_ended_submissions(
    session: Session, course_id: int, module_index: int, item_index: int
) -> List[QuizSubmission]:
    """All open-ended submissions for one quiz, newest first."""
    stmt = (
        select(QuizSubmission)
        .where(
            (QuizSubmission.course_id == course_id)
            & (QuizSubmission.module_index == module_index)
            & (QuizSubmission.item_index == item_index)
            & (QuizSubmission.quiz_type == OPEN_ENDED)
        )
        .order_by(QuizSubmission.submitted_at.desc(), QuizSubmission.id.desc())
    )
    return list(session.exec(stmt).all())


def find_all_for_student(session: Session, student_id: str) -> List[QuizSubmission]:
    stmt = (
        select(QuizSubmission)
        .where(QuizSubmission.student_id == student_id)
        .order_by(QuizSubmission.submitted_at.desc(), QuizSubmission.id.desc())
    )
    return list(session.exec(stmt).all())


def open_ended_answer(sub: QuizSubmission) -> dict:
    """The open-ended answer block, omitting fields that were never set."""
    fields = {
        "text_answer": sub.text_answer,
        "file_url": sub.file_url,
        "graded_score": sub.graded_score,
        "feedback": sub.feedback,
        "graded_at": sub.graded_at,
        "graded_by": sub.graded_by,
    }
    return {key: value for key, value in fields.items() if value is not None}


def submission_summary(sub: QuizSubmission) -> dict:
    return {
        "id": sub.id,
        "score": sub.score,
        "total_points": sub.total_points,
        "percentage": sub.percentage,
        "passed": sub.passed,
        "attempt_number": sub.attempt_number,
        "submitted_at": sub.submitted_at,
        "time_spent": sub.time_spent,
    }


def submission_to_dict(sub: QuizSubmission) -> dict:
    """Full submission record as returned to its owner or to a grader."""
    data = {
        **submission_summary(sub),
        "course_id": sub.course_id,
        "module_index": sub.module_index,
        "item_index": sub.item_index,
        "student_id": sub.student_id,
        "student_name": sub.student_name,
        "student_email": sub.student_email,
        "quiz_type": sub.quiz_type,
        "started_at": sub.started_at,
        "exceeded_time_limit": sub.exceeded_time_limit,
    }
    if sub.quiz_type == OPEN_ENDED:
        data["open_ended_answer"] = open_ended_answer(sub)
    else:
        data["mcq_answers"] = sub.mcq_answers or []
    return data
