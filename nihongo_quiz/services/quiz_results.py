"""A student's own results for a quiz, filtered by answer-visibility policy."""

from typing import Optional

from sqlmodel import Session

from nihongo_quiz.auth_utils import Identity
from nihongo_quiz.errors import NotFound
from nihongo_quiz.models import Course
from nihongo_quiz.schemas import MCQ
from nihongo_quiz.services.course_store import load_quiz
from nihongo_quiz.services.submission_store import (
    find_all_for_student,
    find_student_submissions,
    open_ended_answer,
    submission_summary,
)


def get_results(
    session: Session,
    identity: Identity,
    course_id: int,
    module_index: int,
    item_index: int,
    submission_id: Optional[int] = None,
) -> dict:
    """Return the caller's submissions for a quiz, most recent attempt first.

    Correct answers are only included for MCQ quizzes that show answers after
    submission. Unpublished quizzes still return results.
    """
    handle = load_quiz(session, course_id, module_index, item_index, require_published=False)
    quiz = handle.definition

    submissions = find_student_submissions(
        session, course_id, module_index, item_index, identity.id, submission_id
    )
    if not submissions:
        raise NotFound("No submissions found")

    if quiz.quiz_type == MCQ:
        if quiz.show_answers_after_submission:
            return {
                "submissions": [
                    {**submission_summary(s), "mcq_answers": s.mcq_answers or []}
                    for s in submissions
                ],
                "questions": [q.model_dump() for q in quiz.questions],
                "show_answers": True,
            }
        return {
            "submissions": [submission_summary(s) for s in submissions],
            "show_answers": False,
        }

    return {
        "submissions": [
            {**submission_summary(s), "open_ended_answer": open_ended_answer(s)}
            for s in submissions
        ],
        "question": quiz.question,
        "question_file": quiz.question_file,
    }


def list_my_submissions(session: Session, identity: Identity) -> list:
    """Every submission of the caller across courses, newest first."""
    submissions = find_all_for_student(session, identity.id)

    titles: dict[int, Optional[str]] = {}
    results = []
    for sub in submissions:
        if sub.course_id not in titles:
            course = session.get(Course, sub.course_id)
            titles[sub.course_id] = course.title if course else None
        results.append(
            {
                **submission_summary(sub),
                "course_id": sub.course_id,
                "course_title": titles[sub.course_id],
                "module_index": sub.module_index,
                "item_index": sub.item_index,
                "quiz_type": sub.quiz_type,
                "graded": sub.quiz_type == MCQ or sub.graded_score is not None,
            }
        )
    return results
