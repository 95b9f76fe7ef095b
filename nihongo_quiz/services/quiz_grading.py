"""Manual grading of open-ended submissions and the instructor review queue."""

import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session

from nihongo_quiz.auth_utils import Identity
from nihongo_quiz.errors import NotFound, ValidationFailed
from nihongo_quiz.models import QuizSubmission
from nihongo_quiz.schemas import OPEN_ENDED
from nihongo_quiz.scoring import compute_percentage, is_passed
from nihongo_quiz.services.course_store import load_quiz
from nihongo_quiz.services.submission_store import (
    find_open_ended_submissions,
    submission_to_dict,
)
from nihongo_quiz.utils import sanitize_feedback, utcnow, validate_score

logger = logging.getLogger(__name__)


def grade_submission(
    session: Session,
    grader: Identity,
    submission_id: int,
    score: float,
    feedback: Optional[str] = None,
    course_id: Optional[int] = None,
    module_index: Optional[int] = None,
    item_index: Optional[int] = None,
    now: Optional[datetime] = None,
) -> dict:
    """Apply an instructor's score and feedback to an open-ended submission.

    The owning quiz is re-read so bounds and the passing threshold come from
    the current definition. Re-grading overwrites the previous grade.

    Raises:
        NotFound: submission or its quiz missing
        ValidationFailed: not open-ended, quiz key mismatch or score out of range
    """
    submission = session.get(QuizSubmission, submission_id)
    if not submission:
        raise NotFound("Submission not found")

    if submission.quiz_type != OPEN_ENDED:
        raise ValidationFailed("Can only grade open-ended quizzes")

    claimed = (course_id, module_index, item_index)
    actual = (submission.course_id, submission.module_index, submission.item_index)
    for claimed_value, actual_value in zip(claimed, actual):
        if claimed_value is not None and claimed_value != actual_value:
            raise ValidationFailed("Submission does not belong to this quiz")

    handle = load_quiz(session, *actual, require_published=False)
    quiz = handle.definition

    try:
        validate_score(score, quiz.total_points)
    except ValueError as e:
        raise ValidationFailed(str(e))

    percentage = compute_percentage(score, quiz.total_points)
    passed = is_passed(percentage, quiz.passing_score)
    graded_at = now or utcnow()

    submission.score = score
    submission.total_points = quiz.total_points
    submission.percentage = percentage
    submission.passed = passed
    submission.graded_score = score
    submission.feedback = sanitize_feedback(feedback) if feedback else ""
    submission.graded_at = graded_at
    submission.graded_by = grader.display_name or grader.id
    submission.updated_at = graded_at
    session.add(submission)
    session.commit()
    session.refresh(submission)

    logger.info(
        "Submission graded: id=%s grader=%s score=%s/%s passed=%s",
        submission.id, grader.id, score, quiz.total_points, passed,
    )
    return submission_to_dict(submission)


def grading_queue(
    session: Session, course_id: int, module_index: int, item_index: int
) -> dict:
    """Split a quiz's open-ended submissions into ungraded and graded, newest first."""
    submissions = find_open_ended_submissions(session, course_id, module_index, item_index)

    ungraded = [submission_to_dict(s) for s in submissions if s.graded_score is None]
    graded = [submission_to_dict(s) for s in submissions if s.graded_score is not None]

    return {"ungraded": ungraded, "graded": graded, "total": len(submissions)}
