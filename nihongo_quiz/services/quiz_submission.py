"""Quiz submission: eligibility, MCQ auto-grading and persistence."""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from nihongo_quiz.auth_utils import Identity
from nihongo_quiz.errors import AttemptLimitReached, ConcurrentAttemptConflict, ValidationFailed
from nihongo_quiz.models import QuizSubmission
from nihongo_quiz.schemas import (
    MCQ,
    AnswersIn,
    McqQuizDefinition,
    OpenEndedQuizDefinition,
)
from nihongo_quiz.scoring import UNANSWERED, compute_percentage, is_passed, score_mcq
from nihongo_quiz.services.course_store import load_quiz
from nihongo_quiz.services.quiz_delivery import check_attempt_allowed
from nihongo_quiz.services.submission_store import (
    find_student_submissions,
    submission_to_dict,
)
from nihongo_quiz.utils import sanitize_answer_text, to_naive_utc, utcnow

logger = logging.getLogger(__name__)

# Client clocks drift; a start time this far ahead of the server is accepted.
CLOCK_SKEW_TOLERANCE = timedelta(minutes=1)

OPEN_ENDED_ACK = "Answer submitted successfully. It will be graded by the instructor."


def _mcq_selections(quiz: McqQuizDefinition, answers: AnswersIn) -> Dict[int, Optional[int]]:
    """Map canonical question index -> canonical option index, validating bounds."""
    selections: Dict[int, Optional[int]] = {}
    for answer in answers.mcq_answers:
        q_idx = answer.question_index
        if q_idx >= len(quiz.questions):
            raise ValidationFailed(f"Question index {q_idx} is out of range")
        if q_idx in selections:
            raise ValidationFailed(f"Question {q_idx} was answered more than once")

        selected = answer.selected_option_index
        if selected is not None and selected != UNANSWERED:
            if not 0 <= selected < len(quiz.questions[q_idx].options):
                raise ValidationFailed(
                    f"Option index {selected} is out of range for question {q_idx}"
                )
        selections[q_idx] = selected
    return selections


def _grade_mcq(quiz: McqQuizDefinition, answers: AnswersIn) -> dict:
    mcq_answers, score = score_mcq(quiz.questions, _mcq_selections(quiz, answers))
    percentage = compute_percentage(score, quiz.total_points)
    return {
        "mcq_answers": mcq_answers,
        "score": score,
        "total_points": quiz.total_points,
        "percentage": percentage,
        "passed": is_passed(percentage, quiz.passing_score),
    }


def _collect_open_ended(quiz: OpenEndedQuizDefinition, answers: AnswersIn) -> dict:
    text_answer = sanitize_answer_text(answers.text_answer) if answers.text_answer else None
    file_url = (answers.file_url or "").strip() or None

    if text_answer and not quiz.accept_text_answer:
        raise ValidationFailed("This quiz does not accept text answers")
    if file_url and not quiz.accept_file_upload:
        raise ValidationFailed("This quiz does not accept file uploads")
    if not text_answer and not file_url:
        raise ValidationFailed("An answer text or file is required")

    # Placeholders until an instructor grades the answer
    return {
        "text_answer": text_answer,
        "file_url": file_url,
        "score": 0,
        "total_points": quiz.total_points,
        "percentage": 0,
        "passed": False,
    }


def submit_quiz(
    session: Session,
    identity: Identity,
    course_id: int,
    module_index: int,
    item_index: int,
    answers: AnswersIn,
    quiz_type: str,
    started_at: datetime,
    client: Optional[dict] = None,
    now: Optional[datetime] = None,
) -> dict:
    """Record one attempt at a quiz and return the policy-filtered result.

    Raises:
        NotFound / Forbidden: as for quiz retrieval
        AttemptLimitReached: already submitted and retakes are not allowed
        ValidationFailed: quiz type mismatch, bad start time or malformed answers
        ConcurrentAttemptConflict: the attempt number was claimed concurrently
    """
    handle = load_quiz(session, course_id, module_index, item_index)
    quiz = handle.definition

    if quiz_type != quiz.quiz_type:
        raise ValidationFailed(
            f"Quiz type '{quiz_type}' does not match this quiz ('{quiz.quiz_type}')"
        )

    previous = find_student_submissions(
        session, course_id, module_index, item_index, identity.id
    )
    try:
        check_attempt_allowed(
            handle, previous, detail="Multiple attempts not allowed for this quiz"
        )
    except AttemptLimitReached:
        logger.info(
            "Submission refused: student=%s course=%s module=%s item=%s already submitted",
            identity.id, course_id, module_index, item_index,
        )
        raise
    attempt_number = len(previous) + 1

    submitted_at = now or utcnow()
    started = to_naive_utc(started_at)
    if started > submitted_at + CLOCK_SKEW_TOLERANCE:
        raise ValidationFailed("started_at cannot be in the future")
    time_spent = max(0, int((submitted_at - started).total_seconds()))

    if quiz.quiz_type == MCQ:
        outcome = _grade_mcq(quiz, answers)
    else:
        outcome = _collect_open_ended(quiz, answers)

    client = client or {}
    submission = QuizSubmission(
        course_id=course_id,
        module_index=module_index,
        item_index=item_index,
        student_id=identity.id,
        student_name=identity.display_name,
        student_email=identity.email,
        quiz_type=quiz.quiz_type,
        attempt_number=attempt_number,
        started_at=started,
        submitted_at=submitted_at,
        time_spent=time_spent,
        exceeded_time_limit=bool(quiz.time_limit) and time_spent > quiz.time_limit * 60,
        ip_address=client.get("ip_address") or None,
        user_agent=client.get("user_agent") or None,
        **outcome,
    )
    session.add(submission)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.warning(
            "Attempt conflict: student=%s course=%s module=%s item=%s attempt=%s",
            identity.id, course_id, module_index, item_index, attempt_number,
        )
        raise ConcurrentAttemptConflict()
    session.refresh(submission)

    logger.info(
        "Quiz submitted: id=%s student=%s type=%s attempt=%s score=%s/%s",
        submission.id, identity.id, submission.quiz_type, attempt_number,
        submission.score, submission.total_points,
    )

    if quiz.quiz_type == MCQ and quiz.show_answers_after_submission:
        return {
            "submission": submission_to_dict(submission),
            "show_answers": True,
            "questions": [q.model_dump() for q in quiz.questions],
        }
    if quiz.quiz_type == MCQ:
        return {
            "submission": {
                "id": submission.id,
                "score": submission.score,
                "total_points": submission.total_points,
                "percentage": submission.percentage,
                "passed": submission.passed,
                "attempt_number": submission.attempt_number,
            },
            "show_answers": False,
        }
    return {
        "message": OPEN_ENDED_ACK,
        "submission": {
            "id": submission.id,
            "submitted_at": submission.submitted_at,
            "attempt_number": submission.attempt_number,
        },
    }
