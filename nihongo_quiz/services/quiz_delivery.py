"""Student-facing quiz delivery: eligibility, redaction and shuffling."""

import logging
import random
from typing import List, Optional

from sqlmodel import Session

from nihongo_quiz.auth_utils import Identity
from nihongo_quiz.config import get_settings
from nihongo_quiz.errors import AttemptLimitReached
from nihongo_quiz.models import QuizSubmission
from nihongo_quiz.schemas import MCQ, McqQuizDefinition, OpenEndedQuizDefinition
from nihongo_quiz.services.course_store import QuizHandle, load_quiz
from nihongo_quiz.services.submission_store import (
    find_student_submissions,
    submission_to_dict,
)

logger = logging.getLogger(__name__)


def default_rng() -> random.Random:
    """Shuffle source; fixed when QUIZ_SHUFFLE_SEED is configured."""
    return random.Random(get_settings().QUIZ_SHUFFLE_SEED)


def redact_mcq_questions(
    quiz: McqQuizDefinition, rng: Optional[random.Random] = None
) -> List[dict]:
    """Questions without answer keys, shuffled per the quiz's settings.

    ``question_index`` / ``option_index`` are display positions;
    ``original_index`` points back into the stored definition and is what a
    client must send back on submission.
    """
    rng = rng or default_rng()

    questions = [
        {
            "question_index": idx,
            "original_index": idx,
            "question": q.question,
            "points": q.points,
            "options": [
                {"option_index": opt_idx, "original_index": opt_idx, "text": opt.text}
                for opt_idx, opt in enumerate(q.options)
            ],
        }
        for idx, q in enumerate(quiz.questions)
    ]

    if quiz.randomize_questions:
        rng.shuffle(questions)
        for new_idx, q in enumerate(questions):
            q["question_index"] = new_idx

    if quiz.randomize_options:
        for q in questions:
            rng.shuffle(q["options"])
            for new_idx, opt in enumerate(q["options"]):
                opt["option_index"] = new_idx

    return questions


def _open_ended_view(quiz: OpenEndedQuizDefinition) -> dict:
    return {
        "question": quiz.question,
        "question_file": quiz.question_file,
        "accept_text_answer": quiz.accept_text_answer,
        "accept_file_upload": quiz.accept_file_upload,
    }


def check_attempt_allowed(
    handle: QuizHandle, previous: List[QuizSubmission], detail: Optional[str] = None
) -> None:
    """Raise AttemptLimitReached when a single-attempt quiz was already taken.

    ``previous`` is ordered most recent first; the latest one is returned to
    the caller as context.
    """
    if previous and not handle.definition.allow_multiple_attempts:
        raise AttemptLimitReached(detail, submission=submission_to_dict(previous[0]))


def get_quiz_for_student(
    session: Session,
    identity: Identity,
    course_id: int,
    module_index: int,
    item_index: int,
    rng: Optional[random.Random] = None,
) -> dict:
    """Return the student-safe view of a quiz.

    Raises:
        NotFound: course/module/item/quiz data missing
        Forbidden: quiz unpublished
        AttemptLimitReached: already submitted and retakes are not allowed
    """
    handle = load_quiz(session, course_id, module_index, item_index)
    quiz = handle.definition

    previous = find_student_submissions(
        session, course_id, module_index, item_index, identity.id
    )
    try:
        check_attempt_allowed(handle, previous)
    except AttemptLimitReached:
        logger.info(
            "Quiz fetch refused: student=%s course=%s module=%s item=%s already submitted",
            identity.id, course_id, module_index, item_index,
        )
        raise

    view = {
        "title": handle.title,
        "description": handle.item.description,
        "quiz_type": quiz.quiz_type,
        "time_limit": quiz.time_limit,
        "total_points": quiz.total_points,
        "passing_score": quiz.passing_score,
        "allow_multiple_attempts": quiz.allow_multiple_attempts,
        "attempt_number": len(previous) + 1,
    }
    if quiz.quiz_type == MCQ:
        view["questions"] = redact_mcq_questions(quiz, rng)
    else:
        view.update(_open_ended_view(quiz))

    return {"quiz": view, "previous_attempts": len(previous)}
