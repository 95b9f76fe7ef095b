"""Instructor grading of open-ended quiz submissions."""

from fastapi import APIRouter, Body, Depends, Query
from sqlmodel import Session

from nihongo_quiz.auth_utils import INSTRUCTOR_ROLES, Identity
from nihongo_quiz.database import get_session
from nihongo_quiz.deps import require_role
from nihongo_quiz.schemas import GradeIn
from nihongo_quiz.services.quiz_grading import grade_submission, grading_queue

router = APIRouter()


@router.put("/quiz/grade")
def api_grade_submission(
    payload: GradeIn = Body(...),
    session: Session = Depends(get_session),
    grader: Identity = Depends(require_role(INSTRUCTOR_ROLES)),
):
    submission = grade_submission(
        session,
        grader,
        submission_id=payload.submission_id,
        score=payload.score,
        feedback=payload.feedback,
        course_id=payload.course_id,
        module_index=payload.module_index,
        item_index=payload.item_index,
    )
    return {"success": True, "submission": submission}


@router.get("/quiz/grade")
def api_grading_queue(
    course_id: int = Query(...),
    module_index: int = Query(..., ge=0),
    item_index: int = Query(..., ge=0),
    session: Session = Depends(get_session),
    grader: Identity = Depends(require_role(INSTRUCTOR_ROLES)),
):
    """Open-ended submissions for a quiz, split into ungraded and graded."""
    return {"success": True, **grading_queue(session, course_id, module_index, item_index)}
