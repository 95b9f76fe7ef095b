"""Student quiz endpoints: fetch, submit, results and submission history."""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlmodel import Session

from nihongo_quiz.auth_utils import Identity
from nihongo_quiz.database import get_session
from nihongo_quiz.deps import client_metadata, require_login
from nihongo_quiz.schemas import SubmitQuizIn
from nihongo_quiz.services.quiz_delivery import get_quiz_for_student
from nihongo_quiz.services.quiz_results import get_results, list_my_submissions
from nihongo_quiz.services.quiz_submission import submit_quiz

router = APIRouter()


@router.get("/quiz/fetch")
def api_fetch_quiz(
    course_id: int = Query(...),
    module_index: int = Query(..., ge=0),
    item_index: int = Query(..., ge=0),
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_login),
):
    """Quiz view for the caller's next attempt, with answer keys removed."""
    result = get_quiz_for_student(session, identity, course_id, module_index, item_index)
    return {"success": True, **result}


@router.post("/quiz/submit")
def api_submit_quiz(
    request: Request,
    payload: SubmitQuizIn = Body(...),
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_login),
):
    result = submit_quiz(
        session,
        identity,
        course_id=payload.course_id,
        module_index=payload.module_index,
        item_index=payload.item_index,
        answers=payload.answers,
        quiz_type=payload.quiz_type,
        started_at=payload.started_at,
        client=client_metadata(request),
    )
    return {"success": True, **result}


@router.get("/quiz/results")
def api_quiz_results(
    course_id: int = Query(...),
    module_index: int = Query(..., ge=0),
    item_index: int = Query(..., ge=0),
    submission_id: Optional[int] = Query(None),
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_login),
):
    result = get_results(
        session, identity, course_id, module_index, item_index, submission_id
    )
    return {"success": True, **result}


@router.get("/quizzes/submissions")
def api_my_submissions(
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_login),
):
    """All of the caller's quiz submissions across courses."""
    return {"success": True, "submissions": list_my_submissions(session, identity)}
