"""Course curriculum authoring for instructors and admins."""

from fastapi import APIRouter, Body, Depends, status
from sqlmodel import Session

from nihongo_quiz.auth_utils import INSTRUCTOR_ROLES, Identity
from nihongo_quiz.database import get_session
from nihongo_quiz.deps import require_role
from nihongo_quiz.schemas import CourseIn, ItemIn, ItemPatch, ModuleIn
from nihongo_quiz.services.course_store import (
    add_item,
    add_module,
    create_course,
    set_item_published,
)

router = APIRouter()


@router.post("/courses", status_code=status.HTTP_201_CREATED)
def api_create_course(
    payload: CourseIn = Body(...),
    session: Session = Depends(get_session),
    current_user: Identity = Depends(require_role(INSTRUCTOR_ROLES)),
):
    course = create_course(session, payload)
    return {"success": True, "course": course.model_dump()}


@router.post("/courses/{course_id}/modules", status_code=status.HTTP_201_CREATED)
def api_add_module(
    course_id: int,
    payload: ModuleIn = Body(...),
    session: Session = Depends(get_session),
    current_user: Identity = Depends(require_role(INSTRUCTOR_ROLES)),
):
    module = add_module(session, course_id, payload.title)
    return {"success": True, "module_index": module.position, "title": module.title}


@router.post(
    "/courses/{course_id}/modules/{module_index}/items",
    status_code=status.HTTP_201_CREATED,
)
def api_add_item(
    course_id: int,
    module_index: int,
    payload: ItemIn = Body(...),
    session: Session = Depends(get_session),
    current_user: Identity = Depends(require_role(INSTRUCTOR_ROLES)),
):
    """Append a lesson, quiz, assignment or resource to a module."""
    item = add_item(session, course_id, module_index, payload)
    return {
        "success": True,
        "module_index": module_index,
        "item_index": item.position,
        "item": item.model_dump(),
    }


@router.patch("/courses/{course_id}/modules/{module_index}/items/{item_index}")
def api_update_item(
    course_id: int,
    module_index: int,
    item_index: int,
    payload: ItemPatch = Body(...),
    session: Session = Depends(get_session),
    current_user: Identity = Depends(require_role(INSTRUCTOR_ROLES)),
):
    item = set_item_published(session, course_id, module_index, item_index, payload.is_published)
    return {"success": True, "item": item.model_dump()}
