"""Read/write access to courses, modules and module items.

The quiz lifecycle only ever calls :func:`load_quiz`; the remaining helpers
back the curriculum authoring endpoints.
"""

from dataclasses import dataclass
from typing import Optional, Union

from pydantic import ValidationError
from sqlmodel import Session, func, select

from nihongo_quiz.errors import Forbidden, NotFound
from nihongo_quiz.models import Course, CourseModule, ModuleItem
from nihongo_quiz.schemas import (
    CourseIn,
    ItemIn,
    McqQuizDefinition,
    OpenEndedQuizDefinition,
    parse_quiz_definition,
)


@dataclass(frozen=True)
class QuizHandle:
    """A quiz located by course id and positional module/item indices."""

    course: Course
    item: ModuleItem
    module_index: int
    item_index: int
    definition: Union[McqQuizDefinition, OpenEndedQuizDefinition]

    @property
    def title(self) -> str:
        return self.item.title

    @property
    def is_published(self) -> bool:
        return self.item.is_published


def get_course(session: Session, course_id: int) -> Course:
    course = session.get(Course, course_id)
    if not course:
        raise NotFound("Course not found")
    return course


def _get_module(session: Session, course_id: int, module_index: int) -> Optional[CourseModule]:
    stmt = select(CourseModule).where(
        (CourseModule.course_id == course_id) & (CourseModule.position == module_index)
    )
    return session.exec(stmt).first()


def _get_item(session: Session, module_id: int, item_index: int) -> Optional[ModuleItem]:
    stmt = select(ModuleItem).where(
        (ModuleItem.module_id == module_id) & (ModuleItem.position == item_index)
    )
    return session.exec(stmt).first()


def load_quiz(
    session: Session,
    course_id: int,
    module_index: int,
    item_index: int,
    require_published: bool = True,
) -> QuizHandle:
    """Resolve ``modules[module_index].items[item_index]`` of a course to a quiz.

    Raises:
        NotFound: course, module, item or quiz data missing, or item is not a quiz
        Forbidden: the item is unpublished and ``require_published`` is set
    """
    course = get_course(session, course_id)

    module = _get_module(session, course_id, module_index)
    if not module:
        raise NotFound("Module not found")

    item = _get_item(session, module.id, item_index)
    if not item or item.type != "quiz":
        raise NotFound("Quiz not found")

    if require_published and not item.is_published:
        raise Forbidden("Quiz is not published")

    if not item.quiz_data:
        raise NotFound("Quiz data not found")

    try:
        definition = parse_quiz_definition(item.quiz_data)
    except ValidationError:
        raise NotFound("Quiz data not found")

    return QuizHandle(
        course=course,
        item=item,
        module_index=module_index,
        item_index=item_index,
        definition=definition,
    )


# --- Authoring ---


def create_course(session: Session, payload: CourseIn) -> Course:
    course = Course(**payload.model_dump())
    session.add(course)
    session.commit()
    session.refresh(course)
    return course


def add_module(session: Session, course_id: int, title: str) -> CourseModule:
    """Append a module to the end of a course's curriculum."""
    get_course(session, course_id)
    count = session.exec(
        select(func.count()).select_from(CourseModule).where(CourseModule.course_id == course_id)
    ).one()
    module = CourseModule(course_id=course_id, position=count, title=title)
    session.add(module)
    session.commit()
    session.refresh(module)
    return module


def add_item(session: Session, course_id: int, module_index: int, payload: ItemIn) -> ModuleItem:
    """Append an item to the end of a module."""
    get_course(session, course_id)
    module = _get_module(session, course_id, module_index)
    if not module:
        raise NotFound("Module not found")

    count = session.exec(
        select(func.count()).select_from(ModuleItem).where(ModuleItem.module_id == module.id)
    ).one()
    item = ModuleItem(
        module_id=module.id,
        position=count,
        type=payload.type,
        title=payload.title,
        description=payload.description,
        is_published=payload.is_published,
        quiz_data=payload.quiz_data.model_dump(mode="json") if payload.quiz_data else None,
    )
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


def set_item_published(
    session: Session, course_id: int, module_index: int, item_index: int, is_published: bool
) -> ModuleItem:
    get_course(session, course_id)
    module = _get_module(session, course_id, module_index)
    if not module:
        raise NotFound("Module not found")
    item = _get_item(session, module.id, item_index)
    if not item:
        raise NotFound("Item not found")

    item.is_published = is_published
    session.add(item)
    session.commit()
    session.refresh(item)
    return item
