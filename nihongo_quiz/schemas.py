"""Pydantic schemas: quiz definitions and request bodies."""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, model_validator

MCQ = "mcq"
OPEN_ENDED = "open-ended"

QUESTION_MAX_LENGTH = 5000
ANSWER_MAX_LENGTH = 50000
FEEDBACK_MAX_LENGTH = 5000


# --- Quiz definitions (embedded in a module item) ---


class McqOption(BaseModel):
    text: str = Field(min_length=1, max_length=1000)
    is_correct: bool = False


class McqQuestion(BaseModel):
    question: str = Field(min_length=1, max_length=QUESTION_MAX_LENGTH)
    options: List[McqOption]
    points: float = Field(default=1, ge=0)
    explanation: Optional[str] = None

    def correct_option_index(self) -> int:
        """Index of the first option flagged correct, or -1 if none is."""
        for idx, opt in enumerate(self.options):
            if opt.is_correct:
                return idx
        return -1


class _QuizSettings(BaseModel):
    time_limit: Optional[int] = Field(default=30, ge=1)  # minutes
    total_points: float = Field(default=0, ge=0)
    passing_score: float = Field(default=60, ge=0, le=100)
    allow_multiple_attempts: bool = False


class McqQuizDefinition(_QuizSettings):
    quiz_type: Literal["mcq"] = MCQ
    randomize_questions: bool = False
    randomize_options: bool = False
    show_answers_after_submission: bool = True
    questions: List[McqQuestion] = Field(default_factory=list)


class OpenEndedQuizDefinition(_QuizSettings):
    quiz_type: Literal["open-ended"] = OPEN_ENDED
    question: Optional[str] = Field(default=None, max_length=QUESTION_MAX_LENGTH)
    question_file: Optional[str] = None
    accept_text_answer: bool = True
    accept_file_upload: bool = True


QuizDefinition = Annotated[
    Union[McqQuizDefinition, OpenEndedQuizDefinition],
    Field(discriminator="quiz_type"),
]

quiz_definition_adapter: TypeAdapter = TypeAdapter(QuizDefinition)


def parse_quiz_definition(data: dict) -> Union[McqQuizDefinition, OpenEndedQuizDefinition]:
    """Parse stored ``quiz_data`` into the matching definition variant."""
    return quiz_definition_adapter.validate_python(data)


# --- Authoring ---


class CourseIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    title_jp: Optional[str] = Field(default=None, max_length=200)
    description: str = Field(default="", max_length=2000)
    level: Literal["beginner", "intermediate", "advanced"] = "beginner"
    category: Literal[
        "vocabulary", "grammar", "conversation", "reading", "writing", "culture", "kanji"
    ] = "vocabulary"
    is_published: bool = False


class ModuleIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)


class ItemIn(BaseModel):
    type: Literal["lesson", "quiz", "assignment", "resource"]
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    is_published: bool = False
    quiz_data: Optional[QuizDefinition] = None

    @model_validator(mode="after")
    def _check_quiz(self) -> "ItemIn":
        if self.type == "quiz":
            quiz = self.quiz_data
            if quiz is None:
                raise ValueError("quiz_data is required for quiz items")
            if quiz.quiz_type == MCQ:
                if not quiz.questions:
                    raise ValueError("Please add at least one question to the quiz")
                for number, question in enumerate(quiz.questions, start=1):
                    if len(question.options) < 2:
                        raise ValueError(f"Question {number} needs at least 2 options")
                    if question.correct_option_index() < 0:
                        raise ValueError(f"Question {number} has no correct option")
                if not quiz.total_points:
                    quiz.total_points = sum(q.points for q in quiz.questions)
            elif not quiz.question and not quiz.question_file:
                raise ValueError("Please add a question or upload a question file")
        elif self.quiz_data is not None:
            raise ValueError("quiz_data is only allowed on quiz items")
        return self


class ItemPatch(BaseModel):
    is_published: bool


# --- Quiz lifecycle requests ---


class McqAnswerIn(BaseModel):
    question_index: int = Field(ge=0)
    selected_option_index: Optional[int] = None


class AnswersIn(BaseModel):
    mcq_answers: List[McqAnswerIn] = Field(default_factory=list)
    text_answer: Optional[str] = Field(default=None, max_length=ANSWER_MAX_LENGTH)
    file_url: Optional[str] = Field(default=None, max_length=2000)


class SubmitQuizIn(BaseModel):
    course_id: int
    module_index: int = Field(ge=0)
    item_index: int = Field(ge=0)
    quiz_type: Literal["mcq", "open-ended"]
    started_at: datetime
    answers: AnswersIn = Field(default_factory=AnswersIn)


class GradeIn(BaseModel):
    submission_id: int
    score: float = Field(allow_inf_nan=False)
    feedback: Optional[str] = Field(default=None, max_length=FEEDBACK_MAX_LENGTH)
    course_id: Optional[int] = None
    module_index: Optional[int] = None
    item_index: Optional[int] = None


class LoginIn(BaseModel):
    email: str
    password: str
