"""Service tests for quiz retrieval, redaction and randomization."""

import random

import pytest
from sqlmodel import Session

from conftest import mcq_definition, open_ended_definition
from nihongo_quiz.errors import AttemptLimitReached, Forbidden, NotFound
from nihongo_quiz.models import CourseModule, ModuleItem
from nihongo_quiz.schemas import AnswersIn, McqAnswerIn
from nihongo_quiz.services.quiz_delivery import get_quiz_for_student
from nihongo_quiz.services.quiz_submission import submit_quiz


def _contains_key(value, key) -> bool:
    if isinstance(value, dict):
        return key in value or any(_contains_key(v, key) for v in value.values())
    if isinstance(value, list):
        return any(_contains_key(v, key) for v in value)
    return False


def _fetch(session, student, quiz, rng=None):
    return get_quiz_for_student(
        session, student, quiz["course_id"], quiz["module_index"], quiz["item_index"], rng=rng
    )


class TestLookupFailures:
    def test_missing_course(self, session, student):
        with pytest.raises(NotFound, match="Course not found"):
            get_quiz_for_student(session, student, 9999, 0, 0)

    def test_missing_module(self, session, student, mcq_quiz):
        with pytest.raises(NotFound, match="Module not found"):
            get_quiz_for_student(session, student, mcq_quiz["course_id"], 42, 0)

    def test_missing_item(self, session, student, mcq_quiz):
        with pytest.raises(NotFound, match="Quiz not found"):
            get_quiz_for_student(
                session, student, mcq_quiz["course_id"], mcq_quiz["module_index"], 7
            )

    def test_item_that_is_not_a_quiz(self, session, student, course):
        module = CourseModule(course_id=course.id, position=0, title="Lessons")
        session.add(module)
        session.commit()
        session.refresh(module)
        session.add(ModuleItem(module_id=module.id, position=0, type="lesson", title="Hiragana", is_published=True))
        session.commit()

        with pytest.raises(NotFound, match="Quiz not found"):
            get_quiz_for_student(session, student, course.id, 0, 0)

    def test_quiz_item_without_quiz_data(self, session, student, course):
        module = CourseModule(course_id=course.id, position=0, title="Quizzes")
        session.add(module)
        session.commit()
        session.refresh(module)
        session.add(ModuleItem(module_id=module.id, position=0, type="quiz", title="Empty", is_published=True))
        session.commit()

        with pytest.raises(NotFound, match="Quiz data not found"):
            get_quiz_for_student(session, student, course.id, 0, 0)

    def test_unpublished_quiz_is_forbidden(self, session, student, make_quiz):
        quiz = make_quiz(mcq_definition(), is_published=False)
        with pytest.raises(Forbidden, match="not published"):
            _fetch(session, student, quiz)


class TestMcqView:
    def test_answer_key_never_exposed(self, session, student, mcq_quiz):
        first = _fetch(session, student, mcq_quiz)
        second = _fetch(session, student, mcq_quiz)

        for result in (first, second):
            assert not _contains_key(result, "is_correct")
            assert not _contains_key(result, "explanation")

    def test_view_metadata(self, session, student, mcq_quiz):
        result = _fetch(session, student, mcq_quiz)
        quiz = result["quiz"]

        assert quiz["title"] == "Kanji basics"
        assert quiz["quiz_type"] == "mcq"
        assert quiz["time_limit"] == 30
        assert quiz["total_points"] == 10
        assert quiz["passing_score"] == 60
        assert quiz["allow_multiple_attempts"] is False
        assert quiz["attempt_number"] == 1
        assert result["previous_attempts"] == 0

    def test_unrandomized_order_matches_definition(self, session, student, mcq_quiz):
        questions = _fetch(session, student, mcq_quiz)["quiz"]["questions"]

        assert [q["question_index"] for q in questions] == [0, 1]
        assert [q["original_index"] for q in questions] == [0, 1]
        assert [o["text"] for o in questions[0]["options"]] == ["fire", "water", "tree"]
        assert questions[0]["points"] == 5

    def test_randomized_questions_map_back_to_definition(self, session, student, make_quiz):
        definition = mcq_definition(randomize_questions=True, randomize_options=True)
        quiz = make_quiz(definition)
        canonical = definition["questions"]

        for seed in range(5):
            questions = _fetch(session, student, quiz, rng=random.Random(seed))["quiz"]["questions"]

            assert [q["question_index"] for q in questions] == list(range(len(canonical)))
            assert sorted(q["original_index"] for q in questions) == list(range(len(canonical)))
            for q in questions:
                source = canonical[q["original_index"]]
                assert q["question"] == source["question"]
                assert [o["option_index"] for o in q["options"]] == list(range(len(source["options"])))
                for opt in q["options"]:
                    assert opt["text"] == source["options"][opt["original_index"]]["text"]

    def test_randomization_reshuffles_per_fetch(self, session, student, make_quiz):
        questions = [
            {
                "question": f"Question {i}",
                "options": [{"text": "a", "is_correct": True}, {"text": "b"}],
            }
            for i in range(8)
        ]
        quiz = make_quiz(mcq_definition(questions=questions, total_points=8, randomize_questions=True))
        rng = random.Random(1234)

        orders = {
            tuple(q["original_index"] for q in _fetch(session, student, quiz, rng=rng)["quiz"]["questions"])
            for _ in range(5)
        }
        assert len(orders) > 1


class TestOpenEndedView:
    def test_open_ended_fields(self, session, student, make_quiz):
        quiz = make_quiz(open_ended_definition(question_file="https://cdn.example.com/prompt.pdf"))
        view = _fetch(session, student, quiz)["quiz"]

        assert view["quiz_type"] == "open-ended"
        assert view["question"].startswith("自己紹介")
        assert view["question_file"] == "https://cdn.example.com/prompt.pdf"
        assert view["accept_text_answer"] is True
        assert view["accept_file_upload"] is True
        assert "questions" not in view


class TestAttempts:
    def test_single_attempt_quiz_refuses_fetch_after_submission(self, session, student, mcq_quiz, started_at):
        submit_quiz(
            session, student, **mcq_quiz,
            answers=AnswersIn(mcq_answers=[McqAnswerIn(question_index=0, selected_option_index=1)]),
            quiz_type="mcq", started_at=started_at,
        )

        with pytest.raises(AttemptLimitReached) as exc_info:
            _fetch(session, student, mcq_quiz)

        exc = exc_info.value
        assert exc.status_code == 403
        assert exc.extra["already_submitted"] is True
        assert exc.extra["submission"]["attempt_number"] == 1

    def test_attempt_number_counts_prior_submissions(self, session, student, make_quiz, started_at):
        quiz = make_quiz(mcq_definition(allow_multiple_attempts=True))
        for _ in range(2):
            submit_quiz(
                session, student, **quiz, answers=AnswersIn(),
                quiz_type="mcq", started_at=started_at,
            )

        result = _fetch(session, student, quiz)
        assert result["quiz"]["attempt_number"] == 3
        assert result["previous_attempts"] == 2

    def test_other_students_submissions_do_not_count(self, session, student, other_student, mcq_quiz, started_at):
        submit_quiz(
            session, other_student, **mcq_quiz, answers=AnswersIn(),
            quiz_type="mcq", started_at=started_at,
        )

        result = _fetch(session, student, mcq_quiz)
        assert result["quiz"]["attempt_number"] == 1
