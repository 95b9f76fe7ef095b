"""Pure scoring helpers for quiz submissions."""

import math
from typing import Dict, List, Optional

from nihongo_quiz.schemas import McqQuestion

UNANSWERED = -1


def compute_percentage(score: float, total_points: float) -> int:
    """Return ``score / total_points`` as a whole percentage.

    Halves round up (12.5 -> 13), and a quiz worth 0 points always yields 0.
    """
    if total_points <= 0:
        return 0
    return int(math.floor(score / total_points * 100 + 0.5))


def is_passed(percentage: float, passing_score: float) -> bool:
    return percentage >= passing_score


def score_mcq(
    questions: List[McqQuestion], selections: Dict[int, Optional[int]]
) -> tuple[list[dict], float]:
    """Grade MCQ selections against the canonical question order.

    Args:
        questions: Questions in their stored (unrandomized) order
        selections: Canonical question index -> canonical option index;
            missing keys and ``None`` values count as unanswered

    Returns:
        Tuple of (per-question answer records, total score)
    """
    answers = []
    total = 0.0
    for idx, question in enumerate(questions):
        selected = selections.get(idx)
        if selected is None or selected == UNANSWERED:
            answers.append(
                {
                    "question_index": idx,
                    "selected_option_index": UNANSWERED,
                    "is_correct": False,
                    "points_earned": 0,
                }
            )
            continue

        is_correct = selected == question.correct_option_index()
        points_earned = question.points if is_correct else 0
        answers.append(
            {
                "question_index": idx,
                "selected_option_index": selected,
                "is_correct": is_correct,
                "points_earned": points_earned,
            }
        )
        total += points_earned

    return answers, total
