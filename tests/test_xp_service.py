"""Tests for XP, streak, score and rank rules."""

from datetime import datetime
from types import SimpleNamespace

import pytest

from mathlearn.services.xp_service import xp_service


def _choice_problem():
    return SimpleNamespace(
        problem_type="multiple_choice",
        correct_answer=None,
        options=[
            SimpleNamespace(option_text="11", is_correct=False),
            SimpleNamespace(option_text="12", is_correct=True),
        ],
    )


def _input_problem(answer="Seven"):
    return SimpleNamespace(problem_type="input", correct_answer=answer, options=[])


class TestIsAnswerCorrect:
    def test_multiple_choice_matches_correct_option_text(self):
        assert xp_service.is_answer_correct(_choice_problem(), "12") is True

    def test_multiple_choice_is_exact(self):
        assert xp_service.is_answer_correct(_choice_problem(), " 12") is False
        assert xp_service.is_answer_correct(_choice_problem(), "11") is False

    def test_multiple_choice_without_correct_option(self):
        problem = _choice_problem()
        problem.options[1].is_correct = False
        assert xp_service.is_answer_correct(problem, "12") is False

    def test_input_is_trimmed_and_case_insensitive(self):
        assert xp_service.is_answer_correct(_input_problem(), "  seVEN ") is True

    def test_input_wrong_answer(self):
        assert xp_service.is_answer_correct(_input_problem(), "eight") is False

    def test_missing_answer_is_wrong(self):
        assert xp_service.is_answer_correct(_input_problem(), None) is False

    def test_correct_answer_text_for_choice(self):
        assert xp_service.correct_answer_text(_choice_problem()) == "12"


class TestCalculateStreak:
    NOW = datetime(2024, 3, 10, 8, 0)

    def test_first_activity_starts_streak(self):
        assert xp_service.calculate_streak(0, None, self.NOW) == (1, True)

    def test_activity_yesterday_increments(self):
        # 23:59 the previous day still counts as yesterday
        assert xp_service.calculate_streak(4, datetime(2024, 3, 9, 23, 59), self.NOW) == (5, True)

    def test_activity_today_is_unchanged(self):
        assert xp_service.calculate_streak(4, datetime(2024, 3, 10, 0, 1), self.NOW) == (4, False)

    def test_future_activity_is_unchanged(self):
        assert xp_service.calculate_streak(4, datetime(2024, 3, 11, 9, 0), self.NOW) == (4, False)

    def test_skipped_day_resets(self):
        assert xp_service.calculate_streak(9, datetime(2024, 3, 8, 20, 0), self.NOW) == (1, True)


@pytest.mark.parametrize(
    "correct,total,expected",
    [(0, 0, 0), (0, 3, 0), (1, 3, 33), (2, 3, 67), (3, 3, 100)],
)
def test_calculate_score(correct, total, expected):
    assert xp_service.calculate_score(correct, total) == expected


@pytest.mark.parametrize(
    "xp,rank",
    [
        (0, "Beginner"),
        (49, "Beginner"),
        (50, "Novice"),
        (199, "Novice"),
        (200, "Intermediate"),
        (500, "Advanced"),
        (999, "Advanced"),
        (1000, "Expert"),
    ],
)
def test_calculate_rank(xp, rank):
    assert xp_service.calculate_rank(xp) == rank
