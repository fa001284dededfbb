"""
XP, streak, score and rank rules
Pure functions over model state, shared by lessons, profile and recommendations
"""
import logging
from datetime import datetime
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


class XPService:
    """
    Gamification rules

    Streak rule (calendar days, naive UTC):
    - no previous activity: streak starts at 1
    - last activity yesterday: streak + 1
    - last activity today (or clock skew into the future): unchanged
    - gap of two days or more: streak resets to 1
    """

    # (minimum XP, rank name), highest first
    RANKS = [
        (1000, "Expert"),
        (500, "Advanced"),
        (200, "Intermediate"),
        (50, "Novice"),
        (0, "Beginner"),
    ]

    def is_answer_correct(self, problem, answer: Optional[str]) -> bool:
        """
        Check an answer against a problem

        Multiple choice compares against the correct option's text exactly;
        input problems compare trimmed and case-insensitive.
        """
        if answer is None:
            return False

        if problem.problem_type == "multiple_choice":
            correct = self.correct_answer_text(problem)
            return correct is not None and answer == correct

        if problem.correct_answer is None:
            return False
        return answer.strip().lower() == problem.correct_answer.strip().lower()

    def correct_answer_text(self, problem) -> Optional[str]:
        """Answer shown to the learner after grading"""
        if problem.problem_type == "multiple_choice":
            for option in problem.options:
                if option.is_correct:
                    return option.option_text
            return None
        return problem.correct_answer

    def calculate_streak(
        self,
        current: int,
        last_activity: Optional[datetime],
        now: datetime
    ) -> Tuple[int, bool]:
        """
        Compute the new streak

        Returns:
            Tuple of (new_streak, updated)
        """
        if last_activity is None:
            return 1, True

        gap = (now.date() - last_activity.date()).days

        if gap == 1:
            return current + 1, True
        if gap <= 0:
            return current, False
        return 1, True

    def calculate_score(self, correct: int, total: int) -> int:
        """Rounded percentage of correct answers"""
        if total <= 0:
            return 0
        return round(correct / total * 100)

    def calculate_rank(self, xp: int) -> str:
        for threshold, name in self.RANKS:
            if xp >= threshold:
                return name
        return "Beginner"


# Global instance
xp_service = XPService()
