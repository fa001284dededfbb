"""
Pydantic schemas for lesson listing, detail and submission
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from mathlearn.schemas.common import CamelModel


class LessonProgress(CamelModel):
    """User progress summary attached to a lesson in the list view"""
    is_completed: bool
    score: float
    best_score: float
    attempts_count: int


class LessonSummary(CamelModel):
    """Lesson in the list view"""
    id: str
    title: str
    description: Optional[str] = None
    order: int
    xp_reward: int
    is_active: bool
    problem_count: int
    progress: Optional[LessonProgress] = None


class LessonStats(CamelModel):
    """Aggregate lesson statistics"""
    total_lessons: int
    active_lessons: int
    average_completion: float


class ProblemOptionPublic(CamelModel):
    """Option as shown to learners (correctness hidden)"""
    id: str
    option_text: str
    order: int


class ProblemPublic(CamelModel):
    """Problem as shown to learners (answer and explanation hidden)"""
    id: str
    question: str
    problem_type: str
    order: int
    difficulty: str
    xp_reward: int
    options: List[ProblemOptionPublic] = []


class LessonDetail(CamelModel):
    """Lesson with its problems, safe to send to the frontend"""
    id: str
    title: str
    description: Optional[str] = None
    order: int
    xp_reward: int
    problems: List[ProblemPublic]


class AnswerSubmission(CamelModel):
    """One submitted answer"""
    problem_id: str = Field(..., min_length=1)
    answer: str

    @field_validator("answer")
    @classmethod
    def answer_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Answer cannot be empty")
        return value


class LessonSubmission(CamelModel):
    """Request body for POST /api/lessons/{id}/submit"""
    attempt_id: str = Field(..., min_length=1, max_length=100)
    answers: List[AnswerSubmission] = Field(..., min_length=1)
    time_spent: Optional[int] = Field(None, ge=0)


class ProblemResult(CamelModel):
    """Grading outcome for a single problem"""
    problem_id: str
    user_answer: str
    is_correct: bool
    correct_answer: Optional[str] = None
    explanation: Optional[str] = None
    xp_earned: int


class StreakInfo(CamelModel):
    current: int
    best: int
    updated: bool


class LessonOutcome(CamelModel):
    completed: bool
    score: float
    best_score: float


class SubmissionResult(CamelModel):
    """Response data for a lesson submission"""
    success: bool = True
    xp_earned: int
    total_xp: int
    streak: StreakInfo
    lesson: LessonOutcome
    results: List[ProblemResult]


class RecentSubmission(CamelModel):
    """Submission entry in a user's recent activity"""
    attempt_id: str
    lesson_id: str
    lesson_title: Optional[str] = None
    score: int
    correct_count: int
    total_count: int
    xp_earned: int
    submitted_at: datetime
