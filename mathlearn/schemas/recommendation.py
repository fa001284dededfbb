"""
Pydantic schemas for adaptive learning recommendations
"""
from datetime import datetime
from typing import List, Optional

from mathlearn.schemas.common import CamelModel


class LearningPattern(CamelModel):
    """Summary of how a user has been learning"""
    average_score: float
    learning_speed: float  # problems per minute
    struggling_areas: List[str]
    strong_areas: List[str]
    preferred_difficulty: str
    consistency_score: float  # 0-100


class LessonRecommendation(CamelModel):
    lesson_id: str
    title: str
    description: str
    recommendation_reason: str
    confidence_score: int
    estimated_completion_time: int  # minutes
    difficulty: str
    xp_reward: int
    order: int
    is_unlocked: bool
    prerequisites: List[str]


class LearningPath(CamelModel):
    """Response data for GET /api/recommendations"""
    user_id: str
    generated_at: datetime
    learning_pattern: LearningPattern
    recommendations: List[LessonRecommendation]
    next_suggested_lesson: Optional[LessonRecommendation] = None
    personalized_message: str
    learning_goals: List[str]
