"""
Pydantic schemas for the learner profile
"""
from datetime import date, datetime
from typing import List, Optional

from mathlearn.schemas.common import CamelModel
from mathlearn.schemas.lesson import RecentSubmission


class UserProfile(CamelModel):
    """Profile summary with progress and rank"""
    id: str
    email: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None
    avatar: Optional[str] = None
    total_xp: int
    current_streak: int
    best_streak: int
    last_activity_date: Optional[datetime] = None
    completed_lessons: int
    total_lessons: int
    progress_percentage: int
    rank: str
    is_verified: bool
    is_active: bool
    created_at: datetime


class ProfileSnapshot(CamelModel):
    total_xp: int
    current_streak: int
    best_streak: int
    last_activity_date: Optional[datetime] = None


class ProgressSnapshot(CamelModel):
    completed_lessons: int
    total_lessons: int
    average_score: int
    total_attempts: int


class DailyProgress(CamelModel):
    """XP and completions for one calendar day"""
    date: date
    xp_earned: int
    lessons_completed: int


class ProfileStats(CamelModel):
    """Detailed statistics for the profile page"""
    profile: ProfileSnapshot
    progress: ProgressSnapshot
    xp_this_week: int
    xp_this_month: int
    weekly_progress: List[DailyProgress]
    recent_activity: List[RecentSubmission]
