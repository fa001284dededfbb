"""
Profile service
Learner profile summary and activity statistics
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from mathlearn.database import utcnow
from mathlearn.exceptions import NotFoundError
from mathlearn.models import Lesson, Submission, User, UserProgress
from mathlearn.schemas.lesson import RecentSubmission
from mathlearn.schemas.profile import (
    DailyProgress,
    ProfileSnapshot,
    ProfileStats,
    ProgressSnapshot,
    UserProfile,
)
from mathlearn.services.xp_service import xp_service

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 10


class ProfileService:
    """Read-only views over a user's XP, streak and lesson progress"""

    def get_profile(self, db: Session, user_id: str) -> UserProfile:
        user = self._get_user(db, user_id)

        completed_lessons = (
            db.query(func.count(UserProgress.id))
            .filter(UserProgress.user_id == user_id, UserProgress.is_completed.is_(True))
            .scalar() or 0
        )
        total_lessons = (
            db.query(func.count(Lesson.id)).filter(Lesson.is_active.is_(True)).scalar() or 0
        )
        progress_percentage = (
            round(completed_lessons / total_lessons * 100) if total_lessons else 0
        )

        logger.info(f"Profile loaded for user {user_id}")

        return UserProfile(
            id=user.id,
            email=user.email,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            display_name=user.display_name,
            avatar=user.avatar,
            total_xp=user.total_xp,
            current_streak=user.current_streak,
            best_streak=user.best_streak,
            last_activity_date=user.last_activity_date,
            completed_lessons=completed_lessons,
            total_lessons=total_lessons,
            progress_percentage=progress_percentage,
            rank=xp_service.calculate_rank(user.total_xp),
            is_verified=user.is_verified,
            is_active=user.is_active,
            created_at=user.created_at,
        )

    def get_stats(self, db: Session, user_id: str, now: Optional[datetime] = None) -> ProfileStats:
        """
        Detailed statistics

        - progress over lessons the user has attempted
        - XP over the last 7 and 30 days
        - seven daily buckets ending today, oldest first
        - the ten most recent submissions
        """
        now = now or utcnow()
        user = self._get_user(db, user_id)

        progress_rows = db.query(UserProgress).filter(UserProgress.user_id == user_id).all()
        completed_lessons = sum(1 for p in progress_rows if p.is_completed)
        average_score = (
            round(sum(p.best_score for p in progress_rows) / len(progress_rows))
            if progress_rows else 0
        )
        total_attempts = sum(p.attempts_count for p in progress_rows)

        month_start = now - timedelta(days=30)
        submissions = (
            db.query(Submission)
            .filter(Submission.user_id == user_id, Submission.submitted_at >= month_start)
            .all()
        )
        week_start = now - timedelta(days=7)
        xp_this_week = sum(s.xp_earned for s in submissions if s.submitted_at >= week_start)
        xp_this_month = sum(s.xp_earned for s in submissions)

        weekly_progress = self._weekly_buckets(submissions, progress_rows, now)

        recent = (
            db.query(Submission, Lesson.title)
            .join(Lesson, Submission.lesson_id == Lesson.id)
            .filter(Submission.user_id == user_id)
            .order_by(Submission.submitted_at.desc())
            .limit(RECENT_ACTIVITY_LIMIT)
            .all()
        )
        recent_activity = [
            RecentSubmission(
                attempt_id=s.attempt_id,
                lesson_id=s.lesson_id,
                lesson_title=title,
                score=s.score,
                correct_count=s.correct_count,
                total_count=s.total_count,
                xp_earned=s.xp_earned,
                submitted_at=s.submitted_at,
            )
            for s, title in recent
        ]

        logger.info(f"Profile stats computed for user {user_id}")

        return ProfileStats(
            profile=ProfileSnapshot(
                total_xp=user.total_xp,
                current_streak=user.current_streak,
                best_streak=user.best_streak,
                last_activity_date=user.last_activity_date,
            ),
            progress=ProgressSnapshot(
                completed_lessons=completed_lessons,
                total_lessons=len(progress_rows),
                average_score=average_score,
                total_attempts=total_attempts,
            ),
            xp_this_week=xp_this_week,
            xp_this_month=xp_this_month,
            weekly_progress=weekly_progress,
            recent_activity=recent_activity,
        )

    def _weekly_buckets(self, submissions, progress_rows, now: datetime):
        today = now.date()
        days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
        xp_by_day = {day: 0 for day in days}
        completed_by_day = {day: 0 for day in days}

        for submission in submissions:
            day = submission.submitted_at.date()
            if day in xp_by_day:
                xp_by_day[day] += submission.xp_earned

        for progress in progress_rows:
            if progress.completion_date is None:
                continue
            day = progress.completion_date.date()
            if day in completed_by_day:
                completed_by_day[day] += 1

        return [
            DailyProgress(date=day, xp_earned=xp_by_day[day], lessons_completed=completed_by_day[day])
            for day in days
        ]

    def _get_user(self, db: Session, user_id: str) -> User:
        user = db.get(User, user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user


# Global instance
profile_service = ProfileService()
