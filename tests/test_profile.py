"""Tests for profile summary and statistics."""

from datetime import timedelta

from mathlearn.models import Lesson, Submission, UserProgress
from mathlearn.services.profile_service import profile_service


def _submission(attempt_id, submitted_at, xp, lesson_id="lesson-1", score=100):
    return Submission(
        attempt_id=attempt_id,
        user_id="1",
        lesson_id=lesson_id,
        results=[],
        correct_count=2,
        total_count=2,
        score=score,
        is_correct=score == 100,
        xp_earned=xp,
        submitted_at=submitted_at,
    )


class TestProfileEndpoint:
    def test_profile_summary(self, client, demo_user, lessons, db_session):
        demo_user.total_xp = 230
        demo_user.current_streak = 3
        demo_user.best_streak = 5
        db_session.add(UserProgress(user_id="1", lesson_id="lesson-1", is_completed=True))
        db_session.add(Lesson(id="lesson-x", title="Hidden", order=3, is_active=False))
        db_session.commit()

        response = client.get("/api/profile")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == "1"
        assert data["displayName"] == "Demo Learner"
        assert data["totalXp"] == 230
        assert data["currentStreak"] == 3
        assert data["bestStreak"] == 5
        assert data["completedLessons"] == 1
        assert data["totalLessons"] == 2
        assert data["progressPercentage"] == 50
        assert data["rank"] == "Intermediate"
        assert "password" not in data

    def test_profile_without_lessons(self, client, demo_user):
        data = client.get("/api/profile").json()["data"]

        assert data["totalLessons"] == 0
        assert data["progressPercentage"] == 0
        assert data["rank"] == "Beginner"

    def test_unknown_user_is_404(self, client):
        response = client.get("/api/profile", params={"userId": "ghost"})

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_stats_endpoint_shape(self, client, demo_user, lessons):
        response = client.get("/api/profile/stats")

        assert response.status_code == 200
        data = response.json()["data"]
        assert set(data) == {
            "profile", "progress", "xpThisWeek", "xpThisMonth", "weeklyProgress", "recentActivity"
        }
        assert len(data["weeklyProgress"]) == 7


class TestProfileStats:
    def test_windows_buckets_and_progress(self, db_session, demo_user, lessons, now):
        db_session.add_all([
            _submission("today", now - timedelta(hours=1), 25),
            _submission("two-days", now - timedelta(days=2), 10, lesson_id="lesson-2", score=0),
            _submission("ten-days", now - timedelta(days=10), 40),
            _submission("old", now - timedelta(days=45), 100),
            UserProgress(
                user_id="1", lesson_id="lesson-1", is_completed=True,
                best_score=100, attempts_count=3, completion_date=now - timedelta(hours=1),
            ),
            UserProgress(
                user_id="1", lesson_id="lesson-2", is_completed=False,
                best_score=51, attempts_count=1,
            ),
        ])
        db_session.commit()

        stats = profile_service.get_stats(db_session, "1", now=now)

        assert stats.xp_this_week == 35
        assert stats.xp_this_month == 75
        assert stats.progress.completed_lessons == 1
        assert stats.progress.total_lessons == 2
        assert stats.progress.average_score == 76
        assert stats.progress.total_attempts == 4

        days = [bucket.date for bucket in stats.weekly_progress]
        assert days[0] == (now - timedelta(days=6)).date()
        assert days[-1] == now.date()
        assert stats.weekly_progress[-1].xp_earned == 25
        assert stats.weekly_progress[-1].lessons_completed == 1
        assert stats.weekly_progress[-3].xp_earned == 10

    def test_recent_activity_is_newest_first_and_limited(self, db_session, demo_user, lessons, now):
        for i in range(12):
            db_session.add(_submission(f"a{i}", now - timedelta(minutes=i), 1))
        db_session.commit()

        stats = profile_service.get_stats(db_session, "1", now=now)

        assert len(stats.recent_activity) == 10
        assert stats.recent_activity[0].attempt_id == "a0"
        assert stats.recent_activity[0].lesson_title == "Basic Arithmetic"
