"""Tests for lesson listing, detail and statistics endpoints."""

from mathlearn.models import Lesson, UserProgress


class TestListLessons:
    def test_lists_active_lessons_in_order(self, client, demo_user, lessons, db_session):
        db_session.add(Lesson(id="lesson-x", title="Hidden", order=3, is_active=False))
        db_session.commit()

        response = client.get("/api/lessons")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert "timestamp" in body
        assert [lesson["id"] for lesson in body["data"]] == ["lesson-1", "lesson-2"]
        assert body["data"][0]["problemCount"] == 2
        assert body["data"][0]["progress"] is None

    def test_includes_user_progress(self, client, demo_user, lessons, db_session):
        db_session.add(UserProgress(
            user_id="1", lesson_id="lesson-1", is_completed=True, score=50, best_score=100, attempts_count=2
        ))
        db_session.commit()

        response = client.get("/api/lessons", params={"userId": "1"})

        progress = response.json()["data"][0]["progress"]
        assert progress == {"isCompleted": True, "score": 50, "bestScore": 100, "attemptsCount": 2}

    def test_empty_catalogue(self, client):
        response = client.get("/api/lessons")

        assert response.status_code == 200
        assert response.json()["data"] == []


class TestLessonDetail:
    def test_returns_problems_without_answers(self, client, lessons):
        response = client.get("/api/lessons/lesson-1")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Basic Arithmetic"
        assert [p["id"] for p in data["problems"]] == ["p1", "p2"]
        assert [o["optionText"] for o in data["problems"][0]["options"]] == ["11", "12", "13"]

        for problem in data["problems"]:
            assert "correctAnswer" not in problem
            assert "explanation" not in problem
            for option in problem["options"]:
                assert "isCorrect" not in option

    def test_unknown_lesson_is_404(self, client, lessons):
        response = client.get("/api/lessons/nope")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert "not found" in body["error"]

    def test_inactive_lesson_is_404(self, client, db_session):
        db_session.add(Lesson(id="old", title="Retired", order=9, is_active=False))
        db_session.commit()

        assert client.get("/api/lessons/old").status_code == 404


class TestLessonStats:
    def test_stats(self, client, demo_user, lessons, db_session):
        db_session.add(Lesson(id="lesson-x", title="Hidden", order=3, is_active=False))
        db_session.add_all([
            UserProgress(user_id="1", lesson_id="lesson-1", is_completed=True),
            UserProgress(user_id="1", lesson_id="lesson-2", is_completed=False),
        ])
        db_session.commit()

        response = client.get("/api/lessons/stats")

        assert response.status_code == 200
        assert response.json()["data"] == {
            "totalLessons": 3,
            "activeLessons": 2,
            "averageCompletion": 50,
        }

    def test_stats_without_progress(self, client, lessons):
        data = client.get("/api/lessons/stats").json()["data"]

        assert data["averageCompletion"] == 0
