"""
Recommendation service
Adaptive learning path from a user's submission history

Algorithm:
1. Learning pattern: accuracy overall and per problem difficulty, active
   days in the last week, problems answered per minute
2. Every active lesson not already mastered (completed with score >= 90)
   gets a 0-100 confidence score from performance fit, difficulty
   preference, progress state, sequence position and consistency
3. Top N by confidence, plus a personalised message and up to three goals
"""
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from mathlearn.database import utcnow
from mathlearn.exceptions import NotFoundError
from mathlearn.models import Lesson, Problem, Submission, User, UserProgress
from mathlearn.schemas.recommendation import (
    LearningPath,
    LearningPattern,
    LessonRecommendation,
)

logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")

# Seconds assumed for a submission that did not report its duration
DEFAULT_SUBMISSION_SECONDS = 30

MASTERY_SCORE = 90
BASE_COMPLETION_MINUTES = 15


class RecommendationService:
    """Scores lessons against a user's learning pattern"""

    def generate(
        self,
        db: Session,
        user_id: str,
        limit: int = 5,
        now: Optional[datetime] = None
    ) -> LearningPath:
        now = now or utcnow()

        user = db.get(User, user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")

        analytics = self._analyze(db, user, now)
        pattern = self._build_pattern(analytics)

        lessons = (
            db.query(Lesson)
            .options(selectinload(Lesson.problems))
            .filter(Lesson.is_active.is_(True))
            .order_by(Lesson.order)
            .all()
        )
        progress_by_lesson = {
            p.lesson_id: p
            for p in db.query(UserProgress).filter(UserProgress.user_id == user_id).all()
        }

        recommendations = self._rank_lessons(lessons, progress_by_lesson, pattern, analytics)[:limit]
        next_lesson = recommendations[0] if recommendations else None

        logger.info(
            f"Generated {len(recommendations)} recommendations for user {user_id} "
            f"(average score {pattern.average_score:.1f})"
        )

        return LearningPath(
            user_id=user_id,
            generated_at=now,
            learning_pattern=pattern,
            recommendations=recommendations,
            next_suggested_lesson=next_lesson,
            personalized_message=self._personalized_message(pattern, next_lesson),
            learning_goals=self._learning_goals(pattern, analytics),
        )

    def _analyze(self, db: Session, user: User, now: datetime) -> Dict:
        submissions = (
            db.query(Submission)
            .filter(Submission.user_id == user.id)
            .order_by(Submission.submitted_at)
            .all()
        )
        completed = (
            db.query(UserProgress)
            .filter(UserProgress.user_id == user.id, UserProgress.is_completed.is_(True))
            .count()
        )

        by_difficulty = {d: {"attempted": 0, "correct": 0} for d in DIFFICULTIES}
        analytics = {
            "lessons_completed": completed,
            "problems_attempted": 0,
            "correct_answers": 0,
            "accuracy": 0.0,
            "minutes_spent": 0.0,
            "active_days": 0,
            "current_streak": user.current_streak,
            "best_streak": user.best_streak,
            "by_difficulty": by_difficulty,
        }
        if not submissions:
            return analytics

        problem_ids = {r["problem_id"] for s in submissions for r in s.results}
        difficulty_of = dict(
            db.query(Problem.id, Problem.difficulty).filter(Problem.id.in_(list(problem_ids))).all()
        )

        for submission in submissions:
            for result in submission.results:
                difficulty = difficulty_of.get(result["problem_id"], "medium")
                bucket = by_difficulty.setdefault(difficulty, {"attempted": 0, "correct": 0})
                bucket["attempted"] += 1
                analytics["problems_attempted"] += 1
                if result["is_correct"]:
                    bucket["correct"] += 1
                    analytics["correct_answers"] += 1

        if analytics["problems_attempted"]:
            analytics["accuracy"] = analytics["correct_answers"] / analytics["problems_attempted"]

        analytics["minutes_spent"] = sum(
            s.time_spent if s.time_spent is not None else DEFAULT_SUBMISSION_SECONDS
            for s in submissions
        ) / 60

        week_start = now - timedelta(days=7)
        analytics["active_days"] = len({
            s.submitted_at.date() for s in submissions if s.submitted_at >= week_start
        })

        return analytics

    def _build_pattern(self, analytics: Dict) -> LearningPattern:
        accuracy_by_difficulty = {}
        for difficulty in DIFFICULTIES:
            bucket = analytics["by_difficulty"][difficulty]
            accuracy_by_difficulty[difficulty] = (
                bucket["correct"] / bucket["attempted"] if bucket["attempted"] else 0.0
            )

        struggling = [
            d for d in DIFFICULTIES
            if analytics["by_difficulty"][d]["attempted"] and accuracy_by_difficulty[d] < 0.6
        ]
        strong = [d for d in DIFFICULTIES if accuracy_by_difficulty[d] > 0.8]

        preferred = "easy"
        best = max(accuracy_by_difficulty.values())
        if best == accuracy_by_difficulty["hard"] and accuracy_by_difficulty["hard"] > 0.7:
            preferred = "hard"
        elif best == accuracy_by_difficulty["medium"] and accuracy_by_difficulty["medium"] > 0.7:
            preferred = "medium"

        minutes = analytics["minutes_spent"]
        learning_speed = analytics["problems_attempted"] / minutes if minutes > 0 else 0.0

        weekly_consistency = min(100, analytics["active_days"] * 20)
        consistency = min(
            100.0,
            weekly_consistency * 0.4 + analytics["active_days"] * 10 + analytics["accuracy"] * 50,
        )

        return LearningPattern(
            average_score=round(analytics["accuracy"] * 100, 2),
            learning_speed=round(learning_speed, 2),
            struggling_areas=struggling,
            strong_areas=strong,
            preferred_difficulty=preferred,
            consistency_score=round(consistency, 2),
        )

    def _rank_lessons(
        self,
        lessons: List[Lesson],
        progress_by_lesson: Dict[str, UserProgress],
        pattern: LearningPattern,
        analytics: Dict
    ) -> List[LessonRecommendation]:
        by_order = {lesson.order: lesson for lesson in lessons}
        first_order = lessons[0].order if lessons else None
        next_sequential = analytics["lessons_completed"] + 1

        recommendations = []
        for lesson in lessons:
            progress = progress_by_lesson.get(lesson.id)
            if progress and progress.is_completed and progress.score >= MASTERY_SCORE:
                continue

            difficulty = self.lesson_difficulty(lesson)
            previous = by_order.get(lesson.order - 1)
            if lesson.order == first_order:
                is_unlocked = True
            else:
                previous_progress = progress_by_lesson.get(previous.id) if previous else None
                is_unlocked = bool(previous_progress and previous_progress.is_completed)

            recommendations.append(LessonRecommendation(
                lesson_id=lesson.id,
                title=lesson.title,
                description=lesson.description or "",
                recommendation_reason=self._reason(difficulty, pattern, progress),
                confidence_score=round(
                    self._confidence(lesson, difficulty, pattern, progress, next_sequential)
                ),
                estimated_completion_time=self._estimated_minutes(difficulty, pattern),
                difficulty=difficulty,
                xp_reward=lesson.xp_reward or 10,
                order=lesson.order,
                is_unlocked=is_unlocked,
                prerequisites=[previous.title] if previous and lesson.order != first_order else [],
            ))

        # stable sort keeps curriculum order among equal scores
        recommendations.sort(key=lambda r: r.confidence_score, reverse=True)
        return recommendations

    def lesson_difficulty(self, lesson: Lesson) -> str:
        """Most common difficulty among the lesson's problems"""
        counts = Counter(p.difficulty for p in lesson.problems)
        if not counts:
            return "easy"
        top = max(counts.values())
        for difficulty in DIFFICULTIES:
            if counts.get(difficulty) == top:
                return difficulty
        return counts.most_common(1)[0][0]

    def _confidence(self, lesson, difficulty, pattern, progress, next_sequential) -> float:
        score = 50.0

        if pattern.average_score >= 85:
            if difficulty == "hard":
                score += 30
            elif difficulty == "medium":
                score += 15
        elif pattern.average_score < 60:
            if difficulty == "easy":
                score += 30
            elif difficulty == "medium":
                score += 10
            else:
                score -= 20

        if difficulty == pattern.preferred_difficulty:
            score += 25

        if progress:
            if progress.is_completed and progress.score < 80:
                score += 20
            elif progress.attempts_count > 0 and not progress.is_completed:
                score += 35
        else:
            score += 15

        if lesson.order == next_sequential:
            score += 20

        if pattern.consistency_score > 70:
            score += 10

        return max(0.0, min(100.0, score))

    def _reason(self, difficulty, pattern, progress) -> str:
        if progress and progress.is_completed and progress.score < 80:
            return f"Revisit this lesson to improve your score from {round(progress.score)}%"
        if progress and progress.attempts_count > 0 and not progress.is_completed:
            return "Continue where you left off to complete this lesson"
        if pattern.average_score >= 85 and difficulty == "hard":
            return "Challenge yourself with this advanced topic"
        if pattern.average_score < 60 and difficulty == "easy":
            return "Build confidence with this fundamental lesson"
        if difficulty in pattern.struggling_areas:
            return f"Strengthen your {difficulty} level skills"
        return "Next in your learning sequence"

    def _estimated_minutes(self, difficulty, pattern) -> int:
        multiplier = {"hard": 1.5, "medium": 1.2}.get(difficulty, 1.0)
        if pattern.learning_speed > 0:
            speed_adjustment = max(0.5, 2 / pattern.learning_speed)
        else:
            speed_adjustment = 1.5
        return round(BASE_COMPLETION_MINUTES * multiplier * speed_adjustment)

    def _personalized_message(self, pattern, next_lesson) -> str:
        messages = []

        if pattern.average_score >= 90:
            messages.append("Excellent work! You're mastering the concepts brilliantly.")
        elif pattern.average_score >= 75:
            messages.append("Great progress! You're building strong foundations.")
        elif pattern.average_score >= 60:
            messages.append("Good effort! Keep practicing to strengthen your skills.")
        else:
            messages.append("Don't worry! Every expert was once a beginner. Let's build up gradually.")

        if pattern.learning_speed > 2:
            messages.append("You're learning at an impressive pace!")
        elif pattern.learning_speed < 0.5:
            messages.append("Take your time to understand each concept thoroughly.")

        if pattern.consistency_score >= 80:
            messages.append("Your consistent practice is paying off!")
        elif pattern.consistency_score < 50:
            messages.append("Try to practice a little bit each day for better results.")

        if next_lesson:
            messages.append(
                f"Based on your progress, we recommend focusing on '{next_lesson.title}' next."
            )
            messages.append(next_lesson.recommendation_reason)

        return " ".join(messages)

    def _learning_goals(self, pattern, analytics) -> List[str]:
        goals = []

        if pattern.average_score < 70:
            goals.append("Improve accuracy to 70% or higher")
        elif pattern.average_score < 85:
            goals.append("Achieve 85% accuracy consistently")
        else:
            goals.append("Maintain excellent performance while tackling harder challenges")

        if pattern.learning_speed < 1:
            goals.append("Build confidence and speed in problem-solving")
        elif pattern.learning_speed > 3:
            goals.append("Balance speed with accuracy for deeper understanding")

        if pattern.consistency_score < 60:
            goals.append("Practice regularly to build a strong learning habit")
        elif analytics["current_streak"] < analytics["best_streak"]:
            goals.append(
                f"Work towards beating your best streak of {analytics['best_streak']} days"
            )

        if pattern.struggling_areas:
            goals.append(
                f"Focus on strengthening skills in: {', '.join(pattern.struggling_areas)}"
            )

        return goals[:3]


# Global instance
recommendation_service = RecommendationService()
