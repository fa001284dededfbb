"""
Lesson service
Listing, detail (cached), statistics and graded submission of lessons
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from mathlearn.database import utcnow
from mathlearn.exceptions import ConflictError, NotFoundError, ValidationError
from mathlearn.models import Lesson, Problem, Submission, User, UserProgress
from mathlearn.schemas.lesson import (
    LessonDetail,
    LessonOutcome,
    LessonProgress,
    LessonStats,
    LessonSubmission,
    LessonSummary,
    ProblemResult,
    StreakInfo,
    SubmissionResult,
)
from mathlearn.services.xp_service import xp_service
from mathlearn.utils.cache import cache_service

logger = logging.getLogger(__name__)


class LessonService:
    """Lesson queries and the submission workflow"""

    def list_lessons(self, db: Session, user_id: str) -> List[LessonSummary]:
        """Active lessons in order, each with the user's progress (or None)"""
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

        summaries = []
        for lesson in lessons:
            progress = progress_by_lesson.get(lesson.id)
            summaries.append(LessonSummary(
                id=lesson.id,
                title=lesson.title,
                description=lesson.description,
                order=lesson.order,
                xp_reward=lesson.xp_reward,
                is_active=lesson.is_active,
                problem_count=len(lesson.problems),
                progress=LessonProgress.model_validate(progress) if progress else None,
            ))

        logger.info(f"Listed {len(summaries)} lessons for user {user_id}")
        return summaries

    def get_stats(self, db: Session) -> LessonStats:
        total_lessons = db.query(func.count(Lesson.id)).scalar() or 0
        active_lessons = (
            db.query(func.count(Lesson.id)).filter(Lesson.is_active.is_(True)).scalar() or 0
        )
        total_progress = db.query(func.count(UserProgress.id)).scalar() or 0
        completed_progress = (
            db.query(func.count(UserProgress.id))
            .filter(UserProgress.is_completed.is_(True))
            .scalar() or 0
        )

        average_completion = (
            round(completed_progress / total_progress * 100, 2) if total_progress else 0
        )

        return LessonStats(
            total_lessons=total_lessons,
            active_lessons=active_lessons,
            average_completion=average_completion,
        )

    def get_lesson_detail(self, db: Session, lesson_id: str) -> LessonDetail:
        """
        Lesson with ordered problems and options, without answers

        Served from cache when available.
        """
        cache_key = cache_service.lesson_key(lesson_id)
        cached = cache_service.get(cache_key)
        if cached:
            logger.info(f"Returning cached lesson {lesson_id}")
            return LessonDetail.model_validate(cached)

        lesson = self._get_active_lesson(db, lesson_id)
        detail = LessonDetail.model_validate(lesson)

        cache_service.set(cache_key, detail.model_dump(mode="json"))
        return detail

    def submit_lesson(
        self,
        db: Session,
        lesson_id: str,
        user_id: str,
        submission: LessonSubmission,
        now: Optional[datetime] = None
    ) -> SubmissionResult:
        """
        Grade a lesson attempt and apply XP, streak and progress updates

        The attempt id makes this idempotent: replaying a stored attempt
        returns its stored result without touching any state.
        """
        now = now or utcnow()

        lesson = self._get_active_lesson(db, lesson_id)
        user = db.get(User, user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")

        existing = (
            db.query(Submission).filter(Submission.attempt_id == submission.attempt_id).first()
        )
        if existing:
            return self._replay(db, existing, user, lesson_id)

        problems_by_id = self._validate_answers(lesson, submission)

        results = []
        correct_count = 0
        xp_earned = 0
        for answer in submission.answers:
            problem = problems_by_id[answer.problem_id]
            is_correct = xp_service.is_answer_correct(problem, answer.answer)
            problem_xp = problem.xp_reward if is_correct else 0

            correct_count += int(is_correct)
            xp_earned += problem_xp
            results.append({
                "problem_id": problem.id,
                "user_answer": answer.answer,
                "is_correct": is_correct,
                "correct_answer": xp_service.correct_answer_text(problem),
                "explanation": problem.explanation,
                "xp_earned": problem_xp,
            })

        total_count = len(results)
        score = xp_service.calculate_score(correct_count, total_count)
        all_correct = correct_count == total_count

        try:
            db.add(Submission(
                attempt_id=submission.attempt_id,
                user_id=user.id,
                lesson_id=lesson.id,
                results=results,
                correct_count=correct_count,
                total_count=total_count,
                score=score,
                is_correct=all_correct,
                xp_earned=xp_earned,
                time_spent=submission.time_spent,
                submitted_at=now,
            ))

            new_streak, streak_updated = xp_service.calculate_streak(
                user.current_streak, user.last_activity_date, now
            )
            user.total_xp += xp_earned
            user.current_streak = new_streak
            user.best_streak = max(user.best_streak, new_streak)
            user.last_activity_date = now

            progress = self._record_progress(
                db, user.id, lesson.id, score, xp_earned, all_correct, now
            )

            db.commit()
        except IntegrityError:
            # Another request stored the same attempt id first
            db.rollback()
            existing = (
                db.query(Submission)
                .filter(Submission.attempt_id == submission.attempt_id)
                .first()
            )
            if existing:
                return self._replay(db, existing, db.get(User, user_id), lesson_id)
            raise
        except Exception as e:
            db.rollback()
            logger.error(
                f"Submission failed: user={user_id} lesson={lesson_id} "
                f"attempt={submission.attempt_id}: {str(e)}"
            )
            raise

        logger.info(
            f"Submission stored: user={user.id} lesson={lesson.id} attempt={submission.attempt_id} "
            f"score={score} xp={xp_earned} streak={user.current_streak}"
        )

        return SubmissionResult(
            xp_earned=xp_earned,
            total_xp=user.total_xp,
            streak=StreakInfo(
                current=user.current_streak,
                best=user.best_streak,
                updated=streak_updated,
            ),
            lesson=LessonOutcome(
                completed=progress.is_completed,
                score=progress.score,
                best_score=progress.best_score,
            ),
            results=[ProblemResult(**r) for r in results],
        )

    def _get_active_lesson(self, db: Session, lesson_id: str) -> Lesson:
        lesson = (
            db.query(Lesson)
            .options(selectinload(Lesson.problems).selectinload(Problem.options))
            .filter(Lesson.id == lesson_id, Lesson.is_active.is_(True))
            .first()
        )
        if not lesson:
            raise NotFoundError(f"Lesson {lesson_id} not found")
        return lesson

    def _validate_answers(self, lesson: Lesson, submission: LessonSubmission) -> Dict[str, Problem]:
        problems_by_id = {p.id: p for p in lesson.problems}

        seen = set()
        for answer in submission.answers:
            if answer.problem_id not in problems_by_id:
                raise NotFoundError(
                    f"Problem {answer.problem_id} not found in lesson {lesson.id}"
                )
            if answer.problem_id in seen:
                raise ValidationError(f"Problem {answer.problem_id} answered more than once")
            seen.add(answer.problem_id)

        missing = [p.id for p in lesson.problems if p.id not in seen]
        if missing:
            raise ValidationError(
                f"All problems must be answered; missing: {', '.join(missing)}"
            )

        return problems_by_id

    def _record_progress(
        self,
        db: Session,
        user_id: str,
        lesson_id: str,
        score: int,
        xp_earned: int,
        all_correct: bool,
        now: datetime
    ) -> UserProgress:
        progress = (
            db.query(UserProgress)
            .filter(UserProgress.user_id == user_id, UserProgress.lesson_id == lesson_id)
            .first()
        )
        if not progress:
            progress = UserProgress(
                user_id=user_id,
                lesson_id=lesson_id,
                score=0,
                best_score=0,
                attempts_count=0,
                total_xp_earned=0,
                is_completed=False,
                started_at=now,
            )
            db.add(progress)

        progress.attempts_count += 1
        progress.score = score
        progress.best_score = max(progress.best_score, score)
        progress.total_xp_earned += xp_earned
        progress.last_attempt_at = now

        if all_correct and not progress.is_completed:
            progress.is_completed = True
            progress.completion_date = now

        return progress

    def _replay(
        self,
        db: Session,
        existing: Submission,
        user: User,
        lesson_id: str
    ) -> SubmissionResult:
        if existing.user_id != user.id or existing.lesson_id != lesson_id:
            raise ConflictError(
                f"Attempt {existing.attempt_id} was already used for a different submission"
            )

        logger.info(f"Replaying stored attempt {existing.attempt_id} for user {user.id}")

        progress = (
            db.query(UserProgress)
            .filter(UserProgress.user_id == user.id, UserProgress.lesson_id == lesson_id)
            .first()
        )

        return SubmissionResult(
            xp_earned=existing.xp_earned,
            total_xp=user.total_xp,
            streak=StreakInfo(
                current=user.current_streak,
                best=user.best_streak,
                updated=False,
            ),
            lesson=LessonOutcome(
                completed=progress.is_completed if progress else existing.is_correct,
                score=progress.score if progress else existing.score,
                best_score=progress.best_score if progress else existing.score,
            ),
            results=[ProblemResult(**r) for r in existing.results],
        )


# Global instance
lesson_service = LessonService()
