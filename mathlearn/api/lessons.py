"""
Lesson API endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
from mathlearn.config import settings
from mathlearn.database import get_db
from mathlearn.exceptions import MathLearnError
from mathlearn.schemas.common import ApiResponse
from mathlearn.schemas.lesson import (
    LessonDetail,
    LessonStats,
    LessonSubmission,
    LessonSummary,
    SubmissionResult,
)
from mathlearn.services.lesson_service import lesson_service


router = APIRouter(prefix="/api/lessons", tags=["lessons"])
logger = logging.getLogger(__name__)

INTERNAL_ERROR = "An unexpected error occurred. Please try again later."


@router.get("", response_model=ApiResponse[List[LessonSummary]])
async def list_lessons(
    user_id: Optional[str] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    """
    List active lessons in curriculum order

    Each lesson carries the user's progress, or null when not attempted.
    """
    user_id = user_id or settings.DEMO_USER_ID
    try:
        lessons = lesson_service.list_lessons(db, user_id)
        return ApiResponse(data=lessons, message="Lessons retrieved successfully")
    except MathLearnError:
        raise
    except Exception as e:
        logger.error(f"Failed to list lessons for user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)


@router.get("/stats", response_model=ApiResponse[LessonStats])
async def get_lesson_stats(db: Session = Depends(get_db)):
    """Lesson counts and average completion across all progress records"""
    try:
        stats = lesson_service.get_stats(db)
        return ApiResponse(data=stats, message="Lesson statistics retrieved successfully")
    except MathLearnError:
        raise
    except Exception as e:
        logger.error(f"Failed to compute lesson stats: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)


@router.get("/{lesson_id}", response_model=ApiResponse[LessonDetail])
async def get_lesson(lesson_id: str, db: Session = Depends(get_db)):
    """
    Get a lesson with its problems

    Correct answers, explanations and option correctness are never included.
    """
    try:
        lesson = lesson_service.get_lesson_detail(db, lesson_id)
        return ApiResponse(data=lesson, message="Lesson retrieved successfully")
    except MathLearnError:
        raise
    except Exception as e:
        logger.error(f"Failed to load lesson {lesson_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)


@router.post("/{lesson_id}/submit", response_model=ApiResponse[SubmissionResult])
async def submit_lesson(
    lesson_id: str,
    submission: LessonSubmission,
    user_id: Optional[str] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    """
    Submit answers for a lesson

    - Every problem in the lesson must be answered exactly once
    - Correct answers earn the problem's XP reward
    - Updates streak and lesson progress in one transaction
    - Re-sending the same attemptId returns the stored result
    """
    user_id = user_id or settings.DEMO_USER_ID
    try:
        result = lesson_service.submit_lesson(db, lesson_id, user_id, submission)
        return ApiResponse(data=result, message="Lesson submitted successfully")
    except MathLearnError:
        raise
    except Exception as e:
        logger.error(
            f"Failed to submit lesson {lesson_id} for user {user_id} "
            f"(attempt {submission.attempt_id}): {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
