"""
Profile API endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
import logging
from mathlearn.config import settings
from mathlearn.database import get_db
from mathlearn.exceptions import MathLearnError
from mathlearn.schemas.common import ApiResponse
from mathlearn.schemas.profile import ProfileStats, UserProfile
from mathlearn.services.profile_service import profile_service


router = APIRouter(prefix="/api/profile", tags=["profile"])
logger = logging.getLogger(__name__)


@router.get("", response_model=ApiResponse[UserProfile])
async def get_profile(
    user_id: Optional[str] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    """Profile with XP, streak, lesson progress and rank"""
    user_id = user_id or settings.DEMO_USER_ID
    try:
        profile = profile_service.get_profile(db, user_id)
        return ApiResponse(data=profile, message="Profile retrieved successfully")
    except MathLearnError:
        raise
    except Exception as e:
        logger.error(f"Failed to load profile for user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500, detail="An unexpected error occurred. Please try again later."
        )


@router.get("/stats", response_model=ApiResponse[ProfileStats])
async def get_profile_stats(
    user_id: Optional[str] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    """
    Detailed profile statistics

    Weekly and monthly XP, seven daily buckets and the latest submissions.
    """
    user_id = user_id or settings.DEMO_USER_ID
    try:
        stats = profile_service.get_stats(db, user_id)
        return ApiResponse(data=stats, message="Profile statistics retrieved successfully")
    except MathLearnError:
        raise
    except Exception as e:
        logger.error(f"Failed to compute profile stats for user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500, detail="An unexpected error occurred. Please try again later."
        )
