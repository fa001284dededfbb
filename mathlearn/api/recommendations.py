"""
Recommendation API endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
import logging
from mathlearn.config import settings
from mathlearn.database import get_db
from mathlearn.exceptions import MathLearnError
from mathlearn.schemas.common import ApiResponse
from mathlearn.schemas.recommendation import LearningPath
from mathlearn.services.recommendation_service import recommendation_service


router = APIRouter(prefix="/api/recommendations", tags=["recommendations"])
logger = logging.getLogger(__name__)


@router.get("", response_model=ApiResponse[LearningPath])
async def get_recommendations(
    user_id: Optional[str] = Query(None, alias="userId"),
    limit: int = Query(5, ge=1, le=10),
    db: Session = Depends(get_db),
):
    """
    Adaptive learning path for a user

    Analyses submission history and ranks the lessons worth doing next.
    """
    user_id = user_id or settings.DEMO_USER_ID
    try:
        path = recommendation_service.generate(db, user_id, limit=limit)
        return ApiResponse(data=path, message="Recommendations generated successfully")
    except MathLearnError:
        raise
    except Exception as e:
        logger.error(f"Failed to generate recommendations for user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500, detail="An unexpected error occurred. Please try again later."
        )
