"""
User management API endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
from mathlearn.database import get_db
from mathlearn.exceptions import MathLearnError
from mathlearn.schemas.common import ApiResponse, PaginatedApiResponse, PaginationMeta
from mathlearn.schemas.user import LoginRequest, UserCreate, UserPublic, UserStats, UserUpdate
from mathlearn.services.user_service import user_service


router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)

INTERNAL_ERROR = "An unexpected error occurred. Please try again later."


@router.get("", response_model=PaginatedApiResponse[List[UserPublic]])
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    is_verified: Optional[bool] = Query(None, alias="isVerified"),
    sort_by: str = Query(
        "createdAt", alias="sortBy", pattern="^(createdAt|updatedAt|email|username|displayName)$"
    ),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    """
    List users with pagination, search and filters

    Search is case-insensitive over email, username and names.
    """
    try:
        users, total = user_service.list_users(
            db,
            page=page,
            limit=limit,
            search=search,
            is_active=is_active,
            is_verified=is_verified,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return PaginatedApiResponse[List[UserPublic]](
            data=[UserPublic.model_validate(u) for u in users],
            message="Users retrieved successfully",
            pagination=PaginationMeta.build(page, limit, total),
        )
    except MathLearnError:
        raise
    except Exception as e:
        logger.error(f"Failed to list users: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)


@router.get("/stats", response_model=ApiResponse[UserStats])
async def get_user_stats(db: Session = Depends(get_db)):
    """User totals and the five newest accounts"""
    try:
        stats = user_service.get_stats(db)
        return ApiResponse(data=stats, message="User statistics retrieved successfully")
    except MathLearnError:
        raise
    except Exception as e:
        logger.error(f"Failed to compute user stats: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)


@router.post("/login", response_model=ApiResponse[UserPublic])
async def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Verify email and password; 401 on bad credentials or inactive account"""
    try:
        user = user_service.authenticate(db, str(credentials.email), credentials.password)
        return ApiResponse(data=UserPublic.model_validate(user), message="Login successful")
    except MathLearnError:
        raise
    except Exception as e:
        logger.error(f"Login failed unexpectedly: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)


@router.post("", response_model=ApiResponse[UserPublic], status_code=201)
async def create_user(data: UserCreate, db: Session = Depends(get_db)):
    """
    Create a user

    - Email and username must be unique (409 otherwise)
    - Password is stored as a bcrypt hash
    - Display name defaults to "first last"
    """
    try:
        user = user_service.create_user(db, data)
        return ApiResponse(data=UserPublic.model_validate(user), message="User created successfully")
    except MathLearnError:
        raise
    except Exception as e:
        logger.error(f"Failed to create user: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)


@router.get("/{user_id}", response_model=ApiResponse[UserPublic])
async def get_user(user_id: str, db: Session = Depends(get_db)):
    try:
        user = user_service.get_user(db, user_id)
        return ApiResponse(data=UserPublic.model_validate(user), message="User retrieved successfully")
    except MathLearnError:
        raise
    except Exception as e:
        logger.error(f"Failed to load user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)


@router.put("/{user_id}", response_model=ApiResponse[UserPublic])
async def update_user(user_id: str, data: UserUpdate, db: Session = Depends(get_db)):
    try:
        user = user_service.update_user(db, user_id, data)
        return ApiResponse(data=UserPublic.model_validate(user), message="User updated successfully")
    except MathLearnError:
        raise
    except Exception as e:
        logger.error(f"Failed to update user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)


@router.delete("/{user_id}", response_model=ApiResponse[None])
async def delete_user(user_id: str, db: Session = Depends(get_db)):
    """Delete a user along with their submissions and progress"""
    try:
        user_service.delete_user(db, user_id)
        return ApiResponse[None](message="User deleted successfully")
    except MathLearnError:
        raise
    except Exception as e:
        logger.error(f"Failed to delete user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
