"""
User service
CRUD, search, statistics and password login
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from mathlearn.database import utcnow
from mathlearn.exceptions import AuthenticationError, ConflictError, NotFoundError
from mathlearn.models import User
from mathlearn.schemas.user import UserCreate, UserStats, UserUpdate, UserPublic
from mathlearn.utils.passwords import hash_password, verify_password

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "createdAt": User.created_at,
    "updatedAt": User.updated_at,
    "email": User.email,
    "username": User.username,
    "displayName": User.display_name,
}


class UserService:
    """User account management"""

    def list_users(
        self,
        db: Session,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        is_verified: Optional[bool] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc"
    ) -> Tuple[List[User], int]:
        """
        Paginated user listing

        Returns:
            Tuple of (users on the page, total matching users)
        """
        query = db.query(User)

        if search:
            # autoescape keeps % and _ in the search text literal
            term = search.lower()
            query = query.filter(or_(
                func.lower(User.email).contains(term, autoescape=True),
                func.lower(User.username).contains(term, autoescape=True),
                func.lower(User.first_name).contains(term, autoescape=True),
                func.lower(User.last_name).contains(term, autoescape=True),
                func.lower(User.display_name).contains(term, autoescape=True),
            ))
        if is_active is not None:
            query = query.filter(User.is_active.is_(is_active))
        if is_verified is not None:
            query = query.filter(User.is_verified.is_(is_verified))

        total = query.count()

        column = SORT_COLUMNS.get(sort_by, User.created_at)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        users = query.order_by(ordering, User.id).offset((page - 1) * limit).limit(limit).all()

        return users, total

    def get_user(self, db: Session, user_id: str) -> User:
        user = db.get(User, user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def create_user(self, db: Session, data: UserCreate) -> User:
        email = str(data.email).lower()

        if db.query(User).filter(func.lower(User.email) == email).first():
            raise ConflictError(f"User with email {email} already exists")
        if data.username and db.query(User).filter(User.username == data.username).first():
            raise ConflictError(f"Username {data.username} is already taken")

        display_name = data.display_name
        if not display_name and (data.first_name or data.last_name):
            display_name = " ".join(p for p in (data.first_name, data.last_name) if p)

        user = User(
            email=email,
            username=data.username,
            first_name=data.first_name,
            last_name=data.last_name,
            display_name=display_name,
            avatar=data.avatar,
            password=hash_password(data.password) if data.password else None,
        )

        try:
            db.add(user)
            db.commit()
            db.refresh(user)
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to create user {email}: {str(e)}")
            raise

        logger.info(f"User created: {user.id}")
        return user

    def update_user(self, db: Session, user_id: str, data: UserUpdate) -> User:
        user = self.get_user(db, user_id)
        changes = data.model_dump(exclude_unset=True)

        username = changes.get("username")
        if username and username != user.username:
            taken = (
                db.query(User).filter(User.username == username, User.id != user_id).first()
            )
            if taken:
                raise ConflictError(f"Username {username} is already taken")

        for field, value in changes.items():
            setattr(user, field, value)

        try:
            db.commit()
            db.refresh(user)
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to update user {user_id}: {str(e)}")
            raise

        logger.info(f"User updated: {user_id} ({', '.join(changes)})")
        return user

    def delete_user(self, db: Session, user_id: str) -> None:
        """Delete a user together with their submissions and progress"""
        user = self.get_user(db, user_id)
        try:
            db.delete(user)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to delete user {user_id}: {str(e)}")
            raise

        logger.info(f"User deleted: {user_id}")

    def get_stats(self, db: Session) -> UserStats:
        total_users = db.query(func.count(User.id)).scalar() or 0
        active_users = db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar() or 0
        verified_users = (
            db.query(func.count(User.id)).filter(User.is_verified.is_(True)).scalar() or 0
        )
        recent = db.query(User).order_by(User.created_at.desc(), User.id).limit(5).all()

        return UserStats(
            total_users=total_users,
            active_users=active_users,
            verified_users=verified_users,
            recent_users=[UserPublic.model_validate(u) for u in recent],
        )

    def authenticate(self, db: Session, email: str, password: str) -> User:
        """Check credentials and stamp last_login_at"""
        user = db.query(User).filter(func.lower(User.email) == email.lower()).first()

        if not user or not user.is_active or not verify_password(password, user.password):
            logger.warning(f"Failed login attempt for {email}")
            raise AuthenticationError()

        user.last_login_at = utcnow()
        db.commit()
        db.refresh(user)

        logger.info(f"User logged in: {user.id}")
        return user


# Global instance
user_service = UserService()
