"""
User model - learner accounts with XP and streak counters
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime
from sqlalchemy.orm import relationship
from mathlearn.database import Base, utcnow
from mathlearn.models._ids import new_id


class User(Base):
    """
    Users table - identity fields plus gamification state
    """
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(30), unique=True, nullable=True)
    first_name = Column(String(50))
    last_name = Column(String(50))
    display_name = Column(String(100))
    avatar = Column(String)
    password = Column(String)  # bcrypt hash
    is_verified = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    # Gamification
    total_xp = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    best_streak = Column(Integer, nullable=False, default=0)
    last_activity_date = Column(DateTime)

    last_login_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    submissions = relationship(
        "Submission", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    progress = relationship(
        "UserProgress", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, xp={self.total_xp})>"
