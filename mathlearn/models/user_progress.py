"""
UserProgress model - per-user, per-lesson completion and scores
"""
from sqlalchemy import Column, String, Integer, Boolean, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from mathlearn.database import Base, utcnow
from mathlearn.models._ids import new_id


class UserProgress(Base):
    """
    User progress table - one row per (user, lesson) pair
    """
    __tablename__ = "user_progress"
    __table_args__ = (UniqueConstraint("user_id", "lesson_id"),)

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    lesson_id = Column(String, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    completion_date = Column(DateTime)
    score = Column(Float, nullable=False, default=0)
    best_score = Column(Float, nullable=False, default=0)
    attempts_count = Column(Integer, nullable=False, default=0)
    total_xp_earned = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime, nullable=False, default=utcnow)
    last_attempt_at = Column(DateTime, nullable=False, default=utcnow)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="progress")
    lesson = relationship("Lesson", back_populates="user_progress")

    def __repr__(self):
        return f"<UserProgress(user_id={self.user_id}, lesson_id={self.lesson_id}, completed={self.is_completed})>"
