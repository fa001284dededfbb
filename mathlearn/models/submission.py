"""
Submission model - one row per graded lesson attempt
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from mathlearn.database import Base, utcnow
from mathlearn.models._ids import new_id


class Submission(Base):
    """
    Submissions table - stores graded answers for a lesson attempt

    attempt_id is client-generated and unique, so a retried request
    finds the stored row instead of awarding XP twice.
    """
    __tablename__ = "submissions"
    __table_args__ = (Index("ix_submissions_user_lesson", "user_id", "lesson_id"),)

    id = Column(String, primary_key=True, default=new_id)
    attempt_id = Column(String, unique=True, nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    lesson_id = Column(String, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
    results = Column(JSON, nullable=False)  # per-problem results
    correct_count = Column(Integer, nullable=False, default=0)
    total_count = Column(Integer, nullable=False, default=0)
    score = Column(Integer, nullable=False, default=0)  # 0-100
    is_correct = Column(Boolean, nullable=False, default=False)  # every answer correct
    xp_earned = Column(Integer, nullable=False, default=0)
    time_spent = Column(Integer)  # seconds
    submitted_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", back_populates="submissions")
    lesson = relationship("Lesson", back_populates="submissions")

    def __repr__(self):
        return f"<Submission(attempt_id={self.attempt_id}, user_id={self.user_id}, xp={self.xp_earned})>"
