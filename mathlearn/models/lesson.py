"""
Lesson model - ordered units of the curriculum
"""
from sqlalchemy import Column, String, Integer, Boolean, Text, DateTime
from sqlalchemy.orm import relationship
from mathlearn.database import Base, utcnow
from mathlearn.models._ids import new_id


class Lesson(Base):
    """
    Lessons table - each lesson owns an ordered list of problems
    """
    __tablename__ = "lessons"

    id = Column(String, primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    order = Column(Integer, unique=True, nullable=False)
    xp_reward = Column(Integer, nullable=False, default=10)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    problems = relationship(
        "Problem",
        back_populates="lesson",
        order_by="Problem.order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    submissions = relationship(
        "Submission", back_populates="lesson", cascade="all, delete-orphan", passive_deletes=True
    )
    user_progress = relationship(
        "UserProgress", back_populates="lesson", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self):
        return f"<Lesson(id={self.id}, title={self.title}, order={self.order})>"
