"""
Problem and ProblemOption models
"""
from sqlalchemy import Column, String, Integer, Boolean, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from mathlearn.config import settings
from mathlearn.database import Base, utcnow
from mathlearn.models._ids import new_id

PROBLEM_TYPES = ("multiple_choice", "input")
DIFFICULTIES = ("easy", "medium", "hard")


class Problem(Base):
    """
    Problems table - a question inside a lesson

    Multiple-choice problems are graded against their options; input
    problems against correct_answer.
    """
    __tablename__ = "problems"
    __table_args__ = (UniqueConstraint("lesson_id", "order"),)

    id = Column(String, primary_key=True, default=new_id)
    lesson_id = Column(String, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True)
    question = Column(Text, nullable=False)
    problem_type = Column(String(20), nullable=False)
    order = Column(Integer, nullable=False)
    correct_answer = Column(Text)
    explanation = Column(Text)
    difficulty = Column(String(10), nullable=False, default="easy")
    xp_reward = Column(Integer, nullable=False, default=lambda: settings.XP_PER_CORRECT_ANSWER)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    lesson = relationship("Lesson", back_populates="problems")
    options = relationship(
        "ProblemOption",
        back_populates="problem",
        order_by="ProblemOption.order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Problem(id={self.id}, lesson_id={self.lesson_id}, type={self.problem_type})>"


class ProblemOption(Base):
    """
    Problem options table - choices for multiple-choice problems
    """
    __tablename__ = "problem_options"
    __table_args__ = (UniqueConstraint("problem_id", "order"),)

    id = Column(String, primary_key=True, default=new_id)
    problem_id = Column(String, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False, index=True)
    option_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)
    order = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    problem = relationship("Problem", back_populates="options")

    def __repr__(self):
        return f"<ProblemOption(id={self.id}, problem_id={self.problem_id}, correct={self.is_correct})>"
