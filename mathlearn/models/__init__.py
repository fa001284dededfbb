"""
Database models package
"""
from mathlearn.models.user import User
from mathlearn.models.lesson import Lesson
from mathlearn.models.problem import Problem, ProblemOption
from mathlearn.models.submission import Submission
from mathlearn.models.user_progress import UserProgress

__all__ = ["User", "Lesson", "Problem", "ProblemOption", "Submission", "UserProgress"]
