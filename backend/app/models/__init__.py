"""Database models."""

# Import all models here so metadata.create_all sees every table
from app.models.category import Category
from app.models.question import Question, question_categories
from app.models.user import User, UserRole

__all__ = [
    "Category",
    "Question",
    "question_categories",
    "User",
    "UserRole",
]
