"""Lesson lookup (collaborator for comment creation and audit summaries)."""

from .models import LESSONS_TABLES_CQL, Lesson
from .service import LessonService


__all__ = ["LESSONS_TABLES_CQL", "Lesson", "LessonService"]
