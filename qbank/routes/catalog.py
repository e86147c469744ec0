"""Exam syllabus and echo view catalogues."""
from fastapi import APIRouter

from qbank.models.descriptions import ExamType
from qbank.services.catalog import EXAM_TOPICS, views_for_exam_type

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


@router.get("/exams")
def get_exam_topics() -> dict[str, dict[str, dict[str, str]]]:
    return EXAM_TOPICS


@router.get("/views")
def get_views(exam_type: ExamType = ExamType.TEE) -> list[dict[str, str]]:
    return views_for_exam_type(exam_type)
