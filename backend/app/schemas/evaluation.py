from pydantic import Field
from typing import Optional
from datetime import datetime

from app.models.evaluation import EvaluationType
from app.schemas.common import RequestModel, ORMModel

Score = Optional[float]


class EvaluationCreate(RequestModel):
    presentation_score: Score = Field(None, ge=0, le=100)
    content_score: Score = Field(None, ge=0, le=100)
    research_score: Score = Field(None, ge=0, le=100)
    innovation_score: Score = Field(None, ge=0, le=100)
    implementation_score: Score = Field(None, ge=0, le=100)
    comments: Optional[str] = None
    evaluation_type: EvaluationType


class EvaluationResponse(ORMModel):
    id: str
    project_id: str
    student_id: str
    evaluator_id: Optional[str] = None
    presentation_score: Score = None
    content_score: Score = None
    research_score: Score = None
    innovation_score: Score = None
    implementation_score: Score = None
    comments: Optional[str] = None
    overall_grade: str
    evaluation_type: EvaluationType
    created_at: datetime
    updated_at: Optional[datetime] = None
