from sqlalchemy import Column, String, Float, Text, DateTime, ForeignKey, Enum as SQLEnum, UniqueConstraint
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class EvaluationType(str, enum.Enum):
    MID_TERM = "mid-term"
    FINAL = "final"


SCORE_FIELDS = (
    "presentation_score",
    "content_score",
    "research_score",
    "innovation_score",
    "implementation_score",
)


class Evaluation(Base):
    """Scored assessment; one row per (student, evaluator, evaluation_type)"""
    __tablename__ = "evaluations"
    __table_args__ = (
        UniqueConstraint("student_id", "evaluator_id", "evaluation_type", name="uq_evaluation_student_evaluator_type"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    project_id = Column(GUID, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Nulled (not deleted) when the evaluator's account is removed
    evaluator_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    presentation_score = Column(Float, nullable=True)
    content_score = Column(Float, nullable=True)
    research_score = Column(Float, nullable=True)
    innovation_score = Column(Float, nullable=True)
    implementation_score = Column(Float, nullable=True)
    comments = Column(Text, nullable=True)
    overall_grade = Column(String(1), nullable=False)
    evaluation_type = Column(
        SQLEnum(EvaluationType, values_callable=lambda e: [m.value for m in e], name="evaluation_type"),
        nullable=False,
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
