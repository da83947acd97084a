from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class Progress(Base):
    """Student status report against a project. Immutable once written."""
    __tablename__ = "progress_updates"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    project_id = Column(GUID, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    completion_percentage = Column(Integer, nullable=False)
    challenges = Column(Text, nullable=True)
    next_steps = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
