from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Enum as SQLEnum, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class ProjectStatus(str, enum.Enum):
    """Project lifecycle status"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUBMITTED = "submitted"
    COMPLETED = "completed"


# A student may hold at most one project in these states
ACTIVE_STATUSES = (ProjectStatus.PENDING, ProjectStatus.APPROVED)


class Project(Base):
    """A student's dissertation project, from proposal to completion"""
    __tablename__ = "projects"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    problem_statement = Column(Text, nullable=False)
    expected_outcome = Column(Text, nullable=False)
    technologies = Column(JSON, default=list, nullable=False)
    department = Column(String(100), nullable=False, index=True)

    student_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    guide_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    # HOD responsible for the department when the proposal came in
    hod_assigned_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    panel_member_ids = Column(JSON, default=list, nullable=False)

    status = Column(
        SQLEnum(ProjectStatus, values_callable=lambda e: [m.value for m in e], name="project_status"),
        default=ProjectStatus.PENDING,
        nullable=False,
        index=True,
    )
    progress = Column(Integer, default=0, nullable=False)
    feedback = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("User", foreign_keys=[student_id], lazy="selectin")
    guide = relationship("User", foreign_keys=[guide_id], lazy="selectin")

    def touch(self):
        self.last_updated = datetime.utcnow()

    def __repr__(self):
        return f"<Project {self.title} ({self.status.value if self.status else '-'})>"
