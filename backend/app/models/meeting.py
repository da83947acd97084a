from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Enum as SQLEnum, JSON, UniqueConstraint
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class MeetingStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"
    PENDING = "pending"


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


MIN_MEETING_NUMBER = 1
MAX_MEETING_NUMBER = 4
MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 120


class Meeting(Base):
    """
    Guide/student checkpoint. Numbered 1-4 per project; (project_id, meeting_number)
    is unique and scheduling the same pair again updates the existing row.
    """
    __tablename__ = "meetings"
    __table_args__ = (
        UniqueConstraint("project_id", "meeting_number", name="uq_meeting_project_number"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    meeting_number = Column(Integer, nullable=False)
    scheduled_date = Column(DateTime, nullable=False)
    status = Column(
        SQLEnum(MeetingStatus, values_callable=lambda e: [m.value for m in e], name="meeting_status"),
        default=MeetingStatus.SCHEDULED,
        nullable=False,
    )

    project_id = Column(GUID, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    faculty_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    # Copied from the project so department views need no join
    department = Column(String(100), nullable=True, index=True)

    meeting_type = Column(String(50), default="in-person", nullable=False)
    duration_minutes = Column(Integer, default=30, nullable=False)
    notes = Column(Text, nullable=True)

    # Written by the student
    student_discussion_points = Column(Text, nullable=True)
    # Written by the guide
    meeting_summary = Column(Text, nullable=True)
    guide_remarks = Column(Text, nullable=True)
    feedback = Column(Text, nullable=True)

    # [{"id": str, "description": str, "status": "pending" | "completed"}]
    tasks = Column(JSON, default=list, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Meeting #{self.meeting_number} project={self.project_id}>"
