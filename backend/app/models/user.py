from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, ForeignKey, or_
from datetime import datetime
from typing import Any, List, Mapping, Set
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class UserRole(str, enum.Enum):
    """User roles"""
    STUDENT = "student"
    FACULTY = "faculty"
    HOD = "hod"
    ADMIN = "admin"


# Academic fields each role must carry. department and branch are the same label,
# so either one satisfies a requirement for the other.
ROLE_REQUIRED_FIELDS = {
    UserRole.STUDENT: ("branch", "course"),
    UserRole.HOD: ("branch", "department"),
}


def missing_role_fields(role, values: Mapping[str, Any]) -> List[str]:
    """Required fields for role that are absent or blank in values"""
    present = {key for key, value in values.items() if isinstance(value, str) and value.strip()}
    if present & {"branch", "department"}:
        present |= {"branch", "department"}
    return [field for field in ROLE_REQUIRED_FIELDS.get(role, ()) if field not in present]


class User(Base):
    """User model"""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=False)

    role = Column(
        SQLEnum(UserRole, values_callable=lambda e: [m.value for m in e], name="user_role"),
        default=UserRole.STUDENT,
        nullable=False,
    )

    # Academic fields. `department` is canonical; `branch` is the legacy synonym
    # that older records populate instead. Read both through department_keys.
    department = Column(String(100), nullable=True, index=True)
    branch = Column(String(100), nullable=True, index=True)
    course = Column(String(100), nullable=True)

    # Student -> guide. A faculty member's assigned students are the rows pointing here.
    assigned_guide_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def department_keys(self) -> Set[str]:
        """Every department label this user answers to (department or legacy branch)"""
        return {value for value in (self.department, self.branch) if value}

    @property
    def primary_department(self):
        return self.department or self.branch

    @classmethod
    def department_clause(cls, keys):
        """SQL filter: users whose department or legacy branch is in keys"""
        keys = list(keys)
        return or_(cls.department.in_(keys), cls.branch.in_(keys))

    def __repr__(self):
        return f"<User {self.email} ({self.role.value if self.role else '-'})>"
