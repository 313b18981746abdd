import enum
from sqlalchemy import Column, Integer, String, ForeignKey, Date, DateTime, Enum, func
from sqlalchemy.orm import relationship
from database import Base


# Staff member; each one owns a login (User with role "team")
class TeamMember(Base):
    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    phone = Column(String, nullable=True)
    position = Column(String, nullable=False, default="Member")
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


def _enum_values(e):
    return [m.value for m in e]


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    status = Column(Enum(TaskStatus, values_callable=_enum_values), nullable=False, default=TaskStatus.PENDING, index=True)
    priority = Column(Enum(TaskPriority, values_callable=_enum_values), nullable=False, default=TaskPriority.NORMAL)
    due_date = Column(Date, nullable=True, index=True)
    assignee_id = Column(Integer, ForeignKey("team_members.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    assignee = relationship("TeamMember")

    @property
    def assignee_name(self):
        return self.assignee.full_name if self.assignee else None
