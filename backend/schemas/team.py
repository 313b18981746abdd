from datetime import date, datetime
from typing import List, Optional
from pydantic import EmailStr, Field

from models.team import TaskStatus, TaskPriority
from schemas.base import ORMBase


class TeamMemberCreate(ORMBase):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    position: str = "Member"
    password: str = Field(min_length=6)


class TeamMemberUpdate(ORMBase):
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    position: Optional[str] = None


class PasswordChange(ORMBase):
    password: str = Field(min_length=6)


class TeamMemberOut(ORMBase):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    position: str
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None


class TaskCreate(ORMBase):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.NORMAL
    due_date: Optional[date] = None
    assignee_id: Optional[int] = None


class TaskUpdate(ORMBase):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None
    assignee_id: Optional[int] = None


class TaskStatusUpdate(ORMBase):
    status: TaskStatus


class TaskOut(ORMBase):
    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[date] = None
    assignee_id: Optional[int] = None
    assignee_name: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
