# backend/routes/team.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.team import TeamMember, Task, TaskStatus, TaskPriority
from models.users import User, ROLE_TEAM, MANAGER_ROLES
from utils.hashing import get_password_hash
from utils.tokenJWT import staff_required, manager_required
from utils.audit import write_log, client_ip
from schemas.team import (
    TeamMemberCreate, TeamMemberUpdate, TeamMemberOut, PasswordChange,
    TaskCreate, TaskUpdate, TaskStatusUpdate, TaskOut,
)

router = APIRouter(tags=["Team"])


def _member_or_404(db: Session, member_id: int) -> TeamMember:
    m = db.get(TeamMember, member_id)
    if not m:
        raise HTTPException(status_code=404, detail="Team member not found")
    return m


def _task_or_404(db: Session, task_id: int) -> Task:
    t = db.get(Task, task_id)
    if not t:
        raise HTTPException(status_code=404, detail="Task not found")
    return t


def _check_assignee(db: Session, assignee_id: Optional[int]):
    if assignee_id is not None and not db.get(TeamMember, assignee_id):
        raise HTTPException(status_code=404, detail="Assignee not found")


# =========================
# TEAM MEMBERS
# =========================
@router.get("/team", response_model=List[TeamMemberOut])
def list_members(db: Session = Depends(get_db), current_user: User = Depends(staff_required)):
    return db.query(TeamMember).order_by(TeamMember.last_name.asc(), TeamMember.first_name.asc()).all()


# Create a staff member together with the login they use
@router.post("/team", response_model=TeamMemberOut, status_code=201)
def create_member(
    payload: TeamMemberCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    email = payload.email.strip().lower()
    taken = (
        db.query(User.id).filter(func.lower(User.email) == email).first()
        or db.query(TeamMember.id).filter(func.lower(TeamMember.email) == email).first()
    )
    if taken:
        write_log(db, user_id=current_user.id, action="TEAM_CREATE", resource="team", status="FAIL",
                  ip=client_ip(request), meta={"email": email, "reason": "Email exists"})
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        email=email,
        password_hash=get_password_hash(payload.password),
        role=ROLE_TEAM,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    db.add(user)
    db.flush()

    member = TeamMember(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=email,
        phone=payload.phone,
        position=payload.position,
        user_id=user.id,
    )
    db.add(member)
    db.commit()
    db.refresh(member)

    write_log(db, user_id=current_user.id, action="TEAM_CREATE", resource="team", status="SUCCESS",
              ip=client_ip(request), meta={"id": member.id, "user_id": user.id})
    return member


@router.get("/team/{member_id}", response_model=TeamMemberOut)
def get_member(member_id: int, db: Session = Depends(get_db), current_user: User = Depends(staff_required)):
    return _member_or_404(db, member_id)


@router.patch("/team/{member_id}", response_model=TeamMemberOut)
def update_member(
    member_id: int,
    payload: TeamMemberUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    m = _member_or_404(db, member_id)
    data = payload.model_dump(exclude_unset=True)
    for key, value in data.items():
        if value is not None:
            setattr(m, key, value)
    # Keep the login's display name in step
    if m.user is not None:
        m.user.first_name = m.first_name
        m.user.last_name = m.last_name
    db.commit()
    db.refresh(m)
    write_log(db, user_id=current_user.id, action="TEAM_UPDATE", resource="team", status="SUCCESS",
              ip=client_ip(request), meta={"id": m.id, "fields": sorted(data)})
    return m


@router.put("/team/{member_id}/password")
def reset_member_password(
    member_id: int,
    payload: PasswordChange,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    m = _member_or_404(db, member_id)
    if m.user is None:
        raise HTTPException(status_code=400, detail="Team member has no login")
    m.user.password_hash = get_password_hash(payload.password)
    db.commit()
    write_log(db, user_id=current_user.id, action="TEAM_PASSWORD_RESET", resource="team", status="SUCCESS",
              ip=client_ip(request), meta={"id": m.id, "user_id": m.user_id})
    return {"detail": "Password updated"}


@router.delete("/team/{member_id}")
def delete_member(
    member_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    m = _member_or_404(db, member_id)
    db.query(Task).filter(Task.assignee_id == m.id).update({Task.assignee_id: None}, synchronize_session=False)
    user = m.user
    db.delete(m)
    if user is not None:
        db.delete(user)
    db.commit()
    write_log(db, user_id=current_user.id, action="TEAM_DELETE", resource="team", status="SUCCESS",
              ip=client_ip(request), meta={"id": member_id})
    return {"detail": "Team member deleted"}


# =========================
# TASKS
# =========================
@router.get("/tasks", response_model=List[TaskOut])
def list_tasks(
    status: Optional[TaskStatus] = Query(None),
    priority: Optional[TaskPriority] = Query(None),
    assignee_id: Optional[int] = Query(None),
    mine: bool = Query(False, description="Only tasks assigned to the caller"),
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    query = db.query(Task)
    if status is not None:
        query = query.filter(Task.status == status)
    if priority is not None:
        query = query.filter(Task.priority == priority)
    if assignee_id is not None:
        query = query.filter(Task.assignee_id == assignee_id)
    if mine:
        query = query.join(TeamMember, Task.assignee_id == TeamMember.id).filter(TeamMember.user_id == current_user.id)

    # Undated tasks go last
    return query.order_by(Task.due_date.is_(None), Task.due_date.asc(), Task.id.asc()).all()


@router.post("/tasks", response_model=TaskOut, status_code=201)
def create_task(
    payload: TaskCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    _check_assignee(db, payload.assignee_id)
    t = Task(**payload.model_dump(), status=TaskStatus.PENDING, created_by=current_user.id)
    db.add(t)
    db.commit()
    db.refresh(t)
    write_log(db, user_id=current_user.id, action="TASK_CREATE", resource="tasks", status="SUCCESS",
              ip=client_ip(request), meta={"id": t.id, "assignee_id": t.assignee_id})
    return t


@router.get("/tasks/{task_id}", response_model=TaskOut)
def get_task(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(staff_required)):
    return _task_or_404(db, task_id)


@router.patch("/tasks/{task_id}", response_model=TaskOut)
def update_task(
    task_id: int,
    payload: TaskUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    t = _task_or_404(db, task_id)
    data = payload.model_dump(exclude_unset=True)
    if "assignee_id" in data:
        _check_assignee(db, data["assignee_id"])
    for key, value in data.items():
        setattr(t, key, value)
    db.commit()
    db.refresh(t)
    write_log(db, user_id=current_user.id, action="TASK_UPDATE", resource="tasks", status="SUCCESS",
              ip=client_ip(request), meta={"id": t.id, "fields": sorted(data)})
    return t


# Team users may only move tasks that are assigned to them
@router.patch("/tasks/{task_id}/status", response_model=TaskOut)
def update_task_status(
    task_id: int,
    payload: TaskStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    t = _task_or_404(db, task_id)
    if current_user.role not in MANAGER_ROLES:
        if t.assignee is None or t.assignee.user_id != current_user.id:
            write_log(db, user_id=current_user.id, action="TASK_STATUS", resource="tasks", status="FAIL",
                      ip=client_ip(request), meta={"id": t.id, "reason": "Not assignee"})
            raise HTTPException(status_code=403, detail="Task is not assigned to you")

    previous = t.status
    t.status = payload.status
    db.commit()
    db.refresh(t)
    write_log(db, user_id=current_user.id, action="TASK_STATUS", resource="tasks", status="SUCCESS",
              ip=client_ip(request), meta={"id": t.id, "from": previous.value, "to": t.status.value})
    return t


@router.delete("/tasks/{task_id}")
def delete_task(
    task_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    t = _task_or_404(db, task_id)
    db.delete(t)
    db.commit()
    write_log(db, user_id=current_user.id, action="TASK_DELETE", resource="tasks", status="SUCCESS",
              ip=client_ip(request), meta={"id": task_id})
    return {"detail": "Task deleted"}
