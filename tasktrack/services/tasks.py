"""Ownership-scoped task persistence.

Every query here conjoins ``Task.user_id == owner_id``. That predicate is the
only authorization on task rows, so nothing in this module looks a task up by
id alone. A task that exists but belongs to someone else is reported exactly
like one that does not exist.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
import logging
import math

from sqlalchemy import func
from sqlmodel import Session, col, select

from ..errors import NotFound, ValidationError
from ..models import Task

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
UPDATABLE_FIELDS = ("title", "description")


@dataclass
class TaskPage:
    tasks: List[Task]
    total: int
    page: int
    pages: int


def _owned(owner_id: str):
    return select(Task).where(Task.user_id == owner_id)


def _get_owned_task(db: Session, owner_id: str, task_id: str) -> Task:
    task = db.exec(_owned(owner_id).where(Task.id == task_id)).first()
    if task is None:
        raise NotFound()
    return task


def list_tasks(
    db: Session,
    owner_id: str,
    search: Optional[str] = None,
    status: Optional[str] = None,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
) -> TaskPage:
    """Return one page of the owner's tasks, newest first.

    Non-positive ``page``/``limit`` fall back to the defaults, and any
    ``status`` other than completed or pending means no status filter.
    """
    if page < 1:
        page = DEFAULT_PAGE
    if limit < 1:
        limit = DEFAULT_LIMIT

    filters = [Task.user_id == owner_id]
    if search:
        filters.append(col(Task.title).contains(search, autoescape=True))
    if status == "completed":
        filters.append(col(Task.completed).is_(True))
    elif status == "pending":
        filters.append(col(Task.completed).is_(False))

    query = (
        select(Task)
        .where(*filters)
        .order_by(col(Task.created_at).desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    tasks = list(db.exec(query).all())
    total = db.exec(select(func.count()).select_from(Task).where(*filters)).one()

    return TaskPage(tasks=tasks, total=total, page=page, pages=math.ceil(total / limit))


def create_task(db: Session, owner_id: str, title: str, description: Optional[str] = None) -> Task:
    if not title:
        raise ValidationError("title: must not be empty")
    task = Task(title=title, description=description, user_id=owner_id)
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.debug("Created task %s for user %s", task.id, owner_id)
    return task


def get_task(db: Session, owner_id: str, task_id: str) -> Task:
    return _get_owned_task(db, owner_id, task_id)


def update_task(db: Session, owner_id: str, task_id: str, fields: dict) -> Task:
    """Apply a partial update of title and/or description."""
    task = _get_owned_task(db, owner_id, task_id)

    for field, value in fields.items():
        if field not in UPDATABLE_FIELDS:
            continue
        if field == "title":
            if value is None:
                continue
            if not value:
                raise ValidationError("title: must not be empty")
        setattr(task, field, value)

    task.updated_at = datetime.now(timezone.utc)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, owner_id: str, task_id: str) -> None:
    task = _get_owned_task(db, owner_id, task_id)
    db.delete(task)
    db.commit()


def toggle_task(db: Session, owner_id: str, task_id: str) -> Task:
    """Flip ``completed``. Concurrent toggles are last-writer-wins."""
    task = _get_owned_task(db, owner_id, task_id)
    task.completed = not task.completed
    task.updated_at = datetime.now(timezone.utc)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task
