from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from ..database import get_db
from ..schemas.task import Task as TaskSchema, TaskCreate, TaskList, TaskUpdate
from ..schemas.user import MessageResponse
from ..services import tasks as task_store
from .auth import AuthContext, require_auth

router = APIRouter()


def _int_or_default(raw: Optional[str], default: int) -> int:
    """Unparseable or non-positive paging values fall back to the default."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


@router.get("", response_model=TaskList)
def get_tasks(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    status: Optional[str] = None,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    """List the caller's tasks with optional search, status filter and paging."""
    result = task_store.list_tasks(
        db,
        auth.user_id,
        search=search,
        status=status,
        page=_int_or_default(page, task_store.DEFAULT_PAGE),
        limit=_int_or_default(limit, task_store.DEFAULT_LIMIT),
    )
    return TaskList(
        tasks=[TaskSchema.model_validate(task) for task in result.tasks],
        total=result.total,
        page=result.page,
        pages=result.pages,
    )


@router.post("", response_model=TaskSchema, status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    """Create a new task for the caller."""
    return TaskSchema.model_validate(
        task_store.create_task(db, auth.user_id, task.title, task.description)
    )


@router.get("/{task_id}", response_model=TaskSchema)
def get_task(
    task_id: str,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return TaskSchema.model_validate(task_store.get_task(db, auth.user_id, task_id))


@router.patch("/{task_id}", response_model=MessageResponse)
def update_task(
    task_id: str,
    task_update: TaskUpdate,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    """Update title and/or description of a task."""
    task_store.update_task(db, auth.user_id, task_id, task_update.model_dump(exclude_unset=True))
    return {"message": "Task updated"}


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: str,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    task_store.delete_task(db, auth.user_id, task_id)
    return {"message": "Task deleted"}


@router.patch("/{task_id}/toggle", response_model=MessageResponse)
def toggle_task(
    task_id: str,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    """Flip the completed flag of a task."""
    task_store.toggle_task(db, auth.user_id, task_id)
    return {"message": "Task toggled"}
