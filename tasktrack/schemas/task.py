from pydantic import Field
from datetime import datetime
from typing import List, Optional

from .base import CamelModel


class TaskCreate(CamelModel):
    """Schema for creating new tasks."""
    title: str = Field(min_length=1)
    description: Optional[str] = None


class TaskUpdate(CamelModel):
    """Schema for partially updating existing tasks."""
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None


class Task(CamelModel):
    """Complete task schema with all fields."""
    id: str
    title: str
    description: Optional[str] = None
    completed: bool
    user_id: str
    created_at: datetime
    updated_at: datetime


class TaskList(CamelModel):
    tasks: List[Task]
    total: int
    page: int
    pages: int
