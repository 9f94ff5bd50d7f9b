"""
Todo Lists Router
Personal task lists. Every list belongs to the logged-in user; other users'
lists answer 404.

Each mutation answers with the refreshed collection so the widget can
re-render without a second request.
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.database import get_db
from casedesk.core.errors import not_found
from casedesk.core.security import require_user
from casedesk.models.models import Todo, TodoList, User
from casedesk.services.records import ensure_unique


router = APIRouter(prefix="/api/todo-lists", tags=["Todo Lists"])

UNIQUE_MESSAGES = {"name": "Ya existe una lista con este nombre."}


# =============================================================================
# Schemas
# =============================================================================

class TodoListRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class TodoCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)


class TodoUpdate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    is_completed: bool


class TodoResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    todo_list_id: int
    title: str
    is_completed: bool
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Helper Functions
# =============================================================================

async def _user_lists(db: AsyncSession, user: User) -> dict:
    todos_count = (
        select(func.count(Todo.id))
        .where(Todo.todo_list_id == TodoList.id)
        .correlate(TodoList)
        .scalar_subquery()
    )
    result = await db.execute(
        select(TodoList, todos_count.label("todos_count"))
        .where(TodoList.user_id == user.id)
        .order_by(TodoList.created_at.desc(), TodoList.id.desc())
    )
    return {
        "lists": [
            {
                "id": todo_list.id,
                "user_id": todo_list.user_id,
                "name": todo_list.name,
                "todos_count": count,
                "created_at": todo_list.created_at.isoformat(),
                "updated_at": todo_list.updated_at.isoformat(),
            }
            for todo_list, count in result.all()
        ]
    }


async def _list_todos(db: AsyncSession, todo_list: TodoList) -> dict:
    result = await db.execute(
        select(Todo)
        .where(Todo.todo_list_id == todo_list.id)
        .order_by(Todo.created_at, Todo.id)
    )
    return {"todos": [TodoResponse.model_validate(todo) for todo in result.scalars()]}


async def _get_user_list(db: AsyncSession, user: User, list_id: int) -> TodoList:
    todo_list = await db.get(TodoList, list_id)
    if todo_list is None or todo_list.user_id != user.id:
        raise not_found("Todo list")
    return todo_list


async def _get_todo(db: AsyncSession, todo_list: TodoList, todo_id: int) -> Todo:
    todo = await db.get(Todo, todo_id)
    if todo is None or todo.todo_list_id != todo_list.id:
        raise not_found("Todo")
    return todo


# =============================================================================
# Lists
# =============================================================================

@router.get("")
async def list_todo_lists(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await _user_lists(db, user)


@router.post("")
async def create_todo_list(
    data: TodoListRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_unique(db, TodoList, {"name": data.name}, UNIQUE_MESSAGES)
    db.add(TodoList(user_id=user.id, name=data.name))
    await db.commit()
    return await _user_lists(db, user)


@router.put("/{list_id}")
async def update_todo_list(
    list_id: int,
    data: TodoListRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    todo_list = await _get_user_list(db, user, list_id)
    await ensure_unique(db, TodoList, {"name": data.name}, UNIQUE_MESSAGES, exclude_id=todo_list.id)
    todo_list.name = data.name
    await db.commit()
    return await _user_lists(db, user)


@router.delete("/{list_id}")
async def delete_todo_list(
    list_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Deletes the list together with its todos."""
    todo_list = await _get_user_list(db, user, list_id)
    await db.delete(todo_list)
    await db.commit()
    return await _user_lists(db, user)


# =============================================================================
# Todos
# =============================================================================

@router.get("/{list_id}/todos")
async def list_todos(
    list_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    todo_list = await _get_user_list(db, user, list_id)
    return await _list_todos(db, todo_list)


@router.post("/{list_id}/todos")
async def create_todo(
    list_id: int,
    data: TodoCreate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    todo_list = await _get_user_list(db, user, list_id)
    db.add(Todo(todo_list_id=todo_list.id, title=data.title, is_completed=False))
    await db.commit()
    return await _list_todos(db, todo_list)


@router.put("/{list_id}/todos/{todo_id}")
async def update_todo(
    list_id: int,
    todo_id: int,
    data: TodoUpdate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    todo_list = await _get_user_list(db, user, list_id)
    todo = await _get_todo(db, todo_list, todo_id)
    todo.title = data.title
    todo.is_completed = data.is_completed
    await db.commit()
    return await _list_todos(db, todo_list)


@router.delete("/{list_id}/todos/{todo_id}")
async def delete_todo(
    list_id: int,
    todo_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    todo_list = await _get_user_list(db, user, list_id)
    todo = await _get_todo(db, todo_list, todo_id)
    await db.delete(todo)
    await db.commit()
    return await _list_todos(db, todo_list)
