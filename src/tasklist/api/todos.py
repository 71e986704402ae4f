"""Todo API routes.

Learn: Every route here sits behind get_current_user (applied when the
router is included in api/__init__.py) and also takes the identity as a
parameter, so the repository can scope by it. FastAPI caches the
dependency per request, so the token is verified once.
Not-found and not-yours both come back as the same 404.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tasklist.auth.dependencies import CurrentIdentity, get_current_user
from tasklist.db.engine import get_db
from tasklist.schemas.todo import TodoCreate, TodoRead, TodoUpdate
from tasklist.services.todo_repository import TodoRepository

router = APIRouter(prefix="/todos")


def _repo(db: AsyncSession = Depends(get_db)) -> TodoRepository:
    return TodoRepository(db)


@router.get("", response_model=list[TodoRead])
async def list_todos(
    completed: Optional[bool] = Query(None, description="Filter by completion"),
    search: Optional[str] = Query(None, description="Case-insensitive title substring"),
    identity: CurrentIdentity = Depends(get_current_user),
    repo: TodoRepository = Depends(_repo),
):
    return await repo.list_todos(
        identity.username, completed=completed, search=search
    )


@router.post("", response_model=TodoRead)
async def create_todo(
    body: TodoCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    repo: TodoRepository = Depends(_repo),
):
    """Create a todo owned by the caller."""
    return await repo.create_todo(
        identity.username, title=body.title, completed=body.completed
    )


@router.get("/{todo_id}", response_model=TodoRead)
async def get_todo(
    todo_id: int,
    identity: CurrentIdentity = Depends(get_current_user),
    repo: TodoRepository = Depends(_repo),
):
    return await repo.get_todo(identity.username, todo_id)


@router.put("/{todo_id}", response_model=TodoRead)
async def update_todo(
    todo_id: int,
    body: TodoUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    repo: TodoRepository = Depends(_repo),
):
    """Partially update a todo. Omitted or null fields keep their value."""
    changes = body.model_dump(exclude_none=True)
    return await repo.update_todo(identity.username, todo_id, changes)


@router.delete("/{todo_id}", status_code=204)
async def delete_todo(
    todo_id: int,
    identity: CurrentIdentity = Depends(get_current_user),
    repo: TodoRepository = Depends(_repo),
):
    await repo.delete_todo(identity.username, todo_id)
    return Response(status_code=204)
