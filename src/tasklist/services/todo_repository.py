"""Todo repository: ownership-scoped CRUD.

Learn: Every method takes the caller's username and folds it into the
WHERE clause, joined against users. There is no way to pass an owner id
in from outside, and there is no "load the row, then check who owns it"
step: a todo that belongs to somebody else simply doesn't match, so it
looks exactly like a todo that doesn't exist (404, never 403). That keeps
other users' ids from being enumerated.

Writes are single statements (UPDATE/DELETE ... WHERE id AND owner
... RETURNING) so they rely on the database's row-level atomicity and
need no application-level transaction or locking.
"""

from typing import Any, Optional

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tasklist.db.models import Todo, User
from tasklist.errors import NotFound, Unauthenticated

logger = structlog.get_logger()

LIKE_ESCAPE = "\\"


class TodoNotFound(NotFound):
    detail = "Todo not found"


class OwnerNotFound(Unauthenticated):
    """The token is valid but its account no longer exists."""

    detail = "Account no longer exists"


def _owner_id(owner: str):
    """Scalar subquery resolving a username to its user id."""
    return select(User.id).where(User.username == owner).scalar_subquery()


def _escape_like(term: str) -> str:
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


class TodoRepository:
    """CRUD over todos, always scoped to one owner."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _owned(self, owner: str):
        return (
            select(Todo)
            .join(User, Todo.owner_id == User.id)
            .where(User.username == owner)
        )

    # ─── Read ────────────────────────────────────────────

    async def list_todos(
        self,
        owner: str,
        completed: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> list[Todo]:
        """List the owner's todos with optional filters.

        Filters compose with AND. `search` is a case-insensitive substring
        match on the title; % and _ in the term match literally. No
        ORDER BY, so rows come back in the store's natural order.
        """
        query = self._owned(owner)
        if completed is not None:
            query = query.where(Todo.completed == completed)
        if search:
            query = query.where(
                Todo.title.ilike(f"%{_escape_like(search)}%", escape=LIKE_ESCAPE)
            )

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_todo(self, owner: str, todo_id: int) -> Todo:
        result = await self.db.execute(self._owned(owner).where(Todo.id == todo_id))
        todo = result.scalars().first()
        if todo is None:
            raise TodoNotFound()
        return todo

    # ─── Create ──────────────────────────────────────────

    async def create_todo(
        self, owner: str, title: str, completed: bool = False
    ) -> Todo:
        owner_id = await self.db.scalar(
            select(User.id).where(User.username == owner)
        )
        if owner_id is None:
            logger.warning("todo.owner_missing", owner=owner)
            raise OwnerNotFound()

        todo = Todo(title=title, completed=completed, owner_id=owner_id)
        self.db.add(todo)
        await self.db.commit()
        logger.info("todo.created", todo_id=todo.id, owner=owner)
        return todo

    # ─── Update ──────────────────────────────────────────

    async def update_todo(
        self, owner: str, todo_id: int, changes: dict[str, Any]
    ) -> Todo:
        """Apply a partial update. Fields missing from `changes` are kept.

        An empty patch is a plain read: the todo comes back unchanged
        (or TodoNotFound, same as any other miss).
        """
        if not changes:
            return await self.get_todo(owner, todo_id)

        stmt = (
            update(Todo)
            .where(Todo.id == todo_id, Todo.owner_id == _owner_id(owner))
            .values(**changes)
            .returning(Todo)
        )
        result = await self.db.execute(stmt)
        todo = result.scalars().first()
        await self.db.commit()

        if todo is None:
            raise TodoNotFound()
        logger.info("todo.updated", todo_id=todo_id, fields=sorted(changes))
        return todo

    # ─── Delete ──────────────────────────────────────────

    async def delete_todo(self, owner: str, todo_id: int) -> None:
        stmt = (
            delete(Todo)
            .where(Todo.id == todo_id, Todo.owner_id == _owner_id(owner))
            .returning(Todo.id)
        )
        result = await self.db.execute(stmt)
        deleted_id = result.scalar_one_or_none()
        await self.db.commit()

        if deleted_id is None:
            raise TodoNotFound()
        logger.info("todo.deleted", todo_id=todo_id, owner=owner)
