"""Service-layer tests: CredentialStore and TodoRepository without HTTP.

Learn: Services take an AsyncSession, so they can be exercised directly
against the test database. This is where the edge cases that are awkward
to reach over HTTP live (e.g. a token whose account has since vanished).
"""

import pytest

from tasklist.errors import Conflict, NotFound, Unauthenticated
from tasklist.services.credential_store import (
    CredentialStore,
    DuplicateUsername,
    InvalidCredentials,
    UserNotFound,
)
from tasklist.services.todo_repository import (
    OwnerNotFound,
    TodoNotFound,
    TodoRepository,
)


@pytest.fixture
def store(db_session):
    return CredentialStore(db_session, bcrypt_rounds=4)


@pytest.fixture
def repo(db_session):
    return TodoRepository(db_session)


# ═══════════════════════════════════════════════════════════
# CredentialStore
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_stores_hash_not_password(store):
    user = await store.register("alice", "pw1")
    assert user.id is not None
    assert user.password_hash != "pw1"
    assert await store.verify_password("pw1", user.password_hash)


@pytest.mark.asyncio
async def test_register_duplicate(store):
    first = await store.register("alice", "pw1")
    with pytest.raises(DuplicateUsername) as exc_info:
        await store.register("alice", "other")
    assert isinstance(exc_info.value, Conflict)

    again = await store.find_by_username("alice")
    assert again.id == first.id
    assert await store.verify_password("pw1", again.password_hash)


@pytest.mark.asyncio
async def test_find_by_username_missing(store):
    with pytest.raises(UserNotFound):
        await store.find_by_username("ghost")


@pytest.mark.asyncio
async def test_authenticate(store):
    await store.register("alice", "pw1")
    user = await store.authenticate("alice", "pw1")
    assert user.username == "alice"

    with pytest.raises(InvalidCredentials):
        await store.authenticate("alice", "wrong")
    with pytest.raises(InvalidCredentials):
        await store.authenticate("ghost", "pw1")


@pytest.mark.asyncio
async def test_register_race_on_unique_constraint(store, monkeypatch):
    first = await store.register("alice", "pw1")
    first_id = first.id

    # Another request inserted the name between the pre-check and the commit.
    async def no_existing_user(username):
        return None

    monkeypatch.setattr(store, "_lookup", no_existing_user)
    with pytest.raises(DuplicateUsername):
        await store.register("alice", "pw2")
    monkeypatch.undo()

    again = await store.find_by_username("alice")
    assert again.id == first_id
    assert await store.verify_password("pw1", again.password_hash)
    assert not await store.verify_password("pw2", again.password_hash)


@pytest.mark.asyncio
async def test_unknown_user_still_runs_bcrypt(store, monkeypatch):
    checked = []
    real_verify = store.verify_password

    async def recording_verify(password, password_hash):
        checked.append(password_hash)
        return await real_verify(password, password_hash)

    monkeypatch.setattr(store, "verify_password", recording_verify)
    with pytest.raises(InvalidCredentials):
        await store.authenticate("ghost", "pw1")

    assert len(checked) == 1
    assert checked[0].startswith("$2")


# ═══════════════════════════════════════════════════════════
# TodoRepository
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_for_unknown_owner(repo):
    with pytest.raises(OwnerNotFound) as exc_info:
        await repo.create_todo("deleted-user", "orphan")
    assert isinstance(exc_info.value, Unauthenticated)


@pytest.mark.asyncio
async def test_crud_roundtrip(store, repo):
    alice = await store.register("alice", "pw1")

    todo = await repo.create_todo("alice", "Buy milk")
    assert todo.owner_id == alice.id
    assert todo.completed is False

    fetched = await repo.get_todo("alice", todo.id)
    assert fetched.title == "Buy milk"

    updated = await repo.update_todo("alice", todo.id, {"completed": True})
    assert updated.completed is True
    assert updated.title == "Buy milk"

    await repo.delete_todo("alice", todo.id)
    with pytest.raises(TodoNotFound):
        await repo.get_todo("alice", todo.id)


@pytest.mark.asyncio
async def test_foreign_todo_is_not_found(store, repo):
    await store.register("alice", "pw1")
    await store.register("bob", "pw2")
    todo = await repo.create_todo("alice", "private")

    with pytest.raises(NotFound):
        await repo.get_todo("bob", todo.id)
    with pytest.raises(NotFound):
        await repo.update_todo("bob", todo.id, {"title": "mine now"})
    with pytest.raises(NotFound):
        await repo.update_todo("bob", todo.id, {})
    with pytest.raises(NotFound):
        await repo.delete_todo("bob", todo.id)

    assert (await repo.get_todo("alice", todo.id)).title == "private"
    assert await repo.list_todos("bob") == []


@pytest.mark.asyncio
async def test_list_filters(store, repo):
    await store.register("alice", "pw1")
    await repo.create_todo("alice", "Buy milk", completed=True)
    await repo.create_todo("alice", "MILK the cow")
    await repo.create_todo("alice", "Walk dog", completed=True)

    titles = lambda todos: {t.title for t in todos}  # noqa: E731

    assert titles(await repo.list_todos("alice", search="milk")) == {
        "Buy milk",
        "MILK the cow",
    }
    assert titles(await repo.list_todos("alice", completed=True, search="milk")) == {
        "Buy milk"
    }
    assert titles(await repo.list_todos("alice", completed=False)) == {"MILK the cow"}
    assert len(await repo.list_todos("alice", search="")) == 3
