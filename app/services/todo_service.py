"""Per-user to-do views: the cached list with optimistic toggle/delete, and
the add form.

A mutation is applied to the local list first, its row id is recorded in the
in-flight set for its kind, then the backend call is made. On failure a
toggle puts back the one value it changed and a delete refetches the whole
list (the row has to come back at its sorted position). The in-flight marker
is always cleared afterwards.

Only one operation per row may be in flight; a second one is refused with
:class:`RowBusyError` before anything is changed or sent.
"""
from __future__ import annotations

import enum
import logging
import time
from typing import Optional

from app.backend.base import TODOS, AuthError, Backend, BackendError
from app.messages import t
from app.schemas.auth import Session, User
from app.schemas.todo import TodoListOut, TodoOut

logger = logging.getLogger(__name__)


class ListStatus(str, enum.Enum):
    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"


class RowBusyError(Exception):
    def __init__(self, todo_id: int, message: str):
        super().__init__(message)
        self.todo_id = todo_id
        self.message = message


class TodoNotFound(LookupError):
    def __init__(self, todo_id: int, message: str):
        super().__init__(message)
        self.todo_id = todo_id
        self.message = message


class TodoListView:
    def __init__(self, backend: Backend, access_token: str, locale: str = "ja"):
        self.backend = backend
        self.access_token = access_token
        self.locale = locale
        self.user: Optional[User] = None
        self.status = ListStatus.LOADING
        self.todos: list[TodoOut] = []
        self.error: Optional[str] = None
        self.auth_missing = False
        self.updating_ids: set[int] = set()
        self.deleting_ids: set[int] = set()

    # ------------------------ Read ------------------------

    async def fetch(self) -> None:
        """Load the signed-in user's rows, ordered by id."""
        self.status = ListStatus.LOADING
        self.error = None
        self.auth_missing = False
        try:
            user = await self.backend.get_user(self.access_token)
            if user is None:
                self.auth_missing = True
                self.error = t("auth_required", self.locale)
                self.status = ListStatus.ERRORED
                return
            self.user = user
            rows = await self.backend.select(self.access_token, TODOS, {"user_id": user.id}, order="id.asc")
            self.todos = [TodoOut.model_validate(r) for r in rows]
            self.status = ListStatus.READY
        except BackendError as e:
            logger.warning("fetching todos failed: %s", e.message)
            self.error = e.message or t("fetch_failed", self.locale)
            self.status = ListStatus.ERRORED

    async def ensure_loaded(self) -> None:
        if self.user is None or self.status is ListStatus.ERRORED:
            await self.fetch()

    def is_busy(self, todo_id: int) -> bool:
        return todo_id in self.updating_ids or todo_id in self.deleting_ids

    def _find(self, todo_id: int) -> TodoOut:
        for todo in self.todos:
            if todo.id == todo_id:
                return todo
        raise TodoNotFound(todo_id, t("not_found", self.locale))

    def _ensure_idle(self, todo_id: int) -> None:
        if self.is_busy(todo_id):
            raise RowBusyError(todo_id, t("row_busy", self.locale))

    def _set_completed(self, todo_id: int, completed: bool) -> None:
        # the row may be gone by now (refetch); nothing to patch then
        self.todos = [
            todo.model_copy(update={"completed": completed}) if todo.id == todo_id else todo
            for todo in self.todos
        ]

    # ------------------------ Write ------------------------

    async def add(self, title: str) -> TodoOut:
        """Insert a row for the signed-in user and append it to the list.

        Raises BackendError; the caller (the add form) owns the message.
        """
        user = await self.backend.get_user(self.access_token)
        if user is None:
            raise AuthError(t("session_missing", self.locale), 401)
        self.user = user
        row = await self.backend.insert(
            self.access_token, TODOS, {"title": title, "completed": False, "user_id": user.id}
        )
        todo = TodoOut.model_validate(row)
        self.todos = sorted([*self.todos, todo], key=lambda x: x.id)
        return todo

    async def toggle(self, todo_id: int) -> bool:
        self._ensure_idle(todo_id)
        before = self._find(todo_id).completed
        self._set_completed(todo_id, not before)
        self.updating_ids.add(todo_id)
        try:
            rows = await self.backend.update(
                self.access_token, TODOS, {"id": todo_id, "user_id": self.user.id}, {"completed": not before}
            )
            if not rows:
                raise BackendError(t("not_found", self.locale), 404)
            return True
        except BackendError as e:
            logger.info("toggle of todo %s failed, restoring completed=%s: %s", todo_id, before, e.message)
            self._set_completed(todo_id, before)
            self.error = e.message or t("update_failed", self.locale)
            return False
        finally:
            self.updating_ids.discard(todo_id)

    async def delete(self, todo_id: int) -> bool:
        self._ensure_idle(todo_id)
        self._find(todo_id)
        self.todos = [todo for todo in self.todos if todo.id != todo_id]
        self.deleting_ids.add(todo_id)
        try:
            await self.backend.delete(self.access_token, TODOS, {"id": todo_id, "user_id": self.user.id})
            return True
        except BackendError as e:
            logger.info("delete of todo %s failed, refetching: %s", todo_id, e.message)
            await self.fetch()
            self.error = e.message or t("delete_failed", self.locale)
            return False
        finally:
            self.deleting_ids.discard(todo_id)

    def snapshot(self) -> TodoListOut:
        return TodoListOut(
            status=self.status.value,
            todos=list(self.todos),
            updating_ids=sorted(self.updating_ids),
            deleting_ids=sorted(self.deleting_ids),
            error=self.error,
        )


class FormBusyError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AddTodoForm:
    def __init__(self, list_view: TodoListView):
        self.list_view = list_view
        self.title = ""
        self.submitting = False
        self.error: Optional[str] = None

    @property
    def can_submit(self) -> bool:
        return bool(self.title.strip()) and not self.submitting

    async def submit(self, title: Optional[str] = None) -> Optional[TodoOut]:
        """Create a todo from the typed title; None when nothing was created.

        A submit while one is already in flight raises :class:`FormBusyError`
        and leaves the form untouched. A blank title sends no request. The
        typed text is only cleared once the backend confirms.
        """
        if self.submitting:
            raise FormBusyError(t("add_busy", self.list_view.locale))
        if title is not None:
            self.title = title
        trimmed = self.title.strip()
        if not trimmed:
            return None
        self.submitting = True
        self.error = None
        try:
            todo = await self.list_view.add(trimmed)
            self.title = ""
            return todo
        except BackendError as e:
            logger.info("adding todo failed: %s", e.message)
            self.error = e.message or t("add_failed", self.list_view.locale)
            return None
        finally:
            self.submitting = False


class UserViews:
    def __init__(self, backend: Backend, access_token: str, locale: str):
        self.list = TodoListView(backend, access_token, locale)
        self.add_form = AddTodoForm(self.list)
        self.expires_at: Optional[int] = None

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class ViewRegistry:
    """Views cached per signed-in user, so concurrent requests share state.

    Entries live as long as the newest session seen for the user; expired ones
    are dropped on the next lookup, and the oldest entry goes once the cache
    holds ``max_entries``.
    """

    def __init__(self, backend: Backend, locale: str = "ja", max_entries: int = 1024):
        self.backend = backend
        self.locale = locale
        self.max_entries = max_entries
        self._views: dict[str, UserViews] = {}

    def __len__(self) -> int:
        return len(self._views)

    async def verify(self, session: Session) -> Optional[User]:
        """The session's user if the backend accepts its token, else None."""
        user = await self.backend.get_user(session.access_token)
        if user is None or user.id != session.user.id:
            logger.warning("token for user %s rejected by the backend", session.user.id)
            return None
        return user

    def _evict(self) -> None:
        now = time.time()
        for user_id in [uid for uid, views in self._views.items() if views.expired(now)]:
            del self._views[user_id]
        while len(self._views) >= self.max_entries:
            self._views.pop(next(iter(self._views)))

    def for_user(self, user_id: str, access_token: str, expires_at: Optional[int] = None) -> UserViews:
        """Only call with a user the backend has confirmed for ``access_token``."""
        views = self._views.get(user_id)
        if views is None:
            self._evict()
            views = UserViews(self.backend, access_token, self.locale)
            self._views[user_id] = views
        views.list.access_token = access_token
        if expires_at is not None:
            views.expires_at = max(expires_at, views.expires_at or 0)
        return views

    def discard(self, user_id: str) -> None:
        self._views.pop(user_id, None)
