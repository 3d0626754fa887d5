"""In-process stand-in for the hosted service, backed by SQLAlchemy.

Used for local development (``BACKEND=local``) and by the test-suite. Tokens
are HS256 JWTs signed with the service-role key; every table call is
restricted to the token's user the way the hosted row-level policy is.
"""
from __future__ import annotations

import logging
import time
import uuid
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.backend.base import TODOS, AuthError, Backend, BackendError
from app.database import create_tables, make_engine, make_sessionmaker
from app.models.todo import Todo
from app.repositories.todo_repo import TodoRepository
from app.repositories.user_repo import UserRepository
from app.schemas.auth import Session, User

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_SECONDS = 60 * 60

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class LocalBackend(Backend):
    def __init__(self, database_url: str, secret: str):
        self.engine = make_engine(database_url)
        self.sessions = make_sessionmaker(self.engine)
        self.secret = secret
        self.users = UserRepository()
        self.todos = TodoRepository()
        # jti -> exp; entries go once the token would be rejected as expired anyway
        self._revoked: dict[str, int] = {}

    async def init(self) -> None:
        await create_tables(self.engine)

    # ------------------------ Auth ------------------------

    def _issue(self, user: User) -> Session:
        expires_at = int(time.time()) + ACCESS_TOKEN_EXPIRE_SECONDS
        claims = {"sub": user.id, "email": user.email, "exp": expires_at, "jti": uuid.uuid4().hex}
        token = jwt.encode(claims, self.secret, algorithm=ALGORITHM)
        return Session(access_token=token, expires_at=expires_at, user=user)

    def _claims(self, access_token: str | None) -> Optional[dict]:
        if not access_token:
            return None
        try:
            claims = jwt.decode(access_token, self.secret, algorithms=[ALGORITHM])
        except JWTError:
            return None
        if claims.get("jti") in self._revoked:
            return None
        return claims

    async def sign_up(self, email: str, password: str) -> User:
        email = email.strip().lower()
        if not email or "@" not in email:
            raise AuthError("Unable to validate email address: invalid format", 400)
        if len(password) < 6:
            raise AuthError("Password should be at least 6 characters.", 422)
        async with self.sessions() as db:
            if await self.users.get_by_email(db, email):
                raise AuthError("User already registered", 422)
            try:
                row = await self.users.create_user(db, email, pwd_context.hash(password))
            except IntegrityError as e:
                await db.rollback()
                raise AuthError("User already registered", 422) from e
        return User(id=row.id, email=row.email)

    async def sign_in(self, email: str, password: str) -> Session:
        async with self.sessions() as db:
            row = await self.users.get_by_email(db, email.strip().lower())
        if row is None or not pwd_context.verify(password, row.password_hash):
            raise AuthError("Invalid login credentials", 400)
        return self._issue(User(id=row.id, email=row.email))

    async def sign_out(self, access_token: str) -> None:
        claims = self._claims(access_token)
        if claims is None:
            raise AuthError("invalid JWT", 401)
        now = time.time()
        self._revoked = {jti: exp for jti, exp in self._revoked.items() if exp > now}
        self._revoked[claims["jti"]] = claims["exp"]

    async def get_user(self, access_token: str) -> Optional[User]:
        claims = self._claims(access_token)
        if claims is None:
            return None
        async with self.sessions() as db:
            row = await self.users.get(db, claims["sub"])
        if row is None:
            return None
        return User(id=row.id, email=row.email)

    def get_session(self, access_token: str | None) -> Optional[Session]:
        claims = self._claims(access_token)
        if claims is None:
            return None
        return Session(
            access_token=access_token,
            expires_at=claims["exp"],
            user=User(id=claims["sub"], email=claims.get("email", "")),
        )

    # ------------------------ Tables ------------------------

    async def _owner(self, access_token: str, table: str) -> str:
        if table != TODOS:
            raise BackendError(f'relation "public.{table}" does not exist', 404)
        claims = self._claims(access_token)
        if claims is None:
            raise AuthError("invalid JWT", 401)
        return claims["sub"]

    @staticmethod
    def _check_columns(columns, allowed) -> None:
        for name in columns:
            if name not in allowed:
                raise BackendError(f"column todos.{name} does not exist", 400)

    async def select(self, access_token, table, filters, order="id.asc"):
        uid = await self._owner(access_token, table)
        self._check_columns(filters, Todo.FILTERABLE)
        column, _, direction = order.partition(".")
        if column != "id" or direction not in ("", "asc", "desc"):
            raise BackendError(f"unsupported order {order!r}", 400)
        if filters.get("user_id", uid) != uid:
            return []
        try:
            async with self.sessions() as db:
                rows = await self.todos.list_for(db, uid, filters, ascending=direction != "desc")
        except SQLAlchemyError as e:
            logger.exception("select on %s failed", table)
            raise BackendError(str(e), 500) from e
        return [r.to_row() for r in rows]

    async def insert(self, access_token, table, row):
        uid = await self._owner(access_token, table)
        self._check_columns(row, Todo.FILTERABLE)
        if row.get("user_id") != uid:
            raise BackendError('new row violates row-level security policy for table "todos"', 403)
        title = (row.get("title") or "").strip()
        if not title:
            raise BackendError('new row for relation "todos" violates check constraint "title_not_empty"', 400)
        try:
            async with self.sessions() as db:
                created = await self.todos.create_for(db, uid, title, completed=bool(row.get("completed")))
        except SQLAlchemyError as e:
            logger.exception("insert into %s failed", table)
            raise BackendError(str(e), 500) from e
        return created.to_row()

    async def update(self, access_token, table, filters, patch):
        uid = await self._owner(access_token, table)
        self._check_columns(filters, Todo.FILTERABLE)
        self._check_columns(patch, Todo.PATCHABLE)
        if filters.get("user_id", uid) != uid or not patch:
            return []
        try:
            async with self.sessions() as db:
                rows = await self.todos.update_for(db, uid, filters, patch)
        except SQLAlchemyError as e:
            logger.exception("update on %s failed", table)
            raise BackendError(str(e), 500) from e
        return [r.to_row() for r in rows]

    async def delete(self, access_token, table, filters):
        uid = await self._owner(access_token, table)
        self._check_columns(filters, Todo.FILTERABLE)
        if filters.get("user_id", uid) != uid:
            return None
        try:
            async with self.sessions() as db:
                await self.todos.delete_for(db, uid, filters)
        except SQLAlchemyError as e:
            logger.exception("delete on %s failed", table)
            raise BackendError(str(e), 500) from e
        return None

    async def aclose(self) -> None:
        await self.engine.dispose()
