"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper (same as tasks/store.py).
UserStore is the repository; _row_to_user is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Email uniqueness is a UNIQUE constraint on the normalized value, so two
  concurrent registrations for "A@x.com" and "a@x.com" cannot both succeed.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from auth.models import Role, User, normalize_email
from core.db import make_engine, new_id, now_iso

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("name", String(50), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(10), nullable=False, server_default=Role.user.value),
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("created_at", String(32), nullable=False),
    Column("last_login", String(32)),
)

# Whitelist for update_user(). Column names never come from request data.
_UPDATABLE_FIELDS = {"name", "email", "role", "is_active", "hashed_password"}


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///taskhub.db")
        user_id = store.create_user(User(name="Ada", email="ada@x.com", hashed_password=hash_password("s3cret")))
        user = store.get_by_email("ADA@x.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        """Return True if at least one user record exists (first-run detection)."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return (result or 0) > 0

    def create_user(self, user: User) -> str:
        """Insert a new user and return its id.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        Callers translate that into a 400 -- the UNIQUE index is the single
        source of truth, a pre-check would race.
        """
        user_id = new_id()
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    name=user.name,
                    email=normalize_email(user.email),
                    hashed_password=user.hashed_password,
                    role=Role(user.role).value,
                    is_active=1 if user.is_active else 0,
                    created_at=now_iso(),
                )
            )
            conn.commit()
        return user_id

    def get_by_id(self, user_id: str) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by email. The argument is normalized before matching."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == normalize_email(email))).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(
        self,
        role: Role | None = None,
        is_active: bool | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[User], int]:
        """Return one page of users (newest first) and the total matching count."""
        conditions = []
        if role is not None:
            conditions.append(_users.c.role == Role(role).value)
        if is_active is not None:
            conditions.append(_users.c.is_active == (1 if is_active else 0))

        query = _users.select().where(*conditions).order_by(_users.c.created_at.desc())
        count_query = select(func.count()).select_from(_users).where(*conditions)
        with self.engine.connect() as conn:
            rows = conn.execute(query.limit(limit).offset((page - 1) * limit)).fetchall()
            total = conn.execute(count_query).scalar() or 0
        return [_row_to_user(r) for r in rows], total

    def update_user(self, user_id: str, **fields) -> bool:
        """Update mutable fields on an existing user.

        Accepted fields: name, email, role, is_active, hashed_password.
        Unknown fields raise ValueError. Raises IntegrityError if a new email
        collides with another account.

        Returns True if a row was updated, False if user_id was not found.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {unknown!r}")
        if not fields:
            return self.get_by_id(user_id) is not None
        if "is_active" in fields:
            fields["is_active"] = 1 if fields["is_active"] else 0
        if "role" in fields:
            fields["role"] = Role(fields["role"]).value
        if "email" in fields:
            fields["email"] = normalize_email(fields["email"])
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def count_active_admins(self) -> int:
        """Return the number of active admin users (last-admin protection)."""
        with self.engine.connect() as conn:
            result = conn.execute(
                select(func.count())
                .select_from(_users)
                .where((_users.c.role == Role.admin.value) & (_users.c.is_active == 1))
            ).scalar()
        return result or 0

    def delete_user(self, user_id: str) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found.

        Callers must check last-admin invariants and remove owned tasks before
        calling this method.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def update_last_login(self, user_id: str) -> None:
        """Stamp the current UTC timestamp as last_login after a successful login."""
        with self.engine.connect() as conn:
            conn.execute(_users.update().where(_users.c.id == user_id).values(last_login=now_iso()))
            conn.commit()

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        hashed_password=row.hashed_password,
        role=Role(row.role),
        is_active=bool(row.is_active),
        created_at=row.created_at,
        last_login=row.last_login,
    )
