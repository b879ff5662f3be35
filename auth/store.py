"""
auth/store.py -- SQLAlchemy Core persistence layer for users and organisations.

Pattern: Repository + Data Mapper.
MembershipStore is the repository; _row_to_user / _row_to_organisation /
_row_to_membership are the mappers. Flow and route code never touches SQL
directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Integrity:
  users.email carries a UNIQUE constraint. It is the source of truth for
  email uniqueness: the registration flow's look-ahead check is a fast path
  only, and two concurrent registrations with the same email are decided here.

  user_organisations has a composite primary key (user_id, org_id) and foreign
  keys to both sides. SQLite only enforces foreign keys when
  PRAGMA foreign_keys=ON is set, which the connect listener does for every
  pooled connection.

Transactions:
  register_user() and create_organisation_with_member() run their inserts on a
  single connection inside engine.begin(). Any exception rolls back every
  insert of the unit, so a failure halfway leaves no organisation without a
  member and no user without a default organisation.

DB path: auth/orggate.db by default (see core.config.Settings.database_url).

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    func,
    select,
)
from sqlalchemy.engine import Connection, Engine

from auth.models import Membership, Organisation, User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(100), nullable=False, unique=True),
    Column("first_name", String(50), nullable=False),
    Column("last_name", String(50), nullable=False),
    Column("phone", String(30)),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)

_organisations = Table(
    "organisations",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # Not length-limited here: the default organisation embeds a 50-char first name.
    Column("name", Text, nullable=False),
    Column("description", String(100)),
    Column("created_at", String(32), nullable=False),
)

_memberships = Table(
    "user_organisations",
    _metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("org_id", Integer, ForeignKey("organisations.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Connection pragmas
# ---------------------------------------------------------------------------


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def default_organisation_name(first_name: str) -> str:
    return f"{first_name}'s organisation"


# Single-statement inserts shared by the public methods. Each takes an open
# connection so callers decide the transaction boundary.


def _insert_user(conn: Connection, user: User) -> int:
    result = conn.execute(
        _users.insert().values(
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            phone=user.phone,
            hashed_password=user.hashed_password,
            created_at=_now_iso(),
        )
    )
    return result.inserted_primary_key[0]


def _insert_organisation(conn: Connection, org: Organisation) -> int:
    result = conn.execute(
        _organisations.insert().values(
            name=org.name,
            description=org.description,
            created_at=_now_iso(),
        )
    )
    return result.inserted_primary_key[0]


def _insert_membership(conn: Connection, user_id: int, org_id: int) -> None:
    conn.execute(_memberships.insert().values(user_id=user_id, org_id=org_id, created_at=_now_iso()))


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class MembershipStore:
    """Repository for User, Organisation and Membership records.

    Usage:
        store = MembershipStore("sqlite:///:memory:")
        user_id, org_id = store.register_user(user, default_organisation_name(user.first_name))
        orgs = store.list_organisations_for_user(user_id)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_sqlite_pragmas)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def find_user_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_user_by_id(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def create_user(self, user: User) -> int:
        """Insert a user on its own and return its id.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        Registration goes through register_user() instead so the user is
        never visible without its default organisation.
        """
        with self.engine.begin() as conn:
            return _insert_user(conn, user)

    def register_user(self, user: User, org_name: str) -> tuple[int, int]:
        """Create the default organisation, the user and their membership atomically.

        Returns (user_id, org_id). Raises sqlalchemy.exc.IntegrityError if the
        email is taken; nothing is written in that case.
        """
        with self.engine.begin() as conn:
            org_id = _insert_organisation(conn, Organisation(name=org_name))
            user_id = _insert_user(conn, user)
            _insert_membership(conn, user_id, org_id)
        return user_id, org_id

    # ------------------------------------------------------------------
    # Organisation queries
    # ------------------------------------------------------------------

    def get_organisation(self, org_id: int) -> Organisation | None:
        with self.engine.connect() as conn:
            row = conn.execute(_organisations.select().where(_organisations.c.id == org_id)).fetchone()
        return _row_to_organisation(row) if row is not None else None

    def create_organisation(self, org: Organisation) -> int:
        """Insert an organisation with no members and return its id."""
        with self.engine.begin() as conn:
            return _insert_organisation(conn, org)

    def create_organisation_with_member(self, org: Organisation, user_id: int) -> int:
        """Insert an organisation and link user_id to it in one transaction."""
        with self.engine.begin() as conn:
            org_id = _insert_organisation(conn, org)
            _insert_membership(conn, user_id, org_id)
        return org_id

    def list_organisations_for_user(self, user_id: int) -> list[Organisation]:
        """Return every organisation user_id is a member of, ordered by id."""
        query = (
            select(_organisations)
            .join(_memberships, _memberships.c.org_id == _organisations.c.id)
            .where(_memberships.c.user_id == user_id)
            .order_by(_organisations.c.id)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_organisation(r) for r in rows]

    def get_organisation_for_member(self, user_id: int, org_id: int) -> Organisation | None:
        """Return the organisation only if user_id is a member of it.

        A single JOIN answers both "does it exist" and "is the caller a
        member", so the two cases are indistinguishable to the caller.
        """
        query = (
            select(_organisations)
            .join(_memberships, _memberships.c.org_id == _organisations.c.id)
            .where((_memberships.c.user_id == user_id) & (_organisations.c.id == org_id))
        )
        with self.engine.connect() as conn:
            row = conn.execute(query).fetchone()
        return _row_to_organisation(row) if row is not None else None

    # ------------------------------------------------------------------
    # Membership queries
    # ------------------------------------------------------------------

    def find_membership(self, user_id: int, org_id: int) -> Membership | None:
        with self.engine.connect() as conn:
            row = conn.execute(
                _memberships.select().where((_memberships.c.user_id == user_id) & (_memberships.c.org_id == org_id))
            ).fetchone()
        return _row_to_membership(row) if row is not None else None

    def create_membership(self, user_id: int, org_id: int) -> Membership:
        """Link an existing user to an existing organisation.

        Raises sqlalchemy.exc.IntegrityError if the pair already exists or if
        either side is missing (foreign key violation).
        """
        with self.engine.begin() as conn:
            _insert_membership(conn, user_id, org_id)
        return self.find_membership(user_id, org_id)

    def count_members(self, org_id: int) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(
                select(func.count()).select_from(_memberships).where(_memberships.c.org_id == org_id)
            ).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        first_name=row.first_name,
        last_name=row.last_name,
        phone=row.phone,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )


def _row_to_organisation(row) -> Organisation:
    return Organisation(
        id=row.id,
        name=row.name,
        description=row.description,
        created_at=row.created_at,
    )


def _row_to_membership(row) -> Membership:
    return Membership(
        user_id=row.user_id,
        org_id=row.org_id,
        created_at=row.created_at,
    )
