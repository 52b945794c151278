"""
realms/store.py -- SQLAlchemy-backed persistence layer for auth realms.

Uses SQLAlchemy Core (not ORM) so the dataclass in realms/models.py remains
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. AuthRealmStore is the repository;
_row_to_realm is the mapper. The service layer never touches SQL directly.

Soft delete: rows are never removed. delete sets deleted_at, and every read
takes an include_deleted flag that defaults to False, so standard reads hide
deleted rows and audit reads have to ask for them explicitly.

Uniqueness: (account, name) is unique among live rows only, via a partial
unique index. A soft-deleted name can be reused. Violations surface as
sqlalchemy.exc.IntegrityError; the service decides what that means.

Usage:
    store = AuthRealmStore("sqlite:///:memory:")
    realm = store.create(AuthRealm(account="6089719", name="corp", custom_resource={...}))
    store.list_for_account("6089719")
    store.soft_delete(realm.id)
    store.get(realm.id, include_deleted=True)
    store.close()
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from realms.models import AuthRealm

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_auth_realms = Table(
    "auth_realms",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("account", String(64), nullable=False),
    Column("name", String(255), nullable=False),
    Column("custom_resource", Text, nullable=False),  # JSON object serialized as text
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("deleted_at", String(32)),  # NULL = live row
)

Index(
    "uq_auth_realms_account_name",
    _auth_realms.c.account,
    _auth_realms.c.name,
    unique=True,
    sqlite_where=_auth_realms.c.deleted_at.is_(None),
    postgresql_where=_auth_realms.c.deleted_at.is_(None),
)

Index("ix_auth_realms_account", _auth_realms.c.account)

# SQLite keys are signed 64-bit integers. An id outside this range cannot name
# a row, and the sqlite3 driver refuses to bind it.
_MIN_ID = -(2**63)
_MAX_ID = 2**63 - 1


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _id_in_range(realm_id: int) -> bool:
    return _MIN_ID <= realm_id <= _MAX_ID


def _row_to_realm(row) -> AuthRealm:
    return AuthRealm(
        id=row.id,
        account=row.account,
        name=row.name,
        custom_resource=json.loads(row.custom_resource) if row.custom_resource else None,
        created_at=row.created_at,
        updated_at=row.updated_at,
        deleted_at=row.deleted_at,
    )


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AuthRealmStore:
    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # The same pooled connection may be used from the threadpool that
            # FastAPI runs sync handlers in.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, realm_id: int, include_deleted: bool = False) -> AuthRealm | None:
        """Fetch a single record by ID. Returns None if not found."""
        if not _id_in_range(realm_id):
            return None
        query = _auth_realms.select().where(_auth_realms.c.id == realm_id)
        if not include_deleted:
            query = query.where(_auth_realms.c.deleted_at.is_(None))
        with self.engine.connect() as conn:
            row = conn.execute(query).fetchone()
        return _row_to_realm(row) if row is not None else None

    def list_for_account(self, account: str, include_deleted: bool = False) -> list[AuthRealm]:
        """Return the account's records in insertion (id) order."""
        query = _auth_realms.select().where(_auth_realms.c.account == account)
        if not include_deleted:
            query = query.where(_auth_realms.c.deleted_at.is_(None))
        with self.engine.connect() as conn:
            rows = conn.execute(query.order_by(_auth_realms.c.id)).fetchall()
        return [_row_to_realm(r) for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, realm: AuthRealm) -> AuthRealm:
        """Insert a new record and return it as stored.

        Raises sqlalchemy.exc.IntegrityError if a live record with the same
        (account, name) already exists.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _auth_realms.insert().values(
                    account=realm.account,
                    name=realm.name,
                    custom_resource=json.dumps(realm.custom_resource),
                    created_at=now,
                    updated_at=now,
                )
            )
            new_id = result.inserted_primary_key[0]
            row = conn.execute(_auth_realms.select().where(_auth_realms.c.id == new_id)).fetchone()
            conn.commit()
        return _row_to_realm(row)

    def save(self, realm: AuthRealm) -> AuthRealm:
        """Write every field of realm, inserting the row if no live row has its ID.

        created_at is taken from realm when set, so callers that loaded the
        record first keep the original creation time. updated_at is always
        refreshed.

        Raises ValueError if realm.id is outside the 64-bit key range.
        """
        if realm.id is not None and not _id_in_range(realm.id):
            raise ValueError(f"auth realm id {realm.id} is outside the 64-bit integer range")
        now = _now_iso()
        values = {
            "account": realm.account,
            "name": realm.name,
            "custom_resource": json.dumps(realm.custom_resource),
            "created_at": realm.created_at or now,
            "updated_at": now,
        }
        with self.engine.connect() as conn:
            updated = 0
            if realm.id is not None:
                result = conn.execute(
                    _auth_realms.update()
                    .where(_auth_realms.c.id == realm.id)
                    .where(_auth_realms.c.deleted_at.is_(None))
                    .values(**values)
                )
                updated = result.rowcount
            if updated:
                realm_id = realm.id
            else:
                if realm.id is not None:
                    values["id"] = realm.id
                realm_id = conn.execute(_auth_realms.insert().values(**values)).inserted_primary_key[0]
            row = conn.execute(_auth_realms.select().where(_auth_realms.c.id == realm_id)).fetchone()
            conn.commit()
        return _row_to_realm(row)

    def soft_delete(self, realm_id: int) -> bool:
        """Mark a live record deleted. Returns False if no live row had that ID."""
        if not _id_in_range(realm_id):
            return False
        with self.engine.connect() as conn:
            result = conn.execute(
                _auth_realms.update()
                .where(_auth_realms.c.id == realm_id)
                .where(_auth_realms.c.deleted_at.is_(None))
                .values(deleted_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()
