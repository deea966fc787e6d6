"""
database.py: Snapshot persistence and the in-memory dataset store.

The whole checklist is kept in memory and mirrored, after every mutation, to
one named slot in the snapshots table. SQLite locally, PostgreSQL in
production (via DATABASE_URL).

Persistence is best effort: SnapshotSlot reports failures as results instead
of raising, and DatasetStore keeps working from memory when the database is
unavailable.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from bundled_template import bundled_rows
from checklist import EDITABLE_FIELDS, coerce_field, coerce_row

logger = logging.getLogger("seo-checklist")

SNAPSHOT_KEY = "tsa.template.data"

# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------

def make_engine(database_url: str, **kwargs) -> Engine:
    return create_engine(
        database_url,
        # SQLite needs this flag; ignored by Postgres
        connect_args={"check_same_thread": False} if database_url.startswith("sqlite") else {},
        pool_pre_ping=True,   # drop stale connections before use
        **kwargs,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    pass


class Snapshot(Base):
    __tablename__ = "snapshots"

    key         = Column(String(100), primary_key=True)
    # Whole dataset as JSON text; avoids needing a JSON column type
    # that behaves differently across SQLite and Postgres.
    data_json   = Column(Text, nullable=False)
    updated_at  = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


def init_db(engine: Engine) -> None:
    """Create all tables. Safe to call on every startup."""
    Base.metadata.create_all(bind=engine)

# ---------------------------------------------------------------------------
# Snapshot slot: explicit load/save capability
# ---------------------------------------------------------------------------

@dataclass
class PersistResult:
    ok: bool
    error: Optional[str] = None


@dataclass
class LoadResult:
    ok: bool
    rows: Optional[Any] = None      # None when the slot is empty
    error: Optional[str] = None


class SnapshotSlot:
    """One named slot holding the whole dataset as JSON."""

    def __init__(self, session_factory: sessionmaker, key: str = SNAPSHOT_KEY):
        self._session_factory = session_factory
        self.key = key

    def load(self) -> LoadResult:
        db = self._session_factory()
        try:
            snap = db.get(Snapshot, self.key)
            if snap is None:
                return LoadResult(ok=True)
            return LoadResult(ok=True, rows=json.loads(snap.data_json))
        except (SQLAlchemyError, ValueError) as e:
            return LoadResult(ok=False, error=f"{type(e).__name__}: {e}")
        finally:
            db.close()

    def save(self, rows: list[dict]) -> PersistResult:
        db = self._session_factory()
        try:
            # PostgreSQL rejects \x00 in text columns
            data = json.dumps(rows, ensure_ascii=False).replace("\\u0000", "")
            db.merge(Snapshot(key=self.key, data_json=data, updated_at=datetime.utcnow()))
            db.commit()
            return PersistResult(ok=True)
        except (SQLAlchemyError, TypeError, ValueError) as e:
            db.rollback()
            return PersistResult(ok=False, error=f"{type(e).__name__}: {e}")
        finally:
            db.close()

    def clear(self) -> PersistResult:
        db = self._session_factory()
        try:
            db.query(Snapshot).filter(Snapshot.key == self.key).delete()
            db.commit()
            return PersistResult(ok=True)
        except SQLAlchemyError as e:
            db.rollback()
            return PersistResult(ok=False, error=f"{type(e).__name__}: {e}")
        finally:
            db.close()

# ---------------------------------------------------------------------------
# Dataset store
# ---------------------------------------------------------------------------

def _restore(raw_rows: list[dict]) -> list[dict]:
    """Coerce snapshot rows and re-key any duplicate ids."""
    rows = [coerce_row(r, i) for i, r in enumerate(raw_rows, start=1)]
    seen: set[int] = set()
    next_id = max((r["id"] for r in rows), default=0) + 1
    for r in rows:
        if r["id"] in seen:
            logger.warning(f"Snapshot: duplicate row id {r['id']} re-keyed to {next_id}")
            r["id"] = next_id
            next_id += 1
        seen.add(r["id"])
    return rows


class DatasetStore:
    """
    In-memory checklist, written through to a SnapshotSlot.

    Last write wins at field granularity; there is no conflict detection.
    """

    def __init__(self, slot: SnapshotSlot):
        self.slot = slot
        self.rows: list[dict] = []
        self.source = "bundled"
        self.last_persist = PersistResult(ok=True)

    def load(self) -> list[dict]:
        """Restore the saved snapshot, or fall back to the bundled template."""
        result = self.slot.load()
        if not result.ok:
            logger.warning(f"Snapshot load failed, using bundled template: {result.error}")
        elif isinstance(result.rows, list) and all(isinstance(r, dict) for r in result.rows):
            self.rows = _restore(result.rows)
            self.source = "snapshot"
            logger.info(f"Loaded {len(self.rows)} rows from snapshot '{self.slot.key}'")
            return self.rows
        elif result.rows is not None:
            logger.warning(f"Snapshot '{self.slot.key}' is not a list of rows, ignoring it")

        self.rows = bundled_rows()
        self.source = "bundled"
        logger.info(f"Loaded {len(self.rows)} rows from bundled template")
        return self.rows

    def save(self, rows: list[dict]) -> PersistResult:
        """Best effort: a failure is logged and returned, never raised."""
        self.last_persist = self.slot.save(rows)
        if not self.last_persist.ok:
            logger.warning(f"Snapshot save failed: {self.last_persist.error}")
        return self.last_persist

    def reset(self) -> list[dict]:
        """Drop the snapshot and start again from a fresh copy of the template."""
        self.last_persist = self.slot.clear()
        if not self.last_persist.ok:
            logger.warning(f"Snapshot clear failed: {self.last_persist.error}")
        self.rows = bundled_rows()
        self.source = "bundled"
        return self.rows

    def get(self, row_id: int) -> Optional[dict]:
        return next((r for r in self.rows if r["id"] == row_id), None)

    def update(self, row_id: int, field: str, value: Any) -> list[dict]:
        """
        Replace one field of one row. Unknown row_id is a no-op.
        Raises ValueError for unknown or read-only fields.
        """
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown or read-only field: {field}")
        if self.get(row_id) is None:
            return self.rows
        value = coerce_field(field, value)
        self.rows = [{**r, field: value} if r["id"] == row_id else r for r in self.rows]
        self.save(self.rows)
        return self.rows

    def replace(self, rows: list[dict]) -> list[dict]:
        self.rows = list(rows)
        self.save(self.rows)
        return self.rows
