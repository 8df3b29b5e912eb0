"""
Database abstraction for the pupi map.

Three interchangeable backends implement `DbClient`: an in-memory store for
development and tests, a flat JSON file, and a SQLAlchemy-backed client
that serves both SQLite files and hosted Postgres.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional, Protocol

from dacite import Config, from_dict
from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    event,
    func,
    inspect,
    select,
    text,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Hand-edited files may carry integer coordinates or string ids.
_DACITE_CONFIG = Config(cast=[float, int])

PUPO_FIELDS = (
    "name",
    "description",
    "lat",
    "lng",
    "image",
    "artist",
    "theme",
    "address",
)


class DbClient(Protocol):
    """Interface for database access."""

    backend_name: str

    def list_pupi(self) -> list["PupoRecord"]:
        ...

    def count_pupi(self) -> int:
        ...

    def get_pupo(self, pupo_id: int) -> Optional["PupoRecord"]:
        ...

    def create_pupo(self, fields: dict) -> "PupoRecord":
        ...

    def update_pupo(self, pupo_id: int, updates: dict) -> Optional["PupoRecord"]:
        ...

    def delete_pupo(self, pupo_id: int) -> bool:
        ...

    def insert_bulk_pupi(self, items: list[dict]) -> list["PupoRecord"]:
        ...

    def has_vote(self, user_id: str, pupo_id: int) -> bool:
        ...

    def add_vote(self, user_id: str, pupo_id: int) -> None:
        ...

    def remove_vote(self, user_id: str, pupo_id: int) -> None:
        ...

    def get_user_votes(self, user_id: str) -> list[int]:
        ...

    def get_vote_counts(self) -> dict[int, int]:
        ...

    def close(self) -> None:
        ...


@dataclass
class PupoRecord:
    id: int
    name: str
    description: str
    lat: float
    lng: float
    image: str
    artist: str
    theme: str
    address: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class VoteRecord:
    user_id: str
    pupo_id: int
    created_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return asdict(self)


def _pick_pupo_fields(values: dict) -> dict:
    picked = {key: values[key] for key in PUPO_FIELDS if key in values}
    if "address" in picked and not picked["address"]:
        picked["address"] = None
    return picked


def _sort_by_name(records: Iterable[PupoRecord]) -> list[PupoRecord]:
    return sorted(records, key=lambda record: (record.name, record.id))


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    backend_name = "memory"

    def __init__(self):
        self.pupi: Dict[int, PupoRecord] = {}
        self.votes: Dict[tuple[str, int], VoteRecord] = {}
        self.next_id = 1
        self._lock = threading.RLock()

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.pupi.clear()
            self.votes.clear()
            self.next_id = 1

    def list_pupi(self) -> list[PupoRecord]:
        with self._lock:
            records = list(self.pupi.values())
        return _sort_by_name(records)

    def count_pupi(self) -> int:
        with self._lock:
            return len(self.pupi)

    def get_pupo(self, pupo_id: int) -> Optional[PupoRecord]:
        with self._lock:
            return self.pupi.get(pupo_id)

    def _insert(self, fields: dict) -> PupoRecord:
        record = PupoRecord(id=self.next_id, **_pick_pupo_fields(fields))
        self.pupi[record.id] = record
        self.next_id += 1
        return record

    def create_pupo(self, fields: dict) -> PupoRecord:
        with self._lock:
            return self._insert(fields)

    def update_pupo(self, pupo_id: int, updates: dict) -> Optional[PupoRecord]:
        with self._lock:
            current = self.pupi.get(pupo_id)
            if not current:
                return None
            merged = {**current.as_dict(), **_pick_pupo_fields(updates)}
            merged["id"] = pupo_id
            record = PupoRecord(**merged)
            self.pupi[pupo_id] = record
            return record

    def delete_pupo(self, pupo_id: int) -> bool:
        with self._lock:
            if self.pupi.pop(pupo_id, None) is None:
                return False
            for key in [key for key in self.votes if key[1] == pupo_id]:
                del self.votes[key]
            return True

    def insert_bulk_pupi(self, items: list[dict]) -> list[PupoRecord]:
        with self._lock:
            return [self._insert(item) for item in items]

    def has_vote(self, user_id: str, pupo_id: int) -> bool:
        with self._lock:
            return (user_id, pupo_id) in self.votes

    def add_vote(self, user_id: str, pupo_id: int) -> None:
        with self._lock:
            self.votes.setdefault(
                (user_id, pupo_id), VoteRecord(user_id=user_id, pupo_id=pupo_id)
            )

    def remove_vote(self, user_id: str, pupo_id: int) -> None:
        with self._lock:
            self.votes.pop((user_id, pupo_id), None)

    def get_user_votes(self, user_id: str) -> list[int]:
        with self._lock:
            keys = list(self.votes)
        return sorted(pupo_id for (uid, pupo_id) in keys if uid == user_id)

    def get_vote_counts(self) -> dict[int, int]:
        with self._lock:
            keys = list(self.votes)
        counts: dict[int, int] = {}
        for _, pupo_id in keys:
            counts[pupo_id] = counts.get(pupo_id, 0) + 1
        return counts

    def close(self) -> None:
        pass


class JsonFileDbClient(InMemoryDbClient):
    """
    Flat JSON file store. The whole file is loaded at startup and rewritten
    after every mutation.
    """

    backend_name = "json"

    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        # A bare list is the legacy layout: pupi only, no votes.
        if isinstance(raw, list):
            raw = {"pupi": raw}
        for item in raw.get("pupi", []):
            if "image" not in item and "imageUrl" in item:
                item["image"] = item["imageUrl"]
            record = from_dict(PupoRecord, item, config=_DACITE_CONFIG)
            self.pupi[record.id] = record
        for item in raw.get("votes", []):
            vote = from_dict(VoteRecord, item, config=_DACITE_CONFIG)
            self.votes[(vote.user_id, vote.pupo_id)] = vote
        self.next_id = max(
            [raw.get("next_id", 1)] + [pupo_id + 1 for pupo_id in self.pupi]
        )

    def _save(self) -> None:
        payload = {
            "next_id": self.next_id,
            "pupi": [record.as_dict() for record in self.pupi.values()],
            "votes": [vote.as_dict() for vote in self.votes.values()],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), prefix=".pupi-", suffix=".json"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def reset(self) -> None:
        with self._lock:
            super().reset()
            self._save()

    def create_pupo(self, fields: dict) -> PupoRecord:
        with self._lock:
            record = super().create_pupo(fields)
            self._save()
            return record

    def update_pupo(self, pupo_id: int, updates: dict) -> Optional[PupoRecord]:
        with self._lock:
            record = super().update_pupo(pupo_id, updates)
            if record:
                self._save()
            return record

    def delete_pupo(self, pupo_id: int) -> bool:
        with self._lock:
            deleted = super().delete_pupo(pupo_id)
            if deleted:
                self._save()
            return deleted

    def insert_bulk_pupi(self, items: list[dict]) -> list[PupoRecord]:
        with self._lock:
            records = super().insert_bulk_pupi(items)
            self._save()
            return records

    def add_vote(self, user_id: str, pupo_id: int) -> None:
        with self._lock:
            super().add_vote(user_id, pupo_id)
            self._save()

    def remove_vote(self, user_id: str, pupo_id: int) -> None:
        with self._lock:
            super().remove_vote(user_id, pupo_id)
            self._save()


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL; used with
    Postgres in production and SQLite files locally.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("A database URL is required for SqlDbClient")
        self.database_url = database_url
        engine_kwargs: dict = {"future": True, "pool_pre_ping": True}
        if database_url.startswith("sqlite"):
            self.backend_name = "sqlite"
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_sqlite(database_url):
                # One shared connection, otherwise every thread sees an empty DB.
                engine_kwargs["poolclass"] = StaticPool
        else:
            self.backend_name = "postgres"
            engine_kwargs["pool_recycle"] = 1800
        self.engine = create_engine(database_url, **engine_kwargs)
        if self.backend_name == "sqlite" and not _is_memory_sqlite(database_url):
            event.listen(self.engine, "connect", _enable_sqlite_wal)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)
        self._upgrade_schema()
        logger.info("Using %s database", self.backend_name)

    def _upgrade_schema(self) -> None:
        # Tables created before addresses existed lack the column.
        columns = {col["name"] for col in inspect(self.engine).get_columns("pupi")}
        if "address" not in columns:
            with self.engine.begin() as conn:
                conn.execute(text("ALTER TABLE pupi ADD COLUMN address TEXT"))
            logger.info("Added address column to pupi table")

    def _to_record(self, row: "PupoRow") -> PupoRecord:
        return PupoRecord(
            id=row.id,
            name=row.name,
            description=row.description,
            lat=row.lat,
            lng=row.lng,
            image=row.image,
            artist=row.artist,
            theme=row.theme,
            address=row.address,
        )

    def list_pupi(self) -> list[PupoRecord]:
        with self.Session() as session:
            rows = session.execute(
                select(PupoRow).order_by(PupoRow.name.asc(), PupoRow.id.asc())
            ).scalars()
            return [self._to_record(row) for row in rows]

    def count_pupi(self) -> int:
        with self.Session() as session:
            return session.execute(select(func.count(PupoRow.id))).scalar_one()

    def get_pupo(self, pupo_id: int) -> Optional[PupoRecord]:
        with self.Session() as session:
            row = session.get(PupoRow, pupo_id)
            if not row:
                return None
            return self._to_record(row)

    def create_pupo(self, fields: dict) -> PupoRecord:
        with self.Session() as session:
            row = PupoRow(**_pick_pupo_fields(fields))
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_record(row)

    def update_pupo(self, pupo_id: int, updates: dict) -> Optional[PupoRecord]:
        with self.Session() as session:
            row = session.get(PupoRow, pupo_id)
            if not row:
                return None
            for key, value in _pick_pupo_fields(updates).items():
                setattr(row, key, value)
            session.commit()
            session.refresh(row)
            return self._to_record(row)

    def delete_pupo(self, pupo_id: int) -> bool:
        with self.Session() as session:
            row = session.get(PupoRow, pupo_id)
            if not row:
                return False
            # SQLite leaves foreign keys off by default, so cascade by hand.
            session.execute(delete(VoteRow).where(VoteRow.pupo_id == pupo_id))
            session.delete(row)
            session.commit()
            return True

    def insert_bulk_pupi(self, items: list[dict]) -> list[PupoRecord]:
        if not items:
            return []
        with self.Session() as session:
            rows = [PupoRow(**_pick_pupo_fields(item)) for item in items]
            session.add_all(rows)
            session.commit()
            for row in rows:
                session.refresh(row)
            return [self._to_record(row) for row in rows]

    def has_vote(self, user_id: str, pupo_id: int) -> bool:
        with self.Session() as session:
            return session.get(VoteRow, (user_id, pupo_id)) is not None

    def add_vote(self, user_id: str, pupo_id: int) -> None:
        with self.Session() as session:
            if session.get(VoteRow, (user_id, pupo_id)):
                return
            session.add(
                VoteRow(user_id=user_id, pupo_id=pupo_id, created_at=time.time())
            )
            try:
                session.commit()
            except IntegrityError:
                # A concurrent toggle inserted the same pair first.
                session.rollback()

    def remove_vote(self, user_id: str, pupo_id: int) -> None:
        with self.Session() as session:
            session.execute(
                delete(VoteRow).where(
                    VoteRow.user_id == user_id, VoteRow.pupo_id == pupo_id
                )
            )
            session.commit()

    def get_user_votes(self, user_id: str) -> list[int]:
        with self.Session() as session:
            rows = session.execute(
                select(VoteRow.pupo_id)
                .where(VoteRow.user_id == user_id)
                .order_by(VoteRow.pupo_id.asc())
            ).scalars()
            return list(rows)

    def get_vote_counts(self) -> dict[int, int]:
        with self.Session() as session:
            rows = session.execute(
                select(VoteRow.pupo_id, func.count()).group_by(VoteRow.pupo_id)
            ).all()
            return {pupo_id: int(count) for pupo_id, count in rows}

    def close(self) -> None:
        self.engine.dispose()


def _is_memory_sqlite(database_url: str) -> bool:
    return ":memory:" in database_url or database_url.rstrip("/") in (
        "sqlite:",
        "sqlite+pysqlite:",
    )


def _enable_sqlite_wal(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def resolve_database_url(
    database_url: Optional[str], default_sqlite_path: str = "data/pupi.db"
) -> tuple[str, str]:
    """
    Map the configured DATABASE_URL onto a backend.

    Returns a (kind, target) pair where kind is one of "postgres", "sqlite"
    or "json". For the SQL kinds the target is a SQLAlchemy URL; for "json"
    it is a file path.
    """
    if not database_url:
        return "sqlite", _sqlite_url_for_path(default_sqlite_path)

    if database_url.startswith("postgres://"):
        # SQLAlchemy only understands the postgresql:// scheme.
        return "postgres", "postgresql://" + database_url[len("postgres://"):]
    if database_url.startswith("postgresql"):
        return "postgres", database_url

    if database_url.startswith("json://"):
        return "json", database_url[len("json://"):]
    if database_url.endswith(".json"):
        return "json", database_url

    # Explicit SQLAlchemy driver URLs pass through untouched.
    if database_url.startswith("sqlite+"):
        return "sqlite", database_url
    if database_url.startswith("sqlite://"):
        return "sqlite", _sqlite_url_for_path(database_url[len("sqlite://"):])
    if database_url.startswith("file:"):
        return "sqlite", _sqlite_url_for_path(database_url[len("file:"):])

    # Anything else is treated as a SQLite file path.
    return "sqlite", _sqlite_url_for_path(database_url)


def _sqlite_url_for_path(path: str) -> str:
    if path in ("", ":memory:"):
        return "sqlite+pysqlite:///:memory:"
    Path(path).expanduser().parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+pysqlite:///{path}"


def create_db_client(
    database_url: Optional[str], default_sqlite_path: str = "data/pupi.db"
) -> DbClient:
    kind, target = resolve_database_url(database_url, default_sqlite_path)
    if kind == "json":
        logger.info("Using JSON file database (%s)", target)
        return JsonFileDbClient(target)
    return SqlDbClient(target)


Base = declarative_base()


class PupoRow(Base):
    __tablename__ = "pupi"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, index=True)
    description = Column(Text, nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    image = Column(Text, nullable=False)
    artist = Column(Text, nullable=False)
    theme = Column(Text, nullable=False)
    address = Column(Text, nullable=True)


class VoteRow(Base):
    __tablename__ = "votes"

    user_id = Column(String, primary_key=True, index=True)
    pupo_id = Column(
        Integer,
        ForeignKey("pupi.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    created_at = Column(Float, nullable=False)
