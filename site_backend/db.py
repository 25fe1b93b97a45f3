"""
Contact-record store: SQL (SQLAlchemy) and an in-memory test implementation.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Protocol

from sqlalchemy import Column, DateTime, Integer, String, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class PersistenceError(Exception):
    """A contact record could not be written or read."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ContactRecord:
    full_name: str
    email: str
    phone: str
    message: str
    timestamp: datetime = field(default_factory=_utcnow)
    id: Optional[int] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "message": self.message,
            "timestamp": self.timestamp.strftime(TIMESTAMP_FORMAT),
        }


class DbClient(Protocol):
    """Interface for contact storage."""

    def save_contact(self, record: ContactRecord) -> ContactRecord:
        ...

    def list_contacts(self) -> list[ContactRecord]:
        ...


def _newest_first(records: list[ContactRecord]) -> list[ContactRecord]:
    return sorted(records, key=lambda r: (r.timestamp, r.id or 0), reverse=True)


class InMemoryDbClient:
    """Simple in-memory store for development and tests."""

    def __init__(self):
        self.contacts: list[ContactRecord] = []
        self._ids = itertools.count(1)

    def save_contact(self, record: ContactRecord) -> ContactRecord:
        saved = replace(record, id=next(self._ids))
        self.contacts.append(saved)
        return saved

    def list_contacts(self) -> list[ContactRecord]:
        return _newest_first(self.contacts)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.contacts.clear()
        self._ids = itertools.count(1)


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (SQLite by default).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(database_url, future=True, pool_pre_ping=True)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _to_record(self, row: "ContactRow") -> ContactRecord:
        ts = row.timestamp
        if ts.tzinfo is None:
            # SQLite drops the offset; values are written in UTC.
            ts = ts.replace(tzinfo=timezone.utc)
        return ContactRecord(
            id=row.id,
            full_name=row.full_name,
            email=row.email,
            phone=row.phone,
            message=row.message,
            timestamp=ts,
        )

    def save_contact(self, record: ContactRecord) -> ContactRecord:
        try:
            with self.Session() as session:
                row = ContactRow(
                    full_name=record.full_name,
                    email=record.email,
                    phone=record.phone,
                    message=record.message,
                    timestamp=record.timestamp,
                )
                session.add(row)
                session.commit()
                session.refresh(row)
                return self._to_record(row)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save contact: {exc}") from exc

    def list_contacts(self) -> list[ContactRecord]:
        try:
            with self.Session() as session:
                stmt = select(ContactRow).order_by(
                    ContactRow.timestamp.desc(), ContactRow.id.desc()
                )
                return [self._to_record(row) for row in session.execute(stmt).scalars()]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not list contacts: {exc}") from exc


Base = declarative_base()


class ContactRow(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column("fullName", String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    message = Column(String, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
