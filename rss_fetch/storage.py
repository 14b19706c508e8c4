"""Key/value storage backends for viewer state."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .errors import StorageError

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    """Read/write capability the state stores are built on."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStorage:
    """Process-local storage, used by tests and one-off viewer runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class Base(DeclarativeBase):
    pass


class SettingModel(Base):
    """One persisted viewer setting."""

    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))


def init_engine(connection_string: str) -> Engine:
    """Initialize the database engine and create the settings table."""
    logger.info("Initializing settings storage: %s", connection_string)
    engine = create_engine(connection_string)
    Base.metadata.create_all(engine)
    return engine


class SqlStorage:
    """Settings persisted in a SQL database through SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @classmethod
    def from_url(cls, connection_string: str) -> "SqlStorage":
        try:
            engine = init_engine(connection_string)
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot open storage {connection_string}", exc) from exc
        return cls(sessionmaker(bind=engine))

    def get(self, key: str) -> Optional[str]:
        stmt = select(SettingModel).where(SettingModel.key == key)
        try:
            with self._session_factory() as session:
                row = session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read setting {key}", exc) from exc
        return row.value if row is not None else None

    def set(self, key: str, value: str) -> None:
        stmt = select(SettingModel).where(SettingModel.key == key)
        with self._session_factory() as session:
            try:
                existing = session.execute(stmt).scalar_one_or_none()
                if existing:
                    existing.value = value
                    existing.updated_at = datetime.now(timezone.utc)
                else:
                    session.add(SettingModel(key=key, value=value))
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise StorageError(f"Failed to write setting {key}", exc) from exc
